"""Data transfer objects exchanged with external collaborators."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PeerInfo:
    # Parallel lists: consensus_keys[i] belongs to consensus_addresses[i].
    consensus_addresses: list[str] = field(default_factory=list)
    consensus_keys: list[str] = field(default_factory=list)
    peer_id: str = ""
    agent: str = ""
    address: str = ""


@dataclass(frozen=True)
class NetworkSnapshot:
    network_name: str
    peers: list[PeerInfo]
    fetched_at: datetime | None = None


@dataclass(frozen=True)
class ResolvedPeer:
    peer_index: int
    position: int
    public_key: str | None

    @property
    def is_primary(self) -> bool:
        return self.position == 0


@dataclass
class ValidatorInfo:
    address: str
    public_key: str = ""
    stake: int = 0
    number: int = 0
    availability_score: float = 0.0


@dataclass
class TwitterUser:
    account_id: str
    display_name: str
    created_at: datetime
    followers: int
    verified: bool = False


@dataclass
class TweetInfo:
    tweet_id: str
    created_at: datetime


@dataclass
class InvoiceSpec:
    price_amount: int
    order_id: str
    order_description: str
    price_currency: str = "usd"


@dataclass
class InvoiceReceipt:
    invoice_id: str
    invoice_url: str = ""
