"""In-memory records held by the record store, and derived summaries."""

from dataclasses import dataclass


@dataclass
class ClaimRecord:
    testnet_address: str
    owner_id: str
    total_reward: int
    claimed_tx_id: str = ""

    @property
    def is_claimed(self) -> bool:
        return self.claimed_tx_id != ""


@dataclass
class IncentiveParty:
    account_id: str
    display_name: str
    owner_id: str
    validator_address: str
    pac_amount: int
    usd_price: int
    public_key: str = ""
    invoice_id: str = ""
    invoice_url: str = ""
    payment_settled: bool = False
    bonding_tx_id: str = ""
    created_at: str = ""

    @property
    def is_claimed(self) -> bool:
        return self.bonding_tx_id != ""


@dataclass
class WhitelistEntry:
    account_id: str
    display_name: str
    whitelisted_by: str
    created_at: str = ""


@dataclass
class ClaimStatusSummary:
    claimed: int = 0
    claimed_amount: int = 0
    not_claimed: int = 0
    not_claimed_amount: int = 0


@dataclass
class BoosterStatusSummary:
    all_parties: int = 0
    pac: int = 0
    usd: int = 0
    payment_done: int = 0
    payment_waiting: int = 0
    claimed: int = 0
    unclaimed: int = 0
    whitelists: int = 0
