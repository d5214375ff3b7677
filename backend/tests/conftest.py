"""Shared fixtures: in-memory SQLite DB, record store and fake collaborators."""

import threading
import time
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import ProgramSettings
from db.models import Base
from pacrewards.services._helpers import utc_now
from pacrewards.services.errors import (
    PaymentGatewayError,
    SocialClientError,
    ValidatorNotFoundError,
)
from pacrewards.services.locks import KeyedLock
from pacrewards.services.record_store import RecordStore
from pacrewards.services.schemas import (
    ClaimRecord,
    InvoiceReceipt,
    InvoiceSpec,
    NetworkSnapshot,
    PeerInfo,
    TweetInfo,
    TwitterUser,
    ValidatorInfo,
)
from pacrewards.services.validator_directory import ValidatorDirectory


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    # StaticPool + check_same_thread=False: worker threads and TestClient share one DB.
    eng: Engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    factory: sessionmaker[Session] = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    sess: Session = factory()
    yield sess
    sess.rollback()
    sess.close()


class SessionScope:
    """Same commit/rollback contract as db.connection.get_session; can be told to fail."""

    def __init__(self, engine: Engine) -> None:
        self.factory: sessionmaker[Session] = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        self.fail: bool = False

    @contextmanager
    def __call__(self) -> Iterator[Session]:
        if self.fail:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        sess: Session = self.factory()
        try:
            yield sess
            sess.commit()
        except Exception:
            sess.rollback()
            raise
        finally:
            sess.close()


@pytest.fixture()
def session_scope(engine: Engine) -> SessionScope:
    return SessionScope(engine)


@pytest.fixture()
def session_scope_for() -> type[SessionScope]:
    """For tests that build their own engine."""
    return SessionScope


@pytest.fixture()
def store(session_scope: SessionScope) -> RecordStore:
    return RecordStore.open(session_scope)


@pytest.fixture()
def program() -> ProgramSettings:
    return ProgramSettings(
        min_wallet_reserve=500,
        claim_memo="TestNet reward claim",
        booster_memo="Validator Booster Program",
        booster_cap=500,
        min_account_age_years=2,
        min_followers=200,
        high_follower_threshold=1000,
        pac_amount_high=200,
        pac_amount_base=150,
        retweet_window_days=7,
    )


# ---------- fake collaborators ----------


class FakeNetwork:
    def __init__(self) -> None:
        self.validators: dict[str, ValidatorInfo] = {}
        self.peers: list[PeerInfo] = []
        self.fail: bool = False
        self.calls: int = 0

    def get_network_info(self) -> NetworkSnapshot:
        self.calls += 1
        if self.fail:
            raise ConnectionError("node unreachable")
        return NetworkSnapshot(network_name="pactus-mainnet", peers=list(self.peers))

    def get_validator_info(self, address: str) -> ValidatorInfo:
        info: ValidatorInfo | None = self.validators.get(address)
        if info is None:
            raise ValidatorNotFoundError(address)
        return info

    def get_balance(self, address: str) -> int:
        return 0


class FakeWallet:
    def __init__(self, balance: int = 10_000 * 1_000_000_000) -> None:
        self._balance: int = balance
        self.tx_ids: list[str] = ["tx1"]
        self.bonds: list[tuple[str, str, str, int]] = []
        self.delay: float = 0.0
        self._lock: threading.Lock = threading.Lock()

    def balance(self) -> int:
        return self._balance

    def bond_transaction(self, public_key: str, address: str, memo: str, amount: int) -> str:
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.bonds.append((public_key, address, memo, amount))
            return self.tx_ids.pop(0) if self.tx_ids else ""


class FakeSocial:
    def __init__(self) -> None:
        self.users: dict[str, TwitterUser] = {}
        self.tweets: dict[str, TweetInfo] = {}

    def add_user(
        self,
        handle: str,
        account_id: str,
        followers: int = 500,
        age_days: int = 3 * 365,
        verified: bool = False,
        retweeted: bool = True,
    ) -> TwitterUser:
        user: TwitterUser = TwitterUser(
            account_id=account_id,
            display_name=handle,
            created_at=utc_now() - timedelta(days=age_days),
            followers=followers,
            verified=verified,
        )
        self.users[handle.casefold()] = user
        if retweeted:
            self.tweets[handle.casefold()] = TweetInfo(
                tweet_id=f"t-{account_id}", created_at=utc_now() - timedelta(hours=1)
            )
        return user

    def user_info(self, handle: str) -> TwitterUser:
        user: TwitterUser | None = self.users.get(handle.casefold())
        if user is None:
            raise SocialClientError(f"Twitter account @{handle} not found")
        return user

    def retweet_search(self, requester_id: str, handle: str) -> TweetInfo:
        tweet: TweetInfo | None = self.tweets.get(handle.casefold())
        if tweet is None:
            raise SocialClientError(f"no retweet of the campaign post found for @{handle}")
        return tweet


class FakePayments:
    def __init__(self) -> None:
        self.specs: list[InvoiceSpec] = []
        self.fail: bool = False

    def create_payment(self, spec: InvoiceSpec) -> InvoiceReceipt:
        if self.fail:
            raise PaymentGatewayError("gateway down")
        self.specs.append(spec)
        invoice_id: str = f"inv-{len(self.specs)}"
        return InvoiceReceipt(invoice_id=invoice_id, invoice_url=f"https://pay.test/{invoice_id}")


class StaticSnapshots:
    def __init__(self, *peers: PeerInfo) -> None:
        self.peers: list[PeerInfo] = list(peers)

    def snapshot(self) -> NetworkSnapshot:
        return NetworkSnapshot(
            network_name="pactus-mainnet", peers=self.peers, fetched_at=datetime(2026, 1, 1)
        )


@pytest.fixture()
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture()
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture()
def social() -> FakeSocial:
    return FakeSocial()


@pytest.fixture()
def payments() -> FakePayments:
    return FakePayments()


@pytest.fixture()
def snapshots() -> StaticSnapshots:
    return StaticSnapshots(
        PeerInfo(consensus_addresses=["m1", "m2"], consensus_keys=["pk", "pk2"], peer_id="peer-1"),
        PeerInfo(consensus_addresses=["m3"], consensus_keys=[], peer_id="peer-2"),
        PeerInfo(consensus_addresses=["v1"], consensus_keys=["vpk"], peer_id="peer-3"),
    )


@pytest.fixture()
def directory(snapshots: StaticSnapshots) -> ValidatorDirectory:
    return ValidatorDirectory(snapshots)


@pytest.fixture()
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture()
def seeded_store(store: RecordStore) -> RecordStore:
    """Store with claimer t1 (owner u1, 100 NanoPAC) provisioned."""
    store.import_claims([ClaimRecord(testnet_address="t1", owner_id="u1", total_reward=100)])
    return store
