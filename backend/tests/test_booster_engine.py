"""Tests for pacrewards.services.booster_engine."""

from datetime import timedelta

import pytest

from pacrewards.services._helpers import utc_now
from pacrewards.services.booster_engine import BoosterEngine, booster_pac_amount, booster_price
from pacrewards.services.errors import (
    AccountNotFoundError,
    AccountTooNewError,
    AlreadyClaimedError,
    AlreadyStakedError,
    AlreadyWhitelistedError,
    DuplicatePartyError,
    InsufficientBalanceError,
    InsufficientFollowersError,
    NotFoundError,
    NotPrimaryAddressError,
    PartyNotFoundError,
    PaymentFailedError,
    PaymentNotSettledError,
    PeerNotFoundError,
    ProgramFinishedError,
    RetweetNotFoundError,
    TransactionSendFailedError,
    UnrecoverableError,
)
from pacrewards.services.record_store import RecordStore
from pacrewards.services.schemas.network import PeerInfo, TweetInfo, ValidatorInfo
from pacrewards.services.schemas.records import IncentiveParty


@pytest.fixture()
def booster(store, network, wallet, social, payments, directory, program, locks) -> BoosterEngine:
    return BoosterEngine(store, network, wallet, social, payments, directory, program, locks)


def _fill(store: RecordStore, count: int) -> None:
    store.import_parties(
        IncentiveParty(
            account_id=f"filler-{i}",
            display_name=f"filler{i}",
            owner_id="u0",
            validator_address=f"fv{i}",
            pac_amount=150,
            usd_price=30,
        )
        for i in range(count)
    )


@pytest.mark.parametrize(
    ("parties", "price"),
    [(0, 30), (99, 30), (100, 40), (150, 40), (199, 40), (200, 50), (300, 50), (400, 50)],
)
def test_booster_price(parties: int, price: int) -> None:
    assert booster_price(parties) == price


def test_booster_pac_amount(program) -> None:
    assert booster_pac_amount(999, program) == 150
    assert booster_pac_amount(1000, program) == 200


class TestBoosterPayment:
    def test_success(self, booster: BoosterEngine, social, payments, store: RecordStore) -> None:
        social.add_user("alice", "tw1", followers=1500)

        party: IncentiveParty = booster.booster_payment("u1", "alice", "v1")

        assert party.account_id == "tw1"
        assert party.pac_amount == 200
        assert party.usd_price == 30
        assert party.public_key == "vpk"
        assert party.invoice_id == "inv-1"
        assert party.invoice_url == "https://pay.test/inv-1"
        assert not party.payment_settled
        assert party.bonding_tx_id == ""
        assert payments.specs[0].price_amount == 30
        assert payments.specs[0].order_id == "tw1"
        assert store.lookup_incentive_party("ALICE") == party

    def test_verified_skips_activity_checks(self, booster: BoosterEngine, social) -> None:
        social.add_user("vip", "tw1", followers=100, age_days=365, verified=True)
        party: IncentiveParty = booster.booster_payment("u1", "vip", "v1")
        assert party.pac_amount == 150

    def test_whitelisted_skips_activity_checks(
        self, booster: BoosterEngine, social, store: RecordStore
    ) -> None:
        social.add_user("fresh", "tw1", followers=100, age_days=365)
        store.whitelist("tw1", "fresh", "admin")
        party: IncentiveParty = booster.booster_payment("u1", "fresh", "v1")
        assert party.pac_amount == 150

    def test_account_too_new(self, booster: BoosterEngine, social) -> None:
        social.add_user("fresh", "tw1", followers=5000, age_days=365)
        with pytest.raises(AccountTooNewError):
            booster.booster_payment("u1", "fresh", "v1")

    def test_insufficient_followers(self, booster: BoosterEngine, social) -> None:
        social.add_user("quiet", "tw1", followers=199)
        with pytest.raises(InsufficientFollowersError):
            booster.booster_payment("u1", "quiet", "v1")

    def test_account_not_found(self, booster: BoosterEngine) -> None:
        with pytest.raises(AccountNotFoundError) as exc_info:
            booster.booster_payment("u1", "ghost", "v1")
        assert "ghost" in str(exc_info.value)

    def test_retweet_missing(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1", retweeted=False)
        with pytest.raises(RetweetNotFoundError):
            booster.booster_payment("u1", "alice", "v1")

    def test_retweet_too_old(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1")
        social.tweets["alice"] = TweetInfo("t1", utc_now() - timedelta(days=8))
        with pytest.raises(RetweetNotFoundError):
            booster.booster_payment("u1", "alice", "v1")

    def test_already_staked(self, booster: BoosterEngine, social, network) -> None:
        social.add_user("alice", "tw1")
        network.validators["v1"] = ValidatorInfo(address="v1", stake=0)
        with pytest.raises(AlreadyStakedError):
            booster.booster_payment("u1", "alice", "v1")

    def test_not_primary(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1")
        with pytest.raises(NotPrimaryAddressError):
            booster.booster_payment("u1", "alice", "m2")

    def test_unknown_validator_address(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1")
        with pytest.raises(PeerNotFoundError):
            booster.booster_payment("u1", "alice", "nowhere")

    def test_duplicate_party(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1")
        booster.booster_payment("u1", "alice", "v1")
        with pytest.raises(DuplicatePartyError):
            booster.booster_payment("u2", "Alice", "v1")

    def test_renamed_handle_is_still_duplicate(
        self, booster: BoosterEngine, social, payments, store: RecordStore
    ) -> None:
        social.add_user("alice", "tw1")
        booster.booster_payment("u1", "alice", "v1")
        booster.settle_payment("tw1")
        social.add_user("alice2", "tw1")

        with pytest.raises(DuplicatePartyError):
            booster.booster_payment("u2", "alice2", "v1")

        party: IncentiveParty = store.get_incentive_party("tw1")
        assert party.display_name == "alice"
        assert party.owner_id == "u1"
        assert party.payment_settled
        assert party.invoice_id == "inv-1"
        assert len(payments.specs) == 1

    def test_payment_failed(self, booster: BoosterEngine, social, payments, store) -> None:
        social.add_user("alice", "tw1")
        payments.fail = True
        with pytest.raises(PaymentFailedError) as exc_info:
            booster.booster_payment("u1", "alice", "v1")
        assert "gateway down" in str(exc_info.value)
        assert store.lookup_incentive_party("alice") is None

    def test_program_finished(self, booster: BoosterEngine, social, store) -> None:
        _fill(store, 500)
        social.add_user("alice", "tw1")
        with pytest.raises(ProgramFinishedError) as exc_info:
            booster.booster_payment("u1", "alice", "v1")
        assert str(exc_info.value) == "program is finished"

    @pytest.mark.parametrize("handle", ["ghost", "fresh", "filler3"])
    def test_program_finished_before_any_other_check(
        self, booster: BoosterEngine, social, payments, network, store, handle: str
    ) -> None:
        _fill(store, 500)
        social.add_user("fresh", "tw1", followers=10, age_days=30, retweeted=False)
        network.validators["nowhere"] = ValidatorInfo(address="nowhere", stake=1)

        with pytest.raises(ProgramFinishedError):
            booster.booster_payment("u1", handle, "nowhere")
        assert payments.specs == []

    def test_price_follows_party_count(self, booster: BoosterEngine, social, store) -> None:
        _fill(store, 200)
        social.add_user("alice", "tw1")
        assert booster.booster_payment("u1", "alice", "v1").usd_price == 50

    def test_last_seat(self, booster: BoosterEngine, social, store) -> None:
        _fill(store, 499)
        social.add_user("alice", "tw1")
        booster.booster_payment("u1", "alice", "v1")
        assert store.booster_status_summary().all_parties == 500


class TestWhitelist:
    def test_whitelist(self, booster: BoosterEngine, social, store) -> None:
        social.add_user("alice", "tw1")
        entry = booster.whitelist("alice", "admin")
        assert entry.account_id == "tw1"
        assert store.is_whitelisted("tw1")

    def test_whitelist_twice(self, booster: BoosterEngine, social) -> None:
        social.add_user("alice", "tw1")
        booster.whitelist("alice", "admin")
        with pytest.raises(AlreadyWhitelistedError):
            booster.whitelist("alice", "admin")

    def test_whitelist_unknown_account(self, booster: BoosterEngine) -> None:
        with pytest.raises(AccountNotFoundError):
            booster.whitelist("ghost", "admin")


class TestBoosterClaim:
    @pytest.fixture()
    def registered(self, booster: BoosterEngine, social) -> IncentiveParty:
        social.add_user("alice", "tw1", followers=1500)
        return booster.booster_payment("u1", "alice", "v1")

    def test_claim_after_settlement(self, booster: BoosterEngine, registered, wallet, store) -> None:
        booster.settle_payment("tw1")
        tx_id: str = booster.booster_claim("Alice")

        assert tx_id == "tx1"
        assert wallet.bonds == [("vpk", "v1", "Validator Booster Program", 200 * 1_000_000_000)]
        assert store.get_incentive_party("tw1").bonding_tx_id == "tx1"

        with pytest.raises(AlreadyClaimedError):
            booster.booster_claim("alice")
        assert len(wallet.bonds) == 1

    def test_unpaid(self, booster: BoosterEngine, registered, wallet) -> None:
        with pytest.raises(PaymentNotSettledError):
            booster.booster_claim("alice")
        assert wallet.bonds == []

    def test_unknown_party(self, booster: BoosterEngine) -> None:
        with pytest.raises(PartyNotFoundError):
            booster.booster_claim("nobody")

    def test_settle_unknown_party(self, booster: BoosterEngine) -> None:
        with pytest.raises(NotFoundError):
            booster.settle_payment("nobody")

    def test_insufficient_balance(self, booster: BoosterEngine, registered, wallet) -> None:
        booster.settle_payment("tw1")
        wallet._balance = 0
        with pytest.raises(InsufficientBalanceError):
            booster.booster_claim("alice")

    def test_falls_back_to_recorded_key(
        self, booster: BoosterEngine, registered, snapshots, wallet
    ) -> None:
        booster.settle_payment("tw1")
        snapshots.peers[2] = PeerInfo(consensus_addresses=["v1"], consensus_keys=[])
        booster.booster_claim("alice")
        assert wallet.bonds[0][0] == "vpk"

    def test_send_failed(self, booster: BoosterEngine, registered, wallet, store) -> None:
        booster.settle_payment("tw1")
        wallet.tx_ids = [""]
        with pytest.raises(TransactionSendFailedError):
            booster.booster_claim("alice")
        assert store.get_incentive_party("tw1").bonding_tx_id == ""

    def test_commit_failure_is_unrecoverable(
        self, booster: BoosterEngine, registered, session_scope
    ) -> None:
        booster.settle_payment("tw1")
        session_scope.fail = True
        with pytest.raises(UnrecoverableError):
            booster.booster_claim("alice")
