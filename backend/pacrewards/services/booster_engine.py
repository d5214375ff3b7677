"""Validator Booster Program: eligibility, pricing, whitelist and claiming."""

from datetime import datetime, timedelta

import structlog

from config import ProgramSettings, get_settings
from pacrewards.services._helpers import coin_to_change, now_iso, utc_now, years_before
from pacrewards.services.errors import (
    AccountNotFoundError,
    AccountTooNewError,
    AlreadyClaimedError,
    AlreadyStakedError,
    CapacityExceededError,
    DuplicatePartyError,
    DuplicateRecordError,
    InsufficientBalanceError,
    InsufficientFollowersError,
    NotPrimaryAddressError,
    PartyNotFoundError,
    PaymentFailedError,
    PaymentGatewayError,
    PaymentNotSettledError,
    ProgramFinishedError,
    PublicKeyNotFoundError,
    RetweetNotFoundError,
    SocialClientError,
    TransactionSendFailedError,
    UnrecoverableError,
    ValidatorNotFoundError,
)
from pacrewards.services.interfaces import NetworkClient, PaymentGateway, SocialClient, Wallet
from pacrewards.services.locks import KeyedLock
from pacrewards.services.record_store import RecordStore
from pacrewards.services.schemas.network import (
    InvoiceReceipt,
    InvoiceSpec,
    ResolvedPeer,
    TweetInfo,
    TwitterUser,
)
from pacrewards.services.schemas.records import (
    BoosterStatusSummary,
    IncentiveParty,
    WhitelistEntry,
)
from pacrewards.services.validator_directory import ValidatorDirectory

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def booster_price(parties: int) -> int:
    """USD price of a package, tiered by how many parties already joined."""
    if parties < 100:
        return 30
    if parties < 200:
        return 40
    return 50


def booster_pac_amount(followers: int, program: ProgramSettings) -> int:
    if followers >= program.high_follower_threshold:
        return program.pac_amount_high
    return program.pac_amount_base


class BoosterEngine:
    """Gates and prices booster packages, then bonds them once paid."""

    def __init__(
        self,
        store: RecordStore,
        network: NetworkClient,
        wallet: Wallet,
        social: SocialClient,
        payments: PaymentGateway,
        directory: ValidatorDirectory,
        program: ProgramSettings | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self.store: RecordStore = store
        self.network: NetworkClient = network
        self.wallet: Wallet = wallet
        self.social: SocialClient = social
        self.payments: PaymentGateway = payments
        self.directory: ValidatorDirectory = directory
        self.program: ProgramSettings = program or get_settings().program
        self.locks: KeyedLock = locks or KeyedLock()

    # -- Payment -----------------------------------------------------------

    def booster_payment(
        self, requester_id: str, handle: str, validator_addr: str
    ) -> IncentiveParty:
        """Approve and price a package; returns the saved, unpaid party."""
        logger.info(
            "New booster payment request",
            discord_id=requester_id,
            twitter_name=handle,
            validator_addr=validator_addr,
        )
        with self.locks.hold(f"party:{handle.casefold()}", f"validator:{validator_addr}"):
            return self._booster_payment(requester_id, handle, validator_addr)

    def _booster_payment(
        self, requester_id: str, handle: str, validator_addr: str
    ) -> IncentiveParty:
        status: BoosterStatusSummary = self.store.booster_status_summary()
        if status.all_parties >= self.program.booster_cap:
            raise ProgramFinishedError()

        if self.store.lookup_incentive_party(handle) is not None:
            raise DuplicatePartyError()

        if self._is_validator(validator_addr):
            raise AlreadyStakedError()
        peer: ResolvedPeer = self._resolve_primary(validator_addr)

        try:
            profile: TwitterUser = self.social.user_info(handle)
        except SocialClientError as e:
            raise AccountNotFoundError(str(e)) from e

        # Handles can be renamed; the account id is what owns a package.
        with self.locks.hold(f"account:{profile.account_id}"):
            if self.store.get_incentive_party(profile.account_id) is not None:
                raise DuplicatePartyError()
            return self._register(requester_id, handle, validator_addr, peer, profile, status)

    def _register(
        self,
        requester_id: str,
        handle: str,
        validator_addr: str,
        peer: ResolvedPeer,
        profile: TwitterUser,
        status: BoosterStatusSummary,
    ) -> IncentiveParty:
        if not profile.verified and not self.store.is_whitelisted(profile.account_id):
            self._check_activity(profile)

        self._check_retweet(requester_id, handle)

        pac_amount: int = booster_pac_amount(profile.followers, self.program)
        usd_price: int = booster_price(status.all_parties)

        try:
            receipt: InvoiceReceipt = self.payments.create_payment(
                InvoiceSpec(
                    price_amount=usd_price,
                    order_id=profile.account_id,
                    order_description=(
                        f"{self.program.booster_memo}: {pac_amount} PAC "
                        f"for @{profile.display_name}"
                    ),
                )
            )
        except PaymentGatewayError as e:
            raise PaymentFailedError(str(e)) from e

        party: IncentiveParty = IncentiveParty(
            account_id=profile.account_id,
            display_name=profile.display_name,
            owner_id=requester_id,
            validator_address=validator_addr,
            public_key=peer.public_key or "",
            pac_amount=pac_amount,
            usd_price=usd_price,
            invoice_id=receipt.invoice_id,
            invoice_url=receipt.invoice_url,
            payment_settled=False,
            bonding_tx_id="",
            created_at=now_iso(),
        )
        try:
            self.store.save_incentive_party(party, limit=self.program.booster_cap, create=True)
        except CapacityExceededError as e:
            raise ProgramFinishedError() from e
        except DuplicateRecordError as e:
            raise DuplicatePartyError() from e

        logger.info(
            "Booster party registered",
            twitter_name=party.display_name,
            pac=pac_amount,
            usd=usd_price,
            invoice_id=receipt.invoice_id,
        )
        return party

    def _check_activity(self, profile: TwitterUser) -> None:
        cutoff: datetime = years_before(utc_now(), self.program.min_account_age_years)
        if profile.created_at > cutoff:
            raise AccountTooNewError()
        if profile.followers < self.program.min_followers:
            raise InsufficientFollowersError()

    def _check_retweet(self, requester_id: str, handle: str) -> None:
        try:
            tweet: TweetInfo = self.social.retweet_search(requester_id, handle)
        except SocialClientError as e:
            raise RetweetNotFoundError(str(e)) from e
        window: timedelta = timedelta(days=self.program.retweet_window_days)
        if tweet.created_at < utc_now() - window:
            raise RetweetNotFoundError(
                f"the retweet is older than {self.program.retweet_window_days} days"
            )

    # -- Whitelist and settlement ------------------------------------------

    def whitelist(self, handle: str, authorizer_id: str) -> WhitelistEntry:
        """Let an account skip the age and follower checks."""
        try:
            profile: TwitterUser = self.social.user_info(handle)
        except SocialClientError as e:
            raise AccountNotFoundError(str(e)) from e
        return self.store.whitelist(profile.account_id, profile.display_name, authorizer_id)

    def settle_payment(self, account_id: str) -> IncentiveParty:
        return self.store.mark_payment_settled(account_id)

    # -- Claim -------------------------------------------------------------

    def booster_claim(self, handle: str) -> str:
        """Bond a settled package to its validator; returns the transaction id."""
        party: IncentiveParty | None = self.store.lookup_incentive_party(handle)
        if party is None:
            raise PartyNotFoundError()
        with self.locks.hold(f"party:{handle.casefold()}", f"validator:{party.validator_address}"):
            return self._booster_claim(handle)

    def _booster_claim(self, handle: str) -> str:
        party: IncentiveParty | None = self.store.lookup_incentive_party(handle)
        if party is None:
            raise PartyNotFoundError()
        if not party.payment_settled:
            raise PaymentNotSettledError()
        if party.is_claimed:
            raise AlreadyClaimedError()

        if self.wallet.balance() < coin_to_change(self.program.min_wallet_reserve):
            raise InsufficientBalanceError()

        peer: ResolvedPeer = self._resolve_primary(party.validator_address)
        public_key: str | None = peer.public_key or party.public_key or None
        if public_key is None:
            raise PublicKeyNotFoundError()

        tx_id: str = self.wallet.bond_transaction(
            public_key,
            party.validator_address,
            self.program.booster_memo,
            coin_to_change(party.pac_amount),
        )
        if not tx_id:
            raise TransactionSendFailedError()

        try:
            self.store.commit_booster_transaction(party.account_id, tx_id)
        except Exception as e:
            logger.critical(
                "Bond sent but booster claim could not be recorded",
                twitter_id=party.account_id,
                tx_id=tx_id,
                error=str(e),
            )
            raise UnrecoverableError(
                f"bond transaction {tx_id} for @{party.display_name} was sent but not recorded: {e}"
            ) from e

        logger.info("Booster package bonded", twitter_name=party.display_name, tx_id=tx_id)
        return tx_id

    # -- Network -----------------------------------------------------------

    def _is_validator(self, address: str) -> bool:
        try:
            self.network.get_validator_info(address)
        except ValidatorNotFoundError:
            return False
        return True

    def _resolve_primary(self, address: str) -> ResolvedPeer:
        peer: ResolvedPeer = self.directory.resolve(address)
        if not peer.is_primary:
            raise NotPrimaryAddressError()
        return peer
