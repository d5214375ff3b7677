"""Testnet reward claim: validate a request and bond the reward exactly once."""

import structlog

from config import ProgramSettings, get_settings
from pacrewards.services._helpers import change_to_coin, coin_to_change
from pacrewards.services.errors import (
    AlreadyClaimedError,
    AlreadyStakedError,
    ClaimerNotFoundError,
    InsufficientBalanceError,
    InvalidClaimerError,
    NotPrimaryAddressError,
    PublicKeyNotFoundError,
    TransactionSendFailedError,
    UnrecoverableError,
    ValidatorNotFoundError,
)
from pacrewards.services.interfaces import NetworkClient, Wallet
from pacrewards.services.locks import KeyedLock
from pacrewards.services.record_store import RecordStore
from pacrewards.services.schemas.network import ResolvedPeer, ValidatorInfo
from pacrewards.services.schemas.records import ClaimRecord
from pacrewards.services.validator_directory import ValidatorDirectory

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ClaimWorkflow:
    """Ordered eligibility pipeline ending in a bond transaction.

    Checks short-circuit on the first failure and are never retried. The
    read-check-commit sequence runs under per-key locks for both the testnet
    address and the target validator, so two concurrent claims cannot both
    pass the "not yet claimed" check.
    """

    def __init__(
        self,
        store: RecordStore,
        network: NetworkClient,
        wallet: Wallet,
        directory: ValidatorDirectory,
        program: ProgramSettings | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self.store: RecordStore = store
        self.network: NetworkClient = network
        self.wallet: Wallet = wallet
        self.directory: ValidatorDirectory = directory
        self.program: ProgramSettings = program or get_settings().program
        self.locks: KeyedLock = locks or KeyedLock()

    def claim(self, requester_id: str, testnet_addr: str, mainnet_addr: str) -> str:
        """Bond the testnet reward to ``mainnet_addr``; returns the transaction id."""
        logger.info(
            "New claim request",
            discord_id=requester_id,
            testnet_addr=testnet_addr,
            mainnet_addr=mainnet_addr,
        )
        with self.locks.hold(f"claim:{testnet_addr}", f"validator:{mainnet_addr}"):
            return self._claim(requester_id, testnet_addr, mainnet_addr)

    def _claim(self, requester_id: str, testnet_addr: str, mainnet_addr: str) -> str:
        if self._is_staked(mainnet_addr):
            raise AlreadyStakedError()

        if self.wallet.balance() < coin_to_change(self.program.min_wallet_reserve):
            raise InsufficientBalanceError()

        record: ClaimRecord | None = self.store.lookup_claim(testnet_addr)
        if record is None:
            raise ClaimerNotFoundError()
        if record.owner_id != requester_id:
            raise InvalidClaimerError()
        if record.is_claimed:
            raise AlreadyClaimedError()

        peer: ResolvedPeer = self.directory.resolve(mainnet_addr)
        if not peer.is_primary:
            raise NotPrimaryAddressError()
        if peer.public_key is None:
            raise PublicKeyNotFoundError()

        tx_id: str = self.wallet.bond_transaction(
            peer.public_key, mainnet_addr, self.program.claim_memo, record.total_reward
        )
        if not tx_id:
            raise TransactionSendFailedError()

        try:
            self.store.commit_claim_transaction(testnet_addr, tx_id)
        except Exception as e:
            logger.critical(
                "Bond sent but claim could not be recorded",
                testnet_addr=testnet_addr,
                tx_id=tx_id,
                error=str(e),
            )
            raise UnrecoverableError(
                f"bond transaction {tx_id} for {testnet_addr} was sent but not recorded: {e}"
            ) from e

        logger.info(
            "Claim bonded",
            discord_id=requester_id,
            testnet_addr=testnet_addr,
            amount=record.total_reward,
            pac=change_to_coin(record.total_reward),
            tx_id=tx_id,
        )
        return tx_id

    def _is_staked(self, address: str) -> bool:
        try:
            info: ValidatorInfo = self.network.get_validator_info(address)
        except ValidatorNotFoundError:
            return False
        return info.stake > 0
