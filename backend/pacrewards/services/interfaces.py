"""Contracts for the external collaborators the workflows depend on."""

from typing import Protocol

from pacrewards.services.schemas.network import (
    InvoiceReceipt,
    InvoiceSpec,
    NetworkSnapshot,
    TweetInfo,
    TwitterUser,
    ValidatorInfo,
)


class NetworkClient(Protocol):
    def get_network_info(self) -> NetworkSnapshot: ...

    def get_validator_info(self, address: str) -> ValidatorInfo:
        """Raises ValidatorNotFoundError when the address is not a validator."""
        ...

    def get_balance(self, address: str) -> int: ...


class Wallet(Protocol):
    def balance(self) -> int:
        """Spendable balance in NanoPAC."""
        ...

    def bond_transaction(self, public_key: str, address: str, memo: str, amount: int) -> str:
        """Sign and broadcast a bond; returns the transaction id."""
        ...


class SocialClient(Protocol):
    def user_info(self, handle: str) -> TwitterUser: ...

    def retweet_search(self, requester_id: str, handle: str) -> TweetInfo: ...


class PaymentGateway(Protocol):
    def create_payment(self, spec: InvoiceSpec) -> InvoiceReceipt: ...


class SnapshotProvider(Protocol):
    def snapshot(self) -> NetworkSnapshot: ...
