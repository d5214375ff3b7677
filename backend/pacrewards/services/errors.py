"""Shared exception hierarchy for claim and booster services."""

# ── Rejections ────────────────────────────────────────────────────────────────


class RejectionError(Exception):
    """Expected, user-facing refusal. Terminal for the invocation."""

    reason: str = "rejected"
    message: str = "request rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class AlreadyStakedError(RejectionError):
    reason = "already_staked"
    message = "this address is already a staked validator"


class InsufficientBalanceError(RejectionError):
    reason = "insufficient_balance"
    message = "insufficient wallet balance"


class ClaimerNotFoundError(RejectionError):
    reason = "claimer_not_found"
    message = "claimer not found"


class InvalidClaimerError(RejectionError):
    reason = "invalid_claimer"
    message = "invalid claimer"


class AlreadyClaimedError(RejectionError):
    reason = "already_claimed"
    message = "this reward has already been claimed"


class PeerNotFoundError(RejectionError):
    reason = "peer_not_found"

    def __init__(self, address: str) -> None:
        self.address: str = address
        super().__init__(f"peer does not exist with this address: {address}")


class NotPrimaryAddressError(RejectionError):
    reason = "not_primary_address"
    message = "please enter the first validator address"


class PublicKeyNotFoundError(RejectionError):
    reason = "public_key_not_found"
    message = "the peer has not published a public key for this address"


class TransactionSendFailedError(RejectionError):
    reason = "transaction_send_failed"
    message = "can't send bond transaction"


class ProgramFinishedError(RejectionError):
    reason = "program_finished"
    message = "program is finished"


class DuplicatePartyError(RejectionError):
    reason = "duplicate_party"
    message = "this Twitter account has already registered in the booster program"


class AccountNotFoundError(RejectionError):
    """Social-media profile lookup failed; carries the client's message."""

    reason = "account_not_found"
    message = "Twitter account not found"


class AccountTooNewError(RejectionError):
    reason = "account_too_new"
    message = "the Twitter account is not old enough"


class InsufficientFollowersError(RejectionError):
    reason = "insufficient_followers"
    message = "the Twitter account does not have enough followers"


class RetweetNotFoundError(RejectionError):
    reason = "retweet_not_found"
    message = "no qualifying retweet of the campaign post was found"


class PaymentFailedError(RejectionError):
    """Payment gateway refused the invoice; carries the gateway message."""

    reason = "payment_failed"
    message = "unable to create payment invoice"


class PartyNotFoundError(RejectionError):
    reason = "party_not_found"
    message = "no booster party registered for this Twitter account"


class PaymentNotSettledError(RejectionError):
    reason = "payment_not_settled"
    message = "the booster payment has not been settled yet"


# ── Fatal ─────────────────────────────────────────────────────────────────────


class UnrecoverableError(Exception):
    """Funds moved but the fact could not be recorded.

    Callers must treat this as a crash/alert signal, never as a rejection to
    show the user: retrying could bond the same reward twice.
    """


# ── Record store ──────────────────────────────────────────────────────────────


class StoreError(Exception):
    """Base exception for record store errors."""


class NotFoundError(StoreError):
    """Keyed record does not exist."""


class PersistError(StoreError):
    """Writing a table to durable storage failed."""


class AlreadyWhitelistedError(StoreError):
    """Account is already whitelisted."""


class AlreadyCommittedError(StoreError):
    """A transaction id is already recorded and cannot change."""


class DuplicateRecordError(StoreError):
    """Saving would break a uniqueness invariant."""


class CapacityExceededError(StoreError):
    """Table already holds the maximum number of records."""


# ── Collaborators ─────────────────────────────────────────────────────────────


class NetworkClientError(Exception):
    """Base exception for blockchain network client errors."""


class ValidatorNotFoundError(NetworkClientError):
    """The address is not a registered validator."""


class WalletError(Exception):
    """Wallet signer failed to build or broadcast a transaction."""


class SocialClientError(Exception):
    """Social-media API call failed."""


class PaymentGatewayError(Exception):
    """Payment gateway call failed."""
