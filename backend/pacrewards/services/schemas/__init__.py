"""Shared dataclasses for claim and booster services."""

from pacrewards.services.schemas.network import (
    InvoiceReceipt,
    InvoiceSpec,
    NetworkSnapshot,
    PeerInfo,
    ResolvedPeer,
    TweetInfo,
    TwitterUser,
    ValidatorInfo,
)
from pacrewards.services.schemas.records import (
    BoosterStatusSummary,
    ClaimRecord,
    ClaimStatusSummary,
    IncentiveParty,
    WhitelistEntry,
)

__all__ = [
    # Collaborator schemas
    "InvoiceReceipt",
    "InvoiceSpec",
    "NetworkSnapshot",
    "PeerInfo",
    "ResolvedPeer",
    "TweetInfo",
    "TwitterUser",
    "ValidatorInfo",
    # Record schemas
    "BoosterStatusSummary",
    "ClaimRecord",
    "ClaimStatusSummary",
    "IncentiveParty",
    "WhitelistEntry",
]
