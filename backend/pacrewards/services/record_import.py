"""Provisioning: load legacy JSON documents into the record store.

Each document is a JSON object keyed by record id (testnet address or Twitter
account id). Keys inside a record may be snake_case or the exported field
names of the previous service (``DiscordID``, ``TotalReward`` ...).
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from pacrewards.services.record_store import RecordStore
from pacrewards.services.schemas.records import ClaimRecord, IncentiveParty, WhitelistEntry

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

JsonDict = dict[str, Any]

CLAIMERS_FILE: str = "claimers.json"
PARTIES_FILE: str = "twitter_campaign.json"
WHITELIST_FILE: str = "twitter_whitelisted.json"


class ImportFormatError(Exception):
    """A legacy document is not shaped as expected."""


@dataclass
class ImportResult:
    claims: int = 0
    parties: int = 0
    whitelist: int = 0
    skipped: list[str] = field(default_factory=list)


def _field(doc: JsonDict, *names: str, default: Any = None) -> Any:
    """First present, non-null value among ``names``."""
    for name in names:
        value: Any = doc.get(name)
        if value is not None:
            return value
    return default


def load_document(path: Path) -> JsonDict:
    """Missing file reads as an empty table."""
    if not path.exists():
        return {}
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8") or "{}")
    except ValueError as e:
        raise ImportFormatError(f"{path.name}: invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ImportFormatError(f"{path.name}: expected an object keyed by id")
    return data


def parse_claims(doc: JsonDict) -> list[ClaimRecord]:
    records: list[ClaimRecord] = []
    for address, raw in doc.items():
        if not isinstance(raw, dict):
            raise ImportFormatError(f"claimer {address}: expected an object")
        records.append(
            ClaimRecord(
                testnet_address=address,
                owner_id=str(_field(raw, "discord_id", "DiscordID", default="")),
                total_reward=int(_field(raw, "total_reward", "TotalReward", default=0)),
                claimed_tx_id=str(_field(raw, "claimed_tx_id", "ClaimedTxID", default="")),
            )
        )
    return records


def parse_parties(doc: JsonDict) -> list[IncentiveParty]:
    parties: list[IncentiveParty] = []
    for account_id, raw in doc.items():
        if not isinstance(raw, dict):
            raise ImportFormatError(f"party {account_id}: expected an object")
        parties.append(
            IncentiveParty(
                account_id=str(_field(raw, "twitter_id", "TwitterID", default=account_id)),
                display_name=str(_field(raw, "twitter_name", "TwitterName", default="")),
                owner_id=str(_field(raw, "discord_id", "DiscordID", default="")),
                validator_address=str(_field(raw, "validator_address", "ValAddr", default="")),
                public_key=str(_field(raw, "validator_public_key", "ValPubKey", default="")),
                pac_amount=int(_field(raw, "amount_in_pac", "AmountInPAC", default=0)),
                usd_price=int(_field(raw, "total_price", "TotalPrice", default=0)),
                invoice_id=str(_field(raw, "invoice_id", "NowPaymentsInvoiceID", default="")),
                payment_settled=bool(
                    _field(raw, "payment_settled", "NowPaymentsFinished", default=False)
                ),
                bonding_tx_id=str(_field(raw, "transaction_id", "BondingTxID", default="")),
                created_at=str(_field(raw, "created_at", "CreatedAt", default="")),
            )
        )
    return parties


def parse_whitelist(doc: JsonDict) -> list[WhitelistEntry]:
    entries: list[WhitelistEntry] = []
    for account_id, raw in doc.items():
        if not isinstance(raw, dict):
            raise ImportFormatError(f"whitelist {account_id}: expected an object")
        entries.append(
            WhitelistEntry(
                account_id=str(_field(raw, "twitter_id", "TwitterID", default=account_id)),
                display_name=str(_field(raw, "twitter_name", "TwitterName", default="")),
                whitelisted_by=str(_field(raw, "whitelisted_by", "WhitelistedBy", default="")),
            )
        )
    return entries


def import_directory(store: RecordStore, directory: Path, dry_run: bool = False) -> ImportResult:
    """Import every legacy document found in ``directory``.

    Records already in the store, or parties whose display name is taken, are
    left untouched and counted as skipped.
    """
    claims: list[ClaimRecord] = parse_claims(load_document(directory / CLAIMERS_FILE))
    parties: list[IncentiveParty] = parse_parties(load_document(directory / PARTIES_FILE))
    entries: list[WhitelistEntry] = parse_whitelist(load_document(directory / WHITELIST_FILE))

    result: ImportResult = ImportResult()
    if dry_run:
        result.claims, result.parties, result.whitelist = len(claims), len(parties), len(entries)
        return result

    result.claims = store.import_claims(claims)
    result.parties = store.import_parties(parties)
    result.whitelist = store.import_whitelist(entries)

    for kind, total, added in (
        ("claimers", len(claims), result.claims),
        ("parties", len(parties), result.parties),
        ("whitelist", len(entries), result.whitelist),
    ):
        if total > added:
            result.skipped.append(f"{kind}: {total - added} already present or duplicated")

    logger.info(
        "Legacy records imported",
        directory=str(directory),
        claims=result.claims,
        parties=result.parties,
        whitelist=result.whitelist,
    )
    return result
