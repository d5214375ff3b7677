"""Crash-recoverable record store for claims, booster parties and whitelist.

The three tables are loaded once and stay fully resident. Every mutation is
written through to the database in its own transaction before the in-memory
table changes, so a failed write leaves both sides untouched. Each table has
its own lock; the store enforces its invariants under that lock.
"""

import threading
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from dataclasses import replace

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.connection import get_session
from db.models import Base, BoosterParties, Claimers, TwitterWhitelist
from pacrewards.services._helpers import now_iso
from pacrewards.services.errors import (
    AlreadyCommittedError,
    AlreadyWhitelistedError,
    CapacityExceededError,
    DuplicateRecordError,
    NotFoundError,
    PersistError,
)
from pacrewards.services.schemas.records import (
    BoosterStatusSummary,
    ClaimRecord,
    ClaimStatusSummary,
    IncentiveParty,
    WhitelistEntry,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

SessionScope = Callable[[], AbstractContextManager[Session]]


# -- Row mapping -----------------------------------------------------------


def _claim_from_row(row: Claimers) -> ClaimRecord:
    return ClaimRecord(
        testnet_address=row.testnet_address,
        owner_id=row.discord_id,
        total_reward=row.total_reward,
        claimed_tx_id=row.claimed_tx_id or "",
    )


def _claim_to_row(record: ClaimRecord) -> Claimers:
    return Claimers(
        testnet_address=record.testnet_address,
        discord_id=record.owner_id,
        total_reward=record.total_reward,
        claimed_tx_id=record.claimed_tx_id,
    )


def _party_from_row(row: BoosterParties) -> IncentiveParty:
    return IncentiveParty(
        account_id=row.twitter_id,
        display_name=row.twitter_name,
        owner_id=row.discord_id,
        validator_address=row.validator_address,
        public_key=row.validator_public_key or "",
        pac_amount=row.amount_pac,
        usd_price=row.total_price,
        invoice_id=row.invoice_id or "",
        invoice_url=row.invoice_url or "",
        payment_settled=bool(row.payment_settled),
        bonding_tx_id=row.transaction_id or "",
        created_at=row.created_at,
    )


def _party_to_row(party: IncentiveParty) -> BoosterParties:
    return BoosterParties(
        twitter_id=party.account_id,
        twitter_name=party.display_name,
        discord_id=party.owner_id,
        validator_address=party.validator_address,
        validator_public_key=party.public_key,
        amount_pac=party.pac_amount,
        total_price=party.usd_price,
        invoice_id=party.invoice_id,
        invoice_url=party.invoice_url,
        payment_settled=party.payment_settled,
        transaction_id=party.bonding_tx_id,
        created_at=party.created_at or now_iso(),
    )


def _entry_from_row(row: TwitterWhitelist) -> WhitelistEntry:
    return WhitelistEntry(
        account_id=row.twitter_id,
        display_name=row.twitter_name,
        whitelisted_by=row.whitelisted_by,
        created_at=row.created_at,
    )


def _entry_to_row(entry: WhitelistEntry) -> TwitterWhitelist:
    return TwitterWhitelist(
        twitter_id=entry.account_id,
        twitter_name=entry.display_name,
        whitelisted_by=entry.whitelisted_by,
        created_at=entry.created_at or now_iso(),
    )


class RecordStore:
    """Durable claim, booster-party and whitelist tables."""

    def __init__(self, session_scope: SessionScope = get_session) -> None:
        self._session_scope: SessionScope = session_scope
        self._claims: dict[str, ClaimRecord] = {}
        self._parties: dict[str, IncentiveParty] = {}
        self._whitelist: dict[str, WhitelistEntry] = {}
        self._claims_lock: threading.RLock = threading.RLock()
        self._parties_lock: threading.RLock = threading.RLock()
        self._whitelist_lock: threading.RLock = threading.RLock()

    @classmethod
    def open(cls, session_scope: SessionScope = get_session) -> "RecordStore":
        store: RecordStore = cls(session_scope)
        store.load()
        return store

    def load(self) -> None:
        """Read every table into memory, replacing what is resident."""
        try:
            with self._session_scope() as session:
                claims: dict[str, ClaimRecord] = {
                    row.testnet_address: _claim_from_row(row)
                    for row in session.scalars(select(Claimers))
                }
                parties: dict[str, IncentiveParty] = {
                    row.twitter_id: _party_from_row(row)
                    for row in session.scalars(select(BoosterParties))
                }
                whitelist: dict[str, WhitelistEntry] = {
                    row.twitter_id: _entry_from_row(row)
                    for row in session.scalars(select(TwitterWhitelist))
                }
        except SQLAlchemyError as e:
            raise PersistError(f"failed to load records: {e}") from e

        with self._claims_lock, self._parties_lock, self._whitelist_lock:
            self._claims = claims
            self._parties = parties
            self._whitelist = whitelist

        logger.info(
            "Record store loaded",
            claimers=len(claims),
            parties=len(parties),
            whitelisted=len(whitelist),
        )

    def _write(self, rows: Iterable[Base]) -> None:
        try:
            with self._session_scope() as session:
                for row in rows:
                    session.merge(row)
        except SQLAlchemyError as e:
            logger.error("Persisting records failed", error=str(e)[:200])
            raise PersistError(f"failed to persist records: {e}") from e

    # -- Claims ------------------------------------------------------------

    def lookup_claim(self, testnet_address: str) -> ClaimRecord | None:
        with self._claims_lock:
            record: ClaimRecord | None = self._claims.get(testnet_address)
            return replace(record) if record else None

    def commit_claim_transaction(self, testnet_address: str, tx_id: str) -> None:
        if not tx_id:
            raise ValueError("transaction id must not be empty")
        with self._claims_lock:
            record: ClaimRecord | None = self._claims.get(testnet_address)
            if record is None:
                raise NotFoundError(f"testnet address not found: {testnet_address}")
            if record.is_claimed:
                raise AlreadyCommittedError(
                    f"{testnet_address} is already claimed by {record.claimed_tx_id}"
                )
            updated: ClaimRecord = replace(record, claimed_tx_id=tx_id)
            self._write([_claim_to_row(updated)])
            self._claims[testnet_address] = updated

        logger.info(
            "New claim transaction added",
            discord_id=record.owner_id,
            amount=record.total_reward,
            tx_id=tx_id,
        )

    def claim_status_summary(self) -> ClaimStatusSummary:
        summary: ClaimStatusSummary = ClaimStatusSummary()
        with self._claims_lock:
            for c in self._claims.values():
                if c.is_claimed:
                    summary.claimed += 1
                    summary.claimed_amount += c.total_reward
                else:
                    summary.not_claimed += 1
                    summary.not_claimed_amount += c.total_reward
        return summary

    def import_claims(self, records: Iterable[ClaimRecord]) -> int:
        """Add unknown claim records. Existing addresses are never overwritten."""
        with self._claims_lock:
            new: dict[str, ClaimRecord] = {}
            for r in records:
                if r.testnet_address not in self._claims:
                    new[r.testnet_address] = replace(r)
            if new:
                self._write([_claim_to_row(r) for r in new.values()])
                self._claims.update(new)
        return len(new)

    # -- Booster parties ---------------------------------------------------

    def _find_party_by_name(self, display_name: str) -> IncentiveParty | None:
        wanted: str = display_name.casefold()
        for party in self._parties.values():
            if party.display_name.casefold() == wanted:
                return party
        return None

    def lookup_incentive_party(self, display_name: str) -> IncentiveParty | None:
        with self._parties_lock:
            party: IncentiveParty | None = self._find_party_by_name(display_name)
            return replace(party) if party else None

    def get_incentive_party(self, account_id: str) -> IncentiveParty | None:
        with self._parties_lock:
            party: IncentiveParty | None = self._parties.get(account_id)
            return replace(party) if party else None

    def save_incentive_party(
        self, party: IncentiveParty, *, limit: int | None = None, create: bool = False
    ) -> None:
        """Insert or replace a party keyed by account id.

        ``limit`` caps the number of distinct parties; it only applies to
        inserts. With ``create`` an existing account id is refused instead of
        replaced.
        """
        with self._parties_lock:
            existing: IncentiveParty | None = self._parties.get(party.account_id)
            if existing is not None and create:
                raise DuplicateRecordError(
                    f"account {party.account_id} already registered as {existing.display_name!r}"
                )
            if existing is None and limit is not None and len(self._parties) >= limit:
                raise CapacityExceededError(f"booster parties are capped at {limit}")
            clash: IncentiveParty | None = self._find_party_by_name(party.display_name)
            if clash is not None and clash.account_id != party.account_id:
                raise DuplicateRecordError(
                    f"display name {party.display_name!r} belongs to account {clash.account_id}"
                )
            if existing is not None and existing.is_claimed and (
                existing.bonding_tx_id != party.bonding_tx_id
            ):
                raise AlreadyCommittedError(
                    f"party {party.account_id} is already bonded by {existing.bonding_tx_id}"
                )
            saved: IncentiveParty = replace(party, created_at=party.created_at or now_iso())
            self._write([_party_to_row(saved)])
            self._parties[saved.account_id] = saved

    def mark_payment_settled(self, account_id: str) -> IncentiveParty:
        with self._parties_lock:
            party: IncentiveParty | None = self._parties.get(account_id)
            if party is None:
                raise NotFoundError(f"booster party not found: {account_id}")
            if not party.payment_settled:
                party = replace(party, payment_settled=True)
                self._write([_party_to_row(party)])
                self._parties[account_id] = party
                logger.info("Booster payment settled", twitter_id=account_id)
            return replace(party)

    def commit_booster_transaction(self, account_id: str, tx_id: str) -> None:
        if not tx_id:
            raise ValueError("transaction id must not be empty")
        with self._parties_lock:
            party: IncentiveParty | None = self._parties.get(account_id)
            if party is None:
                raise NotFoundError(f"booster party not found: {account_id}")
            if party.is_claimed:
                raise AlreadyCommittedError(
                    f"party {account_id} is already bonded by {party.bonding_tx_id}"
                )
            updated: IncentiveParty = replace(party, bonding_tx_id=tx_id)
            self._write([_party_to_row(updated)])
            self._parties[account_id] = updated

        logger.info(
            "New booster transaction added",
            twitter_name=party.display_name,
            amount=party.pac_amount,
            tx_id=tx_id,
        )

    def import_parties(self, parties: Iterable[IncentiveParty]) -> int:
        """Add unknown parties. Existing account ids are never overwritten.

        A party whose display name (case-insensitive) is already taken, by a
        resident party or an earlier one in the batch, is skipped.
        """
        with self._parties_lock:
            new: dict[str, IncentiveParty] = {}
            names: set[str] = {p.display_name.casefold() for p in self._parties.values()}
            for p in parties:
                if p.account_id in self._parties or p.account_id in new:
                    continue
                name: str = p.display_name.casefold()
                if name in names:
                    logger.warning(
                        "Skipping party with taken display name",
                        twitter_id=p.account_id,
                        twitter_name=p.display_name,
                    )
                    continue
                names.add(name)
                new[p.account_id] = replace(p, created_at=p.created_at or now_iso())
            if new:
                self._write([_party_to_row(p) for p in new.values()])
                self._parties.update(new)
        return len(new)

    # -- Whitelist ---------------------------------------------------------

    def is_whitelisted(self, account_id: str) -> bool:
        with self._whitelist_lock:
            return account_id in self._whitelist

    def whitelist(self, account_id: str, display_name: str, authorizer: str) -> WhitelistEntry:
        with self._whitelist_lock:
            if account_id in self._whitelist:
                raise AlreadyWhitelistedError(f"the Twitter `{display_name}` is already whitelisted")
            entry: WhitelistEntry = WhitelistEntry(
                account_id=account_id,
                display_name=display_name,
                whitelisted_by=authorizer,
                created_at=now_iso(),
            )
            self._write([_entry_to_row(entry)])
            self._whitelist[account_id] = entry

        logger.info("Twitter account whitelisted", twitter_name=display_name, by=authorizer)
        return replace(entry)

    def import_whitelist(self, entries: Iterable[WhitelistEntry]) -> int:
        with self._whitelist_lock:
            new: dict[str, WhitelistEntry] = {}
            for e in entries:
                if e.account_id not in self._whitelist:
                    new[e.account_id] = replace(e, created_at=e.created_at or now_iso())
            if new:
                self._write([_entry_to_row(e) for e in new.values()])
                self._whitelist.update(new)
        return len(new)

    # -- Summaries ---------------------------------------------------------

    def booster_status_summary(self) -> BoosterStatusSummary:
        summary: BoosterStatusSummary = BoosterStatusSummary()
        with self._parties_lock, self._whitelist_lock:
            for p in self._parties.values():
                summary.all_parties += 1
                summary.pac += p.pac_amount
                summary.usd += p.usd_price
                if p.payment_settled:
                    summary.payment_done += 1
                else:
                    summary.payment_waiting += 1
                if p.is_claimed:
                    summary.claimed += 1
                else:
                    summary.unclaimed += 1
            summary.whitelists = len(self._whitelist)
        return summary
