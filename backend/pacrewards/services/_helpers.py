"""Shared utilities for the service layer."""

from datetime import UTC, datetime

# 1 PAC = 10^9 NanoPAC; all on-chain amounts are in NanoPAC.
CHANGE_PER_COIN: int = 1_000_000_000


def utc_now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    return utc_now().isoformat()


def coin_to_change(coins: int) -> int:
    return coins * CHANGE_PER_COIN


def change_to_coin(change: int) -> float:
    return change / CHANGE_PER_COIN


def years_before(moment: datetime, years: int) -> datetime:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)
