"""Calendar date helpers: ISO ledger keys and the legacy display format."""

from __future__ import annotations

from datetime import date, datetime, timedelta

# Matches the browser's Date.toDateString(), e.g. "Sun Oct 18 2026".
LEGACY_DATE_FORMAT = "%a %b %d %Y"


def parse_iso(day: str) -> date | None:
    """Parse 'YYYY-MM-DD', returning None when invalid."""
    try:
        return date.fromisoformat(day)
    except (TypeError, ValueError):
        return None


def to_legacy(day: str) -> str:
    """'2026-10-18' -> 'Sun Oct 18 2026'."""
    return date.fromisoformat(day).strftime(LEGACY_DATE_FORMAT)


def from_legacy(text: str) -> str | None:
    """'Sun Oct 18 2026' -> '2026-10-18', or None if unparseable."""
    try:
        return datetime.strptime(text.strip(), LEGACY_DATE_FORMAT).date().isoformat()
    except (AttributeError, ValueError):
        return None


def previous_day(day: str) -> str:
    return (date.fromisoformat(day) - timedelta(days=1)).isoformat()


def last_n_days(today: str, n: int) -> list[str]:
    """The n ISO dates ending at today, oldest first."""
    end = date.fromisoformat(today)
    return [(end - timedelta(days=i)).isoformat() for i in range(n - 1, -1, -1)]
