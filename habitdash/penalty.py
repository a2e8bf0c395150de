"""Penalized-habit counter for HabitDash.

Adjusts the day's penalized unit count through the ledger and keeps the
superseded per-day record in step for readers that still use it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from habitdash.ledger import Ledger
from habitdash.models import DailyLogEntry, penalized_status
from habitdash.workspace import today_str

logger = logging.getLogger(__name__)


class PenaltyCounter:
    def __init__(self, ledger: Ledger, today: Callable[[], str] | None = None) -> None:
        self.ledger = ledger
        self._today = today or today_str

    def count(self, day: str | None = None) -> int:
        entry = self.ledger.get_entry(day or self._today())
        return entry.penalized_unit_count if entry else 0

    def status(self, day: str | None = None) -> str:
        return penalized_status(self.count(day), self.ledger.penalty_daily_limit)

    def increment(self, day: str | None = None) -> DailyLogEntry:
        return self._adjust(day or self._today(), 1)

    def decrement(self, day: str | None = None) -> DailyLogEntry:
        """Undo one unit; the count never drops below zero."""
        return self._adjust(day or self._today(), -1)

    def _adjust(self, day: str, delta: int) -> DailyLogEntry:
        entry = self.ledger.adjust_penalized_count(day, delta)
        self.ledger.write_legacy_day(entry)
        if entry.penalized_unit_count > self.ledger.penalty_daily_limit:
            logger.info(
                "Penalized count %d over daily limit %d on %s",
                entry.penalized_unit_count,
                self.ledger.penalty_daily_limit,
                day,
            )
        return entry
