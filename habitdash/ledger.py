"""Daily activity ledger for HabitDash.

The ledger maps ISO dates to DailyLogEntry records under one store key.
Every surface (habit list, focus timer, penalty counter, manual edits)
writes through ``Ledger.record_habit_completion`` so no writer patches a
partial entry on its own. Older per-day records are merged in on read.

After each write the streak counter is advanced and subscribed listeners
are notified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from habitdash.dates import from_legacy, parse_iso, to_legacy
from habitdash.errors import MalformedRecord, StoreUnavailable
from habitdash.migration import merge_day
from habitdash.models import (
    DailyLogEntry,
    HabitDefinition,
    LegacyDayRecord,
    StreakCounter,
    UnifiedRecord,
    penalized_status,
)
from habitdash.scoring import advance_streak, daily_score
from habitdash.store import (
    DAY_GUARD_KEY,
    LAST_COMPLETED_DATE_KEY,
    LEDGER_KEY,
    LEGACY_DAY_PREFIX,
    STREAK_KEY,
    KeyValueStore,
)
from habitdash.workspace import today_str

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Ledger:
    """Read-modify-write access to the ledger plus a listener registry."""

    def __init__(
        self,
        store: KeyValueStore,
        today: Callable[[], str] | None = None,
        penalty_daily_limit: int = 5,
    ) -> None:
        self.store = store
        self._today = today or today_str
        self.penalty_daily_limit = penalty_daily_limit
        self._listeners: list[Listener] = []

    # ── Listeners ─────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a no-argument callback. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _broadcast(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Ledger listener %r failed", listener)

    # ── Reading ───────────────────────────────────────────────

    @staticmethod
    def _unified_value(raw: Any) -> dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed ledger value of type %s", type(raw).__name__)
            return {}
        return raw

    def _read_unified(self) -> dict[str, Any]:
        try:
            raw = self.store.get(LEDGER_KEY)
        except StoreUnavailable as e:
            logger.warning("Ledger unavailable, using empty history: %s", e)
            return {}
        return self._unified_value(raw)

    def _unified_records(self, raw: dict[str, Any]) -> dict[str, UnifiedRecord]:
        records = {}
        for day, value in raw.items():
            if parse_iso(day) is None:
                logger.warning("Skipping ledger entry with bad date key %r", day)
                continue
            try:
                records[day] = UnifiedRecord.from_dict(day, value)
            except MalformedRecord as e:
                logger.warning("Skipping malformed ledger entry: %s", e)
        return records

    def _legacy_records(self, document: dict[str, Any]) -> dict[str, LegacyDayRecord]:
        records: dict[str, LegacyDayRecord] = {}
        for key in sorted(k for k in document if k.startswith(LEGACY_DAY_PREFIX)):
            value = document[key]
            day = from_legacy(key[len(LEGACY_DAY_PREFIX):])
            if day is None and isinstance(value, dict):
                day = from_legacy(str(value.get("date", "")))
            if day is None:
                logger.warning("Skipping legacy record with unreadable date %r", key)
                continue
            try:
                records[day] = LegacyDayRecord.from_dict(day, value)
            except MalformedRecord as e:
                logger.warning("Skipping malformed legacy record: %s", e)
        return records

    def _records(self) -> tuple[dict[str, UnifiedRecord], dict[str, LegacyDayRecord]]:
        """Unified and legacy records from one read of the store."""
        try:
            document = self.store.snapshot()
        except StoreUnavailable as e:
            logger.warning("Ledger unavailable, using empty history: %s", e)
            return {}, {}
        unified = self._unified_records(self._unified_value(document.get(LEDGER_KEY)))
        return unified, self._legacy_records(document)

    def load_ledger(self) -> dict[str, DailyLogEntry]:
        """All days, legacy records merged in, oldest first."""
        unified, legacy = self._records()
        ledger = {}
        for day in sorted(set(unified) | set(legacy)):
            ledger[day] = merge_day(unified.get(day), legacy.get(day))
        return ledger

    def entries(self) -> list[DailyLogEntry]:
        return list(self.load_ledger().values())

    def get_entry(self, day: str) -> DailyLogEntry | None:
        unified, legacy = self._records()
        if day not in unified and day not in legacy:
            return None
        return merge_day(unified.get(day), legacy.get(day))

    # ── Writing ───────────────────────────────────────────────

    def record_habit_completion(
        self,
        day: str,
        habit_names: Iterable[str],
        focus_sessions: int | None = None,
        penalized_count: int | None = None,
        habits_completed: int | None = None,
    ) -> DailyLogEntry:
        """Upsert the entry for *day*; the single write path for the ledger.

        ``None`` for focus_sessions or penalized_count keeps the stored value.
        The habit count follows *habit_names*; ``habits_completed`` is only
        used when no names are given, for days that carry a bare count.
        """
        if parse_iso(day) is None:
            raise ValueError(f"Invalid date: {day!r}")
        current = self.get_entry(day) or DailyLogEntry(date=day)
        entry = DailyLogEntry(
            date=day,
            habits_completed=habits_completed or 0,
            completed_habit_names=list(habit_names),
            focus_sessions=current.focus_sessions if focus_sessions is None else focus_sessions,
            penalized_unit_count=(
                current.penalized_unit_count if penalized_count is None else penalized_count
            ),
        )

        raw = self._read_unified()
        raw[day] = entry.to_dict()
        try:
            self.store.set(LEDGER_KEY, raw)
        except StoreUnavailable as e:
            logger.error("Could not persist ledger entry for %s: %s", day, e)

        self._update_streak(entry)
        self._broadcast()
        return entry

    def increment_focus_sessions(self, day: str) -> DailyLogEntry:
        current = self.get_entry(day) or DailyLogEntry(date=day)
        return self.record_habit_completion(
            day,
            current.completed_habit_names,
            focus_sessions=current.focus_sessions + 1,
            habits_completed=current.habits_completed,
        )

    def adjust_penalized_count(self, day: str, delta: int) -> DailyLogEntry:
        current = self.get_entry(day) or DailyLogEntry(date=day)
        return self.record_habit_completion(
            day,
            current.completed_habit_names,
            penalized_count=max(0, current.penalized_unit_count + delta),
            habits_completed=current.habits_completed,
        )

    def save_entry(self, entry: DailyLogEntry) -> DailyLogEntry:
        """Replace a whole day, e.g. from a manual edit, and mirror it to the legacy record."""
        saved = self.record_habit_completion(
            entry.date,
            entry.completed_habit_names,
            focus_sessions=entry.focus_sessions,
            penalized_count=entry.penalized_unit_count,
            habits_completed=entry.habits_completed,
        )
        self.write_legacy_day(saved)
        return saved

    def write_legacy_day(self, entry: DailyLogEntry, all_habits_completed: bool | None = None) -> None:
        """Write the superseded per-day record, keeping fields the entry does not cover."""
        key = LEGACY_DAY_PREFIX + to_legacy(entry.date)
        try:
            existing = self.store.get(key)
            previous = None
            if existing is not None:
                try:
                    previous = LegacyDayRecord.from_dict(entry.date, existing)
                except MalformedRecord as e:
                    logger.warning("Replacing malformed legacy record: %s", e)
            record = LegacyDayRecord(
                date=entry.date,
                habits=list(entry.completed_habit_names),
                focus_sessions=entry.focus_sessions,
                penalized_status=penalized_status(entry.penalized_unit_count, self.penalty_daily_limit),
                penalized_count=entry.penalized_unit_count,
                all_habits_completed=(
                    all_habits_completed
                    if all_habits_completed is not None
                    else bool(previous and previous.all_habits_completed)
                ),
            )
            self.store.set(key, record.to_dict())
        except StoreUnavailable as e:
            logger.error("Could not write legacy record for %s: %s", entry.date, e)

    # ── Streak counter ────────────────────────────────────────

    def streak_counter(self) -> StreakCounter:
        try:
            length = self.store.get(STREAK_KEY, 0)
            last = self.store.get(LAST_COMPLETED_DATE_KEY)
        except StoreUnavailable as e:
            logger.warning("Streak counter unavailable: %s", e)
            return StreakCounter()
        if isinstance(length, bool) or not isinstance(length, int) or length < 0:
            length = 0
        if not isinstance(last, str) or parse_iso(last) is None:
            last = None
        return StreakCounter(current_streak_length=length, last_qualifying_date=last)

    def _update_streak(self, entry: DailyLogEntry) -> None:
        counter = self.streak_counter()
        advanced = advance_streak(counter, entry.date, daily_score(entry))
        if advanced is counter:
            return
        try:
            self.store.set(STREAK_KEY, advanced.current_streak_length)
            self.store.set(LAST_COMPLETED_DATE_KEY, advanced.last_qualifying_date)
        except StoreUnavailable as e:
            logger.error("Could not persist streak counter: %s", e)
            return
        logger.info("Streak now %d (%s)", advanced.current_streak_length, entry.date)

    # ── Day rollover ──────────────────────────────────────────

    def day_guard(self) -> str | None:
        try:
            value = self.store.get(DAY_GUARD_KEY)
        except StoreUnavailable as e:
            logger.warning("Day guard unavailable: %s", e)
            return None
        return value if isinstance(value, str) else None

    def set_day_guard(self, day: str) -> None:
        try:
            self.store.set(DAY_GUARD_KEY, day)
        except StoreUnavailable as e:
            logger.error("Could not persist day guard: %s", e)

    def rollover_day(
        self,
        previous_date: str,
        habits: list[HabitDefinition],
        current_date: str | None = None,
    ) -> bool:
        """Freeze *previous_date* and clear today's completion flags.

        Runs only while the day guard still points at *previous_date*, so a
        repeated call for the same transition does nothing and returns False.
        The caller persists the reset habit list.
        """
        if self.day_guard() != previous_date:
            return False
        if current_date is None:
            current_date = self._today()

        completed = [h.name for h in habits if h.completed_today]
        if completed:
            self.record_habit_completion(previous_date, completed)
        for habit in habits:
            habit.completed_today = False

        self.set_day_guard(current_date)
        logger.info(
            "Rolled over %s -> %s (%d habits frozen)", previous_date, current_date, len(completed)
        )
        return True
