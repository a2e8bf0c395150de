"""Legacy-to-unified migration for HabitDash.

Two superseded shapes are still read:

* per-day records under ``day-data-<Www Mmm DD YYYY>``, still written by the
  penalty counter and by manual ledger edits;
* the flat ``habits`` list (``{id, name, completed, emoji}``) that predates
  ``habit-structure``.
"""

from __future__ import annotations

import logging
from typing import Any

from habitdash.errors import MalformedRecord
from habitdash.models import (
    ICON_KEYS,
    DailyLogEntry,
    DayRecord,
    HabitDefinition,
    LegacyDayRecord,
    UnifiedRecord,
)

logger = logging.getLogger(__name__)


def migrate_record(record: DayRecord) -> DailyLogEntry:
    """Turn either record shape into a DailyLogEntry."""
    if isinstance(record, UnifiedRecord):
        return DailyLogEntry(
            date=record.date,
            habits_completed=record.habits_completed or 0,
            completed_habit_names=record.completed_habit_names or [],
            focus_sessions=record.focus_sessions or 0,
            penalized_unit_count=record.penalized_unit_count or 0,
        )
    if isinstance(record, LegacyDayRecord):
        # A legacy record without a count only knows its status; the count is 0 then.
        return DailyLogEntry(
            date=record.date,
            completed_habit_names=record.habits,
            focus_sessions=record.focus_sessions or 0,
            penalized_unit_count=record.penalized_count or 0,
        )
    raise TypeError(f"Unknown day record: {record!r}")


def merge_day(unified: UnifiedRecord | None, legacy: LegacyDayRecord | None) -> DailyLogEntry:
    """Merge both shapes for one day.

    Unified fields win; legacy focus/penalized values fill fields the unified
    record does not have.
    """
    if unified is None and legacy is None:
        raise ValueError("merge_day needs at least one record")
    if unified is None:
        return migrate_record(legacy)
    if legacy is None:
        return migrate_record(unified)

    backfilled = UnifiedRecord(
        date=unified.date,
        habits_completed=unified.habits_completed,
        completed_habit_names=unified.completed_habit_names,
        focus_sessions=(
            unified.focus_sessions if unified.focus_sessions is not None else legacy.focus_sessions
        ),
        penalized_unit_count=(
            unified.penalized_unit_count
            if unified.penalized_unit_count is not None
            else legacy.penalized_count
        ),
    )
    return migrate_record(backfilled)


# ── Habit list upgrade ────────────────────────────────────────


EMOJI_ICONS = {
    "🎯": "target",
    "🔥": "flame",
    "🚭": "flame",
    "💪": "dumbbell",
    "🏋️": "dumbbell",
    "🚀": "rocket",
    "💧": "droplet",
    "📚": "book",
    "📖": "book",
    "🧠": "brain",
    "🥗": "leaf",
    "🌱": "leaf",
    "😴": "moon",
    "🌙": "moon",
    "❤️": "heart",
}


def upgrade_legacy_habit(d: Any) -> HabitDefinition:
    """Convert one ``{id, name, completed, emoji}`` item to a HabitDefinition."""
    if not isinstance(d, dict):
        raise MalformedRecord("habits", f"expected object, got {type(d).__name__}")
    emoji = str(d.get("emoji") or "").strip()
    return HabitDefinition.from_dict({
        "id": d.get("id"),
        "name": d.get("name"),
        "completedToday": bool(d.get("completed", False)),
        "iconKey": EMOJI_ICONS.get(emoji, ICON_KEYS[0]),
    })


def upgrade_legacy_habits(items: Any) -> list[HabitDefinition]:
    """Upgrade the whole legacy list. Raises MalformedRecord on a bad shape."""
    if not isinstance(items, list):
        raise MalformedRecord("habits", "expected a list")
    habits = [upgrade_legacy_habit(item) for item in items]
    logger.info("Upgraded %d legacy habits", len(habits))
    return habits
