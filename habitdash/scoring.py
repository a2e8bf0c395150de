"""Daily score, streak counting and clean-day rate for HabitDash.

Everything here is a pure function of a ledger snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from habitdash.dates import parse_iso, previous_day
from habitdash.models import DailyLogEntry, StreakCounter

QUALIFYING_SCORE = 3
HABIT_WEIGHT = 2
FOCUS_WEIGHT = 1
PENALTY_WEIGHT = 1


def daily_score(entry: DailyLogEntry) -> int:
    """habits*2 + focus - penalized. May be negative."""
    return (
        entry.habits_completed * HABIT_WEIGHT
        + entry.focus_sessions * FOCUS_WEIGHT
        - entry.penalized_unit_count * PENALTY_WEIGHT
    )


def display_score(entry: DailyLogEntry) -> int:
    """Score floored at 0, as shown on the heatmap."""
    return max(0, daily_score(entry))


def qualifies(entry: DailyLogEntry) -> bool:
    return daily_score(entry) >= QUALIFYING_SCORE


def _follows(earlier: DailyLogEntry, later: DailyLogEntry) -> bool:
    """True if *later* is the calendar day right after *earlier*."""
    a, b = parse_iso(earlier.date), parse_iso(later.date)
    if a is None or b is None:
        return False
    return b - a == timedelta(days=1)


def current_streak(entries: Iterable[DailyLogEntry]) -> int:
    """Qualifying days counted back from the most recent entry.

    Stops at the first non-qualifying entry or the first missing calendar day.
    A non-qualifying entry for today breaks the streak like any other day.
    """
    ordered = sorted(entries, key=lambda e: e.date, reverse=True)
    streak = 0
    newer: DailyLogEntry | None = None
    for entry in ordered:
        if newer is not None and not _follows(entry, newer):
            break
        if not qualifies(entry):
            break
        streak += 1
        newer = entry
    return streak


def longest_streak(entries: Iterable[DailyLogEntry]) -> int:
    """Longest run of consecutive qualifying days."""
    ordered = sorted(entries, key=lambda e: e.date)
    best = 0
    run = 0
    prev: DailyLogEntry | None = None
    for entry in ordered:
        if prev is not None and not _follows(prev, entry):
            run = 0
        if qualifies(entry):
            run += 1
            best = max(best, run)
        else:
            run = 0
        prev = entry
    return best


def clean_day_rate(entries: Iterable[DailyLogEntry]) -> float:
    """Percentage of logged days with no penalized units, one decimal.

    A day counts as logged only when it has some recorded activity; calendar
    days without an entry, and entries left all-zero (a habit toggled on and
    off again), are neither clean nor failed.
    """
    logged = [e for e in entries if e.has_activity()]
    if not logged:
        return 0.0
    clean = sum(1 for e in logged if e.penalized_unit_count == 0)
    return round(clean / len(logged) * 100, 1)


def advance_streak(counter: StreakCounter, day: str, score: int) -> StreakCounter:
    """Move the persisted streak counter when *day* first qualifies.

    Returns the same counter when nothing changes.
    """
    if score < QUALIFYING_SCORE:
        return counter
    last = counter.last_qualifying_date
    if last == day:
        return counter
    if last is not None and day < last:
        # Back-filling an older day never rewrites the running streak.
        return counter
    if last is not None and last == previous_day(day):
        length = counter.current_streak_length + 1
    else:
        length = 1
    return StreakCounter(current_streak_length=length, last_qualifying_date=day)
