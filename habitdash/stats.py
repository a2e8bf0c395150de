"""Derived read models for HabitDash: power stats and the weekly overview."""

from __future__ import annotations

from habitdash.dates import last_n_days
from habitdash.models import (
    DailyLogEntry,
    PowerStats,
    WeekDay,
    WeeklyOverview,
    penalized_status,
)
from habitdash.scoring import (
    clean_day_rate,
    current_streak,
    display_score,
    longest_streak,
)

FOCUS_SESSION_MINUTES = 25


def power_stats(entries: list[DailyLogEntry]) -> PowerStats:
    """Totals and streaks across the whole ledger."""
    stats = PowerStats()
    if not entries:
        return stats
    stats.current_streak = current_streak(entries)
    stats.longest_streak = longest_streak(entries)
    stats.total_habits = sum(e.habits_completed for e in entries)
    stats.total_focus_sessions = sum(e.focus_sessions for e in entries)
    stats.focus_hours = round(stats.total_focus_sessions * FOCUS_SESSION_MINUTES / 60)
    stats.clean_days = sum(1 for e in entries if e.has_activity() and e.penalized_unit_count == 0)
    stats.clean_day_rate = clean_day_rate(entries)
    return stats


def weekly_overview(
    ledger: dict[str, DailyLogEntry],
    today: str,
    penalty_daily_limit: int = 5,
) -> WeeklyOverview:
    """The seven days ending today, oldest first.

    A day is a success when its penalized status is ``success``, or when it
    is still ``pending`` but at least one habit was done. Days without any
    recorded activity count as not logged.
    """
    overview = WeeklyOverview()
    for day in last_n_days(today, 7):
        entry = ledger.get(day)
        if entry is None or not entry.has_activity():
            overview.days.append(WeekDay(date=day))
            continue
        overview.days.append(WeekDay(
            date=day,
            habits=list(entry.completed_habit_names),
            focus_sessions=entry.focus_sessions,
            penalized_status=penalized_status(entry.penalized_unit_count, penalty_daily_limit),
            score=display_score(entry),
        ))

    logged = {d.date for d in overview.days if d.score is not None}
    overview.current_streak = current_streak(ledger[day] for day in logged)

    successes = sum(
        1
        for d in overview.days
        if d.date in logged
        and (d.penalized_status == "success" or (d.penalized_status == "pending" and d.habits))
    )
    overview.success_rate = round(successes / len(overview.days) * 100) if overview.days else 0
    return overview
