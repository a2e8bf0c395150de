"""Typed dataclasses for HabitDash data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in the store is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from habitdash.dates import to_legacy
from habitdash.errors import MalformedRecord


def _count(value: Any) -> int:
    """Coerce a stored counter to a non-negative int."""
    if isinstance(value, bool):
        return int(value)
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _optional_count(d: dict[str, Any], *keys: str) -> int | None:
    for key in keys:
        if key in d and d[key] is not None:
            return _count(d[key])
    return None


def _names(value: Any) -> list[str]:
    """Normalize a habit name list: strings only, de-duplicated, order kept."""
    if not isinstance(value, (list, tuple)):
        return []
    out: list[str] = []
    for v in value:
        name = str(v).strip() if v is not None else ""
        if name and name not in out:
            out.append(name)
    return out


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    focus_minutes: int = 25
    break_minutes: int = 5
    penalty_daily_limit: int = 5
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        defaults = cls()
        return cls(
            timezone=str(d.get("timezone") or defaults.timezone),
            focus_minutes=_count(d.get("focus_minutes", defaults.focus_minutes)) or defaults.focus_minutes,
            break_minutes=_count(d.get("break_minutes", defaults.break_minutes)) or defaults.break_minutes,
            penalty_daily_limit=_count(d.get("penalty_daily_limit", defaults.penalty_daily_limit)),
            log_level=str(d.get("log_level") or defaults.log_level).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "focus_minutes": self.focus_minutes,
            "break_minutes": self.break_minutes,
            "penalty_daily_limit": self.penalty_daily_limit,
            "log_level": self.log_level,
        }

    @property
    def focus_seconds(self) -> int:
        return self.focus_minutes * 60

    @property
    def break_seconds(self) -> int:
        return self.break_minutes * 60


# ── Ledger ────────────────────────────────────────────────────


@dataclass
class DailyLogEntry:
    """One day of activity. ``habits_completed`` follows the name list."""

    date: str
    habits_completed: int = 0
    completed_habit_names: list[str] = field(default_factory=list)
    focus_sessions: int = 0
    penalized_unit_count: int = 0

    def __post_init__(self) -> None:
        self.completed_habit_names = _names(self.completed_habit_names)
        if self.completed_habit_names:
            self.habits_completed = len(self.completed_habit_names)
        else:
            self.habits_completed = _count(self.habits_completed)
        self.focus_sessions = _count(self.focus_sessions)
        self.penalized_unit_count = _count(self.penalized_unit_count)

    @classmethod
    def from_dict(cls, day: str, d: Any) -> DailyLogEntry:
        from habitdash.migration import migrate_record

        return migrate_record(UnifiedRecord.from_dict(day, d))

    def has_activity(self) -> bool:
        return bool(
            self.habits_completed
            or self.completed_habit_names
            or self.focus_sessions
            or self.penalized_unit_count
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "habitsCompleted": self.habits_completed,
            "completedHabitNames": list(self.completed_habit_names),
            "focusSessions": self.focus_sessions,
            "penalizedUnitCount": self.penalized_unit_count,
        }


@dataclass
class UnifiedRecord:
    """A ledger entry exactly as stored; ``None`` marks an absent field."""

    date: str
    habits_completed: int | None = None
    completed_habit_names: list[str] | None = None
    focus_sessions: int | None = None
    penalized_unit_count: int | None = None
    kind: Literal["unified"] = field(default="unified", init=False)

    @classmethod
    def from_dict(cls, day: str, d: Any) -> UnifiedRecord:
        if not isinstance(d, dict):
            raise MalformedRecord(day, f"expected object, got {type(d).__name__}")
        raw_names = d.get("completedHabitNames", d.get("completedHabits"))
        return cls(
            date=day,
            habits_completed=_optional_count(d, "habitsCompleted"),
            completed_habit_names=_names(raw_names) if isinstance(raw_names, (list, tuple)) else None,
            focus_sessions=_optional_count(d, "focusSessions"),
            penalized_unit_count=_optional_count(d, "penalizedUnitCount", "snusCount"),
        )


PENALTY_STATUSES = ("success", "pending", "failed")


def penalized_status(count: int, daily_limit: int = 5) -> str:
    """Tri-state status of a day's penalized count."""
    if count <= 0:
        return "success"
    if count <= daily_limit:
        return "pending"
    return "failed"


@dataclass
class LegacyDayRecord:
    """Superseded per-day record keyed by the browser date string."""

    date: str  # ISO, resolved from the key
    habits: list[str] = field(default_factory=list)
    focus_sessions: int | None = None
    penalized_status: str = "pending"
    penalized_count: int | None = None
    all_habits_completed: bool = False
    kind: Literal["legacy"] = field(default="legacy", init=False)

    @classmethod
    def from_dict(cls, day: str, d: Any) -> LegacyDayRecord:
        if not isinstance(d, dict):
            raise MalformedRecord(day, f"expected object, got {type(d).__name__}")
        status = str(d.get("penaltyStatus", d.get("snusStatus", "pending")))
        if status not in PENALTY_STATUSES:
            status = "pending"
        return cls(
            date=day,
            habits=_names(d.get("habits")),
            focus_sessions=_optional_count(d, "focusSessions"),
            penalized_status=status,
            penalized_count=_optional_count(d, "penaltyCount", "snusCount"),
            all_habits_completed=bool(d.get("allHabitsCompleted", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": to_legacy(self.date),
            "habits": list(self.habits),
            "focusSessions": self.focus_sessions or 0,
            "penaltyStatus": self.penalized_status,
            "allHabitsCompleted": self.all_habits_completed,
        }
        if self.penalized_count is not None:
            d["penaltyCount"] = self.penalized_count
        return d


DayRecord = UnifiedRecord | LegacyDayRecord


# ── Habits ────────────────────────────────────────────────────


ICON_KEYS = (
    "target",
    "flame",
    "dumbbell",
    "rocket",
    "droplet",
    "book",
    "brain",
    "leaf",
    "moon",
    "heart",
)


@dataclass
class HabitDefinition:
    id: str
    name: str
    completed_today: bool = False
    icon_key: str = "target"

    def __post_init__(self) -> None:
        if self.icon_key not in ICON_KEYS:
            self.icon_key = ICON_KEYS[0]

    @classmethod
    def from_dict(cls, d: Any) -> HabitDefinition:
        if not isinstance(d, dict):
            raise MalformedRecord("habit", f"expected object, got {type(d).__name__}")
        habit_id = str(d.get("id") or "").strip()
        name = str(d.get("name") or "").strip()
        if not habit_id or not name:
            raise MalformedRecord("habit", "missing id or name")
        return cls(
            id=habit_id,
            name=name,
            completed_today=bool(d.get("completedToday", False)),
            icon_key=str(d.get("iconKey", ICON_KEYS[0])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "completedToday": self.completed_today,
            "iconKey": self.icon_key,
        }


# ── Timer ─────────────────────────────────────────────────────


class TimerMode(str, Enum):
    FOCUS = "focus"
    BREAK = "break"


class TimerPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class TimerState:
    """Persisted timer. ``remaining_duration_seconds`` is the duration at
    start while running, and the authoritative remaining time otherwise."""

    start_epoch_millis: int | None = None
    remaining_duration_seconds: int = 1500
    is_running: bool = False
    is_break_mode: bool = False

    @property
    def mode(self) -> TimerMode:
        return TimerMode.BREAK if self.is_break_mode else TimerMode.FOCUS

    @classmethod
    def from_dict(cls, d: Any) -> TimerState:
        if not isinstance(d, dict):
            raise MalformedRecord("timer", f"expected object, got {type(d).__name__}")
        start = d.get("startEpochMillis")
        remaining = d.get("remainingDurationSeconds")
        running = d.get("isRunning", False)
        if start is not None and (isinstance(start, bool) or not isinstance(start, (int, float))):
            raise MalformedRecord("timer", "startEpochMillis is not a number")
        if isinstance(remaining, bool) or not isinstance(remaining, (int, float)) or remaining < 0:
            raise MalformedRecord("timer", "remainingDurationSeconds is not a non-negative number")
        if bool(running) != (start is not None):
            raise MalformedRecord("timer", "isRunning disagrees with startEpochMillis")
        return cls(
            start_epoch_millis=int(start) if start is not None else None,
            remaining_duration_seconds=int(remaining),
            is_running=bool(running),
            is_break_mode=bool(d.get("isBreakMode", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "startEpochMillis": self.start_epoch_millis,
            "remainingDurationSeconds": self.remaining_duration_seconds,
            "isRunning": self.is_running,
            "isBreakMode": self.is_break_mode,
        }


@dataclass
class TimerReading:
    phase: TimerPhase
    mode: TimerMode
    remaining_seconds: int
    duration_seconds: int

    def progress(self) -> float:
        """Fraction of the interval elapsed, 0.0-1.0."""
        if self.duration_seconds <= 0:
            return 0.0
        return (self.duration_seconds - self.remaining_seconds) / self.duration_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "mode": self.mode.value,
            "remainingSeconds": self.remaining_seconds,
            "durationSeconds": self.duration_seconds,
            "progress": round(self.progress(), 3),
        }


# ── Streak ────────────────────────────────────────────────────


@dataclass
class StreakCounter:
    current_streak_length: int = 0
    last_qualifying_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentStreakLength": self.current_streak_length,
            "lastQualifyingDate": self.last_qualifying_date,
        }


# ── Stats ─────────────────────────────────────────────────────


@dataclass
class PowerStats:
    current_streak: int = 0
    longest_streak: int = 0
    total_habits: int = 0
    total_focus_sessions: int = 0
    focus_hours: int = 0
    clean_days: int = 0
    clean_day_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalHabits": self.total_habits,
            "totalFocusSessions": self.total_focus_sessions,
            "focusHours": self.focus_hours,
            "cleanDays": self.clean_days,
            "cleanDayRate": self.clean_day_rate,
        }


@dataclass
class WeekDay:
    date: str
    habits: list[str] = field(default_factory=list)
    focus_sessions: int = 0
    penalized_status: str = "pending"
    score: int | None = None  # None when nothing was logged

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "habits": self.habits,
            "focusSessions": self.focus_sessions,
            "penaltyStatus": self.penalized_status,
            "score": self.score,
        }


@dataclass
class WeeklyOverview:
    days: list[WeekDay] = field(default_factory=list)
    current_streak: int = 0
    success_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "days": [d.to_dict() for d in self.days],
            "currentStreak": self.current_streak,
            "successRate": self.success_rate,
        }
