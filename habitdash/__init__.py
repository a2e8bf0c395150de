"""HabitDash core library — ledger, scoring, timer and habit engines.

Public API re-exports for convenient imports:
    from habitdash import open_dashboard, Ledger, daily_score, ...
"""

# Workspace & paths
from habitdash.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    today_str,
    init_workspace,
    now_millis,
    store_path,
    settings_path,
)

# Errors
from habitdash.errors import (
    HabitDashError,
    StoreUnavailable,
    MalformedRecord,
)

# Store
from habitdash.store import KeyValueStore

# Migration
from habitdash.migration import (
    migrate_record,
    merge_day,
    upgrade_legacy_habits,
)

# Scoring
from habitdash.scoring import (
    QUALIFYING_SCORE,
    daily_score,
    display_score,
    qualifies,
    current_streak,
    longest_streak,
    clean_day_rate,
    advance_streak,
)

# Engines
from habitdash.ledger import Ledger
from habitdash.habits import HabitManager
from habitdash.timer import IntervalTimer, format_clock
from habitdash.penalty import PenaltyCounter
from habitdash.stats import power_stats, weekly_overview
from habitdash.services import Dashboard, open_dashboard, configure_logging

# Models
from habitdash.models import (
    Settings,
    DailyLogEntry,
    UnifiedRecord,
    LegacyDayRecord,
    HabitDefinition,
    TimerMode,
    TimerPhase,
    TimerState,
    TimerReading,
    StreakCounter,
    PowerStats,
    WeekDay,
    WeeklyOverview,
)
