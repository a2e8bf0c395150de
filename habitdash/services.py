"""Wiring for HabitDash surfaces: one store, one ledger, and the engines on top."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from habitdash.habits import HabitManager
from habitdash.ledger import Ledger
from habitdash.models import Settings
from habitdash.penalty import PenaltyCounter
from habitdash.stats import power_stats, weekly_overview
from habitdash.store import KeyValueStore
from habitdash.timer import IntervalTimer
from habitdash.workspace import (
    get_user_timezone,
    load_settings,
    now_millis,
    store_path,
    workspace_root,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings, filename: Path | None = None) -> None:
    """Root logger at the configured level, to stderr or to *filename*."""
    level = getattr(logging, settings.log_level, logging.INFO)
    if filename is not None:
        filename.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=str(filename))
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class Dashboard:
    root: Path
    settings: Settings
    tz: ZoneInfo
    clock: Callable[[], int]
    store: KeyValueStore
    ledger: Ledger
    habits: HabitManager
    timer: IntervalTimer
    penalty: PenaltyCounter

    def today(self) -> str:
        return datetime.fromtimestamp(self.clock() / 1000, self.tz).date().isoformat()

    def stats(self) -> dict:
        return power_stats(self.ledger.entries()).to_dict()

    def weekly(self) -> dict:
        return weekly_overview(
            self.ledger.load_ledger(), self.today(), self.settings.penalty_daily_limit
        ).to_dict()


def open_dashboard(root: Path | None = None, clock: Callable[[], int] | None = None) -> Dashboard:
    """Build every engine over the workspace store, load habits and roll over the day."""
    if root is None:
        root = workspace_root()
    settings = load_settings(root)
    tz = get_user_timezone(root)
    clock = clock or now_millis

    def today() -> str:
        return datetime.fromtimestamp(clock() / 1000, tz).date().isoformat()

    store = KeyValueStore(store_path(root))
    ledger = Ledger(store, today=today, penalty_daily_limit=settings.penalty_daily_limit)
    habits = HabitManager(store, ledger, today=today)
    timer = IntervalTimer(
        store,
        ledger,
        clock=clock,
        tz=tz,
        focus_seconds=settings.focus_seconds,
        break_seconds=settings.break_seconds,
    )
    penalty = PenaltyCounter(ledger, today=today)

    habits.initialize()
    habits.check_day_change()

    return Dashboard(
        root=root,
        settings=settings,
        tz=tz,
        clock=clock,
        store=store,
        ledger=ledger,
        habits=habits,
        timer=timer,
        penalty=penalty,
    )
