"""Shared test fixtures for HabitDash tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

# 2026-10-18T12:00:00Z, a Sunday.
NOON_MS = 1792324800 * 1000


class FakeClock:
    """Controllable epoch-millis clock."""

    def __init__(self, now_ms: int = NOON_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and a seeded store."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "focus_minutes": 25,
        "break_minutes": 5,
        "penalty_daily_limit": 5,
        "log_level": "DEBUG",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    store = {
        "daily-logs": {
            "2026-10-16": {
                "date": "2026-10-16",
                "habitsCompleted": 2,
                "completedHabitNames": ["Workout completed", "Drank enough water"],
                "focusSessions": 1,
                "penalizedUnitCount": 0,
            },
            "2026-10-17": {
                "date": "2026-10-17",
                "habitsCompleted": 1,
                "completedHabitNames": ["Workout completed"],
                "focusSessions": 2,
                "penalizedUnitCount": 1,
            },
        },
        "habit-structure": [
            {"id": "workout", "name": "Workout completed", "completedToday": False, "iconKey": "dumbbell"},
            {"id": "hydrated", "name": "Drank enough water", "completedToday": False, "iconKey": "droplet"},
            {"id": "learning", "name": "Learned something new", "completedToday": False, "iconKey": "book"},
        ],
        "habit-date": "2026-10-18",
    }
    (root / "store.json").write_text(json.dumps(store, indent=2), encoding="utf-8")

    # Set env var
    os.environ["HABITDASH_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HABITDASH_ROOT" in os.environ:
        del os.environ["HABITDASH_ROOT"]


@pytest.fixture
def empty_workspace(tmp_path: Path) -> Path:
    """A workspace directory with nothing in it."""
    root = tmp_path / "empty"
    root.mkdir(parents=True)
    os.environ["HABITDASH_ROOT"] = str(root)
    yield root
    if "HABITDASH_ROOT" in os.environ:
        del os.environ["HABITDASH_ROOT"]


@pytest.fixture
def dashboard(workspace: Path, clock: FakeClock):
    from habitdash import open_dashboard

    return open_dashboard(workspace, clock=clock)
