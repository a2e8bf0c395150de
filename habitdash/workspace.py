"""Workspace root, settings, timezone and clock helpers for HabitDash."""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from habitdash.fileio import read_yaml, write_yaml_atomic
from habitdash.models import Settings

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (holds store.json and settings.yaml)."""
    return Path(
        os.environ.get("HABITDASH_ROOT", str(Path.home() / "habitdash"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, falling back to defaults on any problem."""
    if root is None:
        root = workspace_root()
    try:
        data = read_yaml(settings_path(root))
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning("Could not read settings, using defaults: %s", e)
        return Settings()
    return Settings.from_dict(data)


def init_workspace(root: Path | None = None) -> Path:
    """Create the workspace directory and a default settings.yaml if missing."""
    if root is None:
        root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    path = settings_path(root)
    if not path.exists():
        write_yaml_atomic(path, Settings().to_dict())
        logger.info("Created default settings at %s", path)
    return root


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    tz = get_user_timezone(root)
    return datetime.now(tz).date().isoformat()


def now_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ── Path helpers ──────────────────────────────────────────────

def store_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "store.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"
