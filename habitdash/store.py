"""Local key-value store for HabitDash.

A single JSON document (``store.json``) maps string keys to JSON values.
Every write rewrites the document atomically, so the last writer wins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from habitdash.errors import StoreUnavailable
from habitdash.fileio import atomic_write_text, read_text
from habitdash.workspace import store_path

logger = logging.getLogger(__name__)

# Store keys
LEDGER_KEY = "daily-logs"
LEGACY_DAY_PREFIX = "day-data-"
HABIT_STRUCTURE_KEY = "habit-structure"
LEGACY_HABITS_KEY = "habits"
TIMER_KEY = "focus-timer"
STREAK_KEY = "habit-streak"
LAST_COMPLETED_DATE_KEY = "last-completed-date"
DAY_GUARD_KEY = "habit-date"


class KeyValueStore:
    """get/set/remove/clear over a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else store_path()

    def _load(self) -> dict[str, Any]:
        try:
            text = read_text(self.path)
            data = json.loads(text) if text.strip() else {}
        except (OSError, ValueError) as e:
            raise StoreUnavailable(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreUnavailable(f"Expected a JSON object in {self.path}")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
            atomic_write_text(self.path, content, suffix=".json")
        except (OSError, TypeError, ValueError) as e:
            raise StoreUnavailable(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Value for key, or default when absent."""
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        self._save({})

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._load() if k.startswith(prefix))

    def snapshot(self) -> dict[str, Any]:
        """The whole document from a single read."""
        return self._load()
