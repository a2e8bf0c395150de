"""Error taxonomy for HabitDash.

Neither error is ever fatal: callers catch them, log, and fall back to a
safe default (empty ledger, default habits, idle timer).
"""

from __future__ import annotations


class HabitDashError(Exception):
    """Base class for recoverable HabitDash errors."""


class StoreUnavailable(HabitDashError):
    """The key-value store could not be read or written."""


class MalformedRecord(HabitDashError):
    """A stored value does not have the expected shape."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
