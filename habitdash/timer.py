"""Suspend-safe focus/break interval timer for HabitDash.

The timer never counts ticks. While running it stores only the start
timestamp and the interval length; the remaining time is recomputed from
the wall clock on every tick or resume, so a suspended process (closed
lid, backgrounded tab, restart) reads the same value it would have shown
had it been running all along.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from habitdash.errors import MalformedRecord, StoreUnavailable
from habitdash.ledger import Ledger
from habitdash.models import TimerMode, TimerPhase, TimerReading, TimerState
from habitdash.store import TIMER_KEY, KeyValueStore
from habitdash.workspace import now_millis

logger = logging.getLogger(__name__)

FOCUS_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60


def format_clock(seconds: int) -> str:
    """1500 -> '25:00'."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def remaining_seconds(state: TimerState, now_ms: int) -> int:
    """Remaining time of a running interval at *now_ms*, clamped to [0, duration].

    A clock that moved backwards counts as zero elapsed time.
    """
    duration = state.remaining_duration_seconds
    if not state.is_running or state.start_epoch_millis is None:
        return duration
    elapsed = (now_ms - state.start_epoch_millis) / 1000
    elapsed = min(max(elapsed, 0.0), float(duration))
    return max(0, math.ceil(duration - elapsed))


class IntervalTimer:
    """Idle -> Running(focus|break) -> Completed -> Idle state machine."""

    def __init__(
        self,
        store: KeyValueStore,
        ledger: Ledger,
        clock: Callable[[], int] | None = None,
        tz: ZoneInfo | None = None,
        focus_seconds: int = FOCUS_SECONDS,
        break_seconds: int = BREAK_SECONDS,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.clock = clock or now_millis
        self.tz = tz or ZoneInfo("UTC")
        self.focus_seconds = focus_seconds
        self.break_seconds = break_seconds

    def default_duration(self, mode: TimerMode) -> int:
        return self.break_seconds if mode == TimerMode.BREAK else self.focus_seconds

    def _idle_state(self) -> TimerState:
        return TimerState(remaining_duration_seconds=self.focus_seconds)

    # ── Persistence ───────────────────────────────────────────

    def load_state(self) -> TimerState:
        try:
            raw = self.store.get(TIMER_KEY)
        except StoreUnavailable as e:
            logger.warning("Timer state unavailable, using idle timer: %s", e)
            return self._idle_state()
        if raw is None:
            return self._idle_state()
        try:
            return TimerState.from_dict(raw)
        except MalformedRecord as e:
            logger.warning("Resetting malformed timer state: %s", e)
            return self._idle_state()

    def _save(self, state: TimerState) -> None:
        try:
            self.store.set(TIMER_KEY, state.to_dict())
        except StoreUnavailable as e:
            logger.error("Could not persist timer state: %s", e)

    def _reading(self, state: TimerState, phase: TimerPhase, remaining: int) -> TimerReading:
        if state.is_running:
            duration = state.remaining_duration_seconds
        else:
            duration = max(self.default_duration(state.mode), state.remaining_duration_seconds)
        return TimerReading(
            phase=phase,
            mode=state.mode,
            remaining_seconds=remaining,
            duration_seconds=duration,
        )

    # ── Transitions ───────────────────────────────────────────

    def start(self, mode: TimerMode = TimerMode.FOCUS, duration_seconds: int | None = None) -> TimerReading:
        """Start an interval. Raises if one is already running.

        Without an explicit duration a paused interval of the same mode
        resumes from its remaining time; otherwise the mode default is used.
        """
        mode = TimerMode(mode)
        state = self.load_state()
        if state.is_running:
            raise ValueError("Timer is already running. Stop it first.")

        if duration_seconds is None:
            if state.mode == mode and state.remaining_duration_seconds > 0:
                duration_seconds = state.remaining_duration_seconds
            else:
                duration_seconds = self.default_duration(mode)
        if duration_seconds <= 0:
            raise ValueError("Duration must be positive.")

        running = TimerState(
            start_epoch_millis=self.clock(),
            remaining_duration_seconds=int(duration_seconds),
            is_running=True,
            is_break_mode=mode == TimerMode.BREAK,
        )
        self._save(running)
        logger.info("Started %s interval of %ds", mode.value, duration_seconds)
        return self._reading(running, TimerPhase.RUNNING, running.remaining_duration_seconds)

    def stop(self) -> TimerReading:
        """Pause the running interval, keeping its remaining time."""
        state = self.load_state()
        if not state.is_running:
            raise ValueError("Timer is not running.")
        remaining = remaining_seconds(state, self.clock())
        if remaining == 0:
            return self.on_expire(state)

        paused = TimerState(
            start_epoch_millis=None,
            remaining_duration_seconds=remaining,
            is_running=False,
            is_break_mode=state.is_break_mode,
        )
        self._save(paused)
        logger.info("Stopped %s interval with %ds left", state.mode.value, remaining)
        return self._reading(paused, TimerPhase.IDLE, remaining)

    def tick(self) -> TimerReading:
        """Recompute the remaining time from the wall clock.

        Safe to call any number of times from any point in time; the result
        only depends on the clock. Expires the interval when time is up.
        """
        state = self.load_state()
        if not state.is_running:
            return self._reading(state, TimerPhase.IDLE, state.remaining_duration_seconds)
        remaining = remaining_seconds(state, self.clock())
        if remaining == 0:
            return self.on_expire(state)
        return self._reading(state, TimerPhase.RUNNING, remaining)

    def on_resume(self) -> TimerReading:
        """Called once when the host becomes visible again."""
        return self.tick()

    def on_expire(self, state: TimerState | None = None) -> TimerReading:
        """Complete the running interval and return to a focus-ready idle state.

        A finished focus interval adds one focus session to the ledger for the
        day it ended on. Nothing is started automatically.
        """
        if state is None:
            state = self.load_state()
        if not state.is_running or state.start_epoch_millis is None:
            return self.tick()

        self._save(self._idle_state())

        if state.mode == TimerMode.FOCUS:
            end_ms = state.start_epoch_millis + state.remaining_duration_seconds * 1000
            day = datetime.fromtimestamp(end_ms / 1000, self.tz).date().isoformat()
            self.ledger.increment_focus_sessions(day)
        logger.info("Completed %s interval", state.mode.value)
        return TimerReading(
            phase=TimerPhase.COMPLETED,
            mode=state.mode,
            remaining_seconds=0,
            duration_seconds=state.remaining_duration_seconds,
        )

    def reset(self) -> TimerReading:
        """Drop any running or paused interval."""
        state = self._idle_state()
        self._save(state)
        return self._reading(state, TimerPhase.IDLE, state.remaining_duration_seconds)
