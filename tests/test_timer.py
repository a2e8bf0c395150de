"""Tests for habitdash/timer.py — suspend-safe interval timer."""

import pytest

from habitdash import open_dashboard
from habitdash.models import TimerMode, TimerPhase
from habitdash.store import TIMER_KEY
from habitdash.timer import format_clock


def _focus_sessions(dashboard, day="2026-10-18"):
    entry = dashboard.ledger.get_entry(day)
    return entry.focus_sessions if entry else 0


def test_format_clock():
    assert format_clock(1500) == "25:00"
    assert format_clock(61) == "01:01"
    assert format_clock(-5) == "00:00"


def test_idle_by_default(dashboard):
    reading = dashboard.timer.tick()
    assert reading.phase == TimerPhase.IDLE
    assert reading.mode == TimerMode.FOCUS
    assert reading.remaining_seconds == 1500


def test_start_and_tick(dashboard, clock):
    reading = dashboard.timer.start(TimerMode.FOCUS)
    assert reading.phase == TimerPhase.RUNNING
    assert reading.remaining_seconds == 1500

    clock.advance(60)
    assert dashboard.timer.tick().remaining_seconds == 1440


def test_partial_seconds_round_up(dashboard, clock):
    dashboard.timer.start()
    clock.advance(0.5)
    assert dashboard.timer.tick().remaining_seconds == 1500


def test_tick_is_idempotent(dashboard, clock):
    dashboard.timer.start()
    clock.advance(125)
    first = dashboard.timer.tick()
    second = dashboard.timer.tick()
    assert first == second
    assert first.remaining_seconds == 1375


def test_long_suspension_completes_once(dashboard, clock):
    dashboard.timer.start()
    clock.advance(5000)

    reading = dashboard.timer.on_resume()
    assert reading.phase == TimerPhase.COMPLETED
    assert reading.remaining_seconds == 0
    assert _focus_sessions(dashboard) == 1

    again = dashboard.timer.tick()
    assert again.phase == TimerPhase.IDLE
    assert again.remaining_seconds == 1500
    assert _focus_sessions(dashboard) == 1


def test_clock_moved_backwards(dashboard, clock):
    dashboard.timer.start()
    clock.advance(-300)
    reading = dashboard.timer.tick()
    assert reading.phase == TimerPhase.RUNNING
    assert reading.remaining_seconds == 1500


def test_start_while_running(dashboard):
    dashboard.timer.start()
    with pytest.raises(ValueError, match="already running"):
        dashboard.timer.start(TimerMode.BREAK)


def test_stop_and_resume_remaining(dashboard, clock):
    dashboard.timer.start()
    clock.advance(100)
    paused = dashboard.timer.stop()
    assert paused.phase == TimerPhase.IDLE
    assert paused.remaining_seconds == 1400

    stored = dashboard.store.get(TIMER_KEY)
    assert stored["isRunning"] is False
    assert stored["startEpochMillis"] is None

    clock.advance(10_000)
    assert dashboard.timer.tick().remaining_seconds == 1400

    resumed = dashboard.timer.start()
    assert resumed.remaining_seconds == 1400
    clock.advance(1400)
    assert dashboard.timer.tick().phase == TimerPhase.COMPLETED


def test_stop_not_running(dashboard):
    with pytest.raises(ValueError, match="not running"):
        dashboard.timer.stop()


def test_stop_after_time_is_up_expires(dashboard, clock):
    dashboard.timer.start()
    clock.advance(1600)
    assert dashboard.timer.stop().phase == TimerPhase.COMPLETED
    assert _focus_sessions(dashboard) == 1


def test_break_does_not_count_focus(dashboard, clock):
    reading = dashboard.timer.start(TimerMode.BREAK)
    assert reading.remaining_seconds == 300
    clock.advance(300)
    done = dashboard.timer.tick()
    assert done.phase == TimerPhase.COMPLETED
    assert done.mode == TimerMode.BREAK
    assert _focus_sessions(dashboard) == 0
    # Back to a focus-ready idle state
    assert dashboard.timer.tick().mode == TimerMode.FOCUS


def test_custom_duration(dashboard, clock):
    dashboard.timer.start(TimerMode.FOCUS, 90)
    clock.advance(30)
    assert dashboard.timer.tick().remaining_seconds == 60
    dashboard.timer.reset()
    with pytest.raises(ValueError, match="positive"):
        dashboard.timer.start(TimerMode.FOCUS, 0)


def test_focus_credited_to_end_day(dashboard, clock):
    clock.now_ms = 1792367400 * 1000  # 2026-10-18T23:50:00Z
    dashboard.timer.start()
    clock.advance(3600)
    dashboard.timer.tick()
    assert _focus_sessions(dashboard, "2026-10-19") == 1
    assert _focus_sessions(dashboard, "2026-10-18") == 0


def test_survives_restart(workspace, clock):
    first = open_dashboard(workspace, clock=clock)
    first.timer.start()
    clock.advance(200)

    second = open_dashboard(workspace, clock=clock)
    reading = second.timer.on_resume()
    assert reading.phase == TimerPhase.RUNNING
    assert reading.remaining_seconds == 1300


def test_malformed_state_falls_back_to_idle(dashboard):
    dashboard.store.set(TIMER_KEY, {"isRunning": True, "remainingDurationSeconds": 100})
    reading = dashboard.timer.tick()
    assert reading.phase == TimerPhase.IDLE
    assert reading.remaining_seconds == 1500


def test_reset(dashboard, clock):
    dashboard.timer.start(TimerMode.BREAK)
    clock.advance(10)
    reading = dashboard.timer.reset()
    assert reading.phase == TimerPhase.IDLE
    assert reading.mode == TimerMode.FOCUS
    assert dashboard.store.get(TIMER_KEY)["isRunning"] is False


def test_reading_progress(dashboard, clock):
    dashboard.timer.start()
    clock.advance(750)
    assert dashboard.timer.tick().progress() == 0.5
