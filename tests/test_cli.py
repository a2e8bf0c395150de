"""Tests for cli/dashboard.py — TUI wiring that does not need a terminal."""

from cli.dashboard import ICON_GLYPHS, STATUS_MARKS, HabitDashApp
from habitdash.models import ICON_KEYS, PENALTY_STATUSES


def test_every_icon_has_a_glyph():
    assert set(ICON_GLYPHS) == set(ICON_KEYS)


def test_every_status_has_a_mark():
    assert set(STATUS_MARKS) == set(PENALTY_STATUSES)


def test_app_uses_given_dashboard(dashboard):
    app = HabitDashApp(dashboard)
    assert app.dash is dashboard
    assert {b.action for b in app.BINDINGS} >= {"start_focus", "start_break", "stop_timer", "quit"}
