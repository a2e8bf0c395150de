#!/usr/bin/env python3
"""HabitDash TUI — habits, focus timer and stats in the terminal, powered by Textual."""

from __future__ import annotations

import sys

from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Checkbox, Footer, Header, Input, Label, Static

from habitdash import (
    Dashboard,
    TimerMode,
    TimerPhase,
    TimerReading,
    configure_logging,
    format_clock,
    init_workspace,
    load_settings,
    open_dashboard,
    workspace_root,
)

ICON_GLYPHS = {
    "target": "🎯",
    "flame": "🔥",
    "dumbbell": "💪",
    "rocket": "🚀",
    "droplet": "💧",
    "book": "📚",
    "brain": "🧠",
    "leaf": "🌱",
    "moon": "🌙",
    "heart": "❤️",
}

STATUS_MARKS = {"success": "●", "pending": "◐", "failed": "○"}


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.habit-row {
    height: auto;
}

.habit-row Checkbox {
    width: 1fr;
    height: auto;
}

.habit-done Checkbox {
    text-style: strike;
    opacity: 70%;
}

#timer-clock {
    text-style: bold;
    content-align: center middle;
    height: 3;
    color: $accent;
}

#timer-clock.break {
    color: $success;
}

#timer-mode, #stats, #weekly, #penalty {
    padding: 0 1;
}

#new-habit {
    margin: 1 0 0 0;
}
"""


# ── Custom widgets ─────────────────────────────────────────────


class HabitRow(Horizontal):
    """A single habit: checkbox with icon and name."""

    def __init__(self, habit_id: str, label: str, done: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.habit_id = habit_id
        self.habit_label = label
        self.habit_done = done

    def compose(self) -> ComposeResult:
        yield Checkbox(self.habit_label, value=self.habit_done, id=f"habit-{self.habit_id}")

    def on_mount(self) -> None:
        self.add_class("habit-row")
        if self.habit_done:
            self.add_class("habit-done")


# ── Main app ───────────────────────────────────────────────────


class HabitDashApp(App):
    """Habit tracker and focus timer."""

    TITLE = "HabitDash"
    CSS = CSS

    BINDINGS = [
        Binding("f", "start_focus", "Focus"),
        Binding("b", "start_break", "Break"),
        Binding("p", "stop_timer", "Pause"),
        Binding("x", "reset_timer", "Reset"),
        Binding("plus", "penalty_up", "+1 slip"),
        Binding("minus", "penalty_down", "-1 slip"),
        Binding("i", "cycle_icon", "Icon"),
        Binding("delete", "remove_habit", "Remove"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, dash: Dashboard | None = None) -> None:
        super().__init__()
        self.dash = dash or open_dashboard()
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            VerticalScroll(
                Label("Daily habits", classes="section-title"),
                Vertical(id="habit-list"),
                Input(placeholder="New habit…", id="new-habit"),
                id="left-pane",
            ),
            Vertical(
                Label("Focus timer", classes="section-title"),
                Static(id="timer-clock"),
                Static(id="timer-mode"),
                Label("Slips today", classes="section-title"),
                Static(id="penalty"),
                Label("Power stats", classes="section-title"),
                Static(id="stats"),
                Label("This week", classes="section-title"),
                Static(id="weekly"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    async def on_mount(self) -> None:
        self._unsubscribe = self.dash.ledger.subscribe(self._refresh_stats)
        await self._rebuild_habit_list()
        self._refresh_stats()
        self._show_reading(self.dash.timer.on_resume())
        self.set_interval(1, self._tick)
        self.set_interval(60, self._check_day_change)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    def on_app_focus(self, event: events.AppFocus) -> None:
        self._show_reading(self.dash.timer.on_resume())

    # ── Rendering ──────────────────────────────────────────────

    async def _rebuild_habit_list(self) -> None:
        """Rows are removed before remounting so checkbox ids never clash."""
        habit_list = self.query_one("#habit-list", Vertical)
        await habit_list.remove_children()
        rows = [
            HabitRow(h.id, f"{ICON_GLYPHS.get(h.icon_key, '•')} {h.name}", h.completed_today)
            for h in self.dash.habits.habits
        ]
        await habit_list.mount_all(rows)

    def _refresh_stats(self) -> None:
        stats = self.dash.stats()
        self.query_one("#stats", Static).update(
            f"🔥 {stats['currentStreak']} day streak ({stats['longestStreak']} best)\n"
            f"⏱  {stats['focusHours']} h focus, {stats['totalFocusSessions']} sessions\n"
            f"✅ {stats['totalHabits']} habits completed\n"
            f"⭐ {stats['cleanDays']} clean days ({stats['cleanDayRate']}%)"
        )

        weekly = self.dash.weekly()
        lines = []
        for day in weekly["days"]:
            mark = STATUS_MARKS.get(day["penaltyStatus"], "·")
            score = "-" if day["score"] is None else str(day["score"])
            lines.append(f"{mark} {day['date']}  score {score:>2}  {len(day['habits'])} habits  {day['focusSessions']} focus")
        lines.append(f"Success rate {weekly['successRate']}%")
        self.query_one("#weekly", Static).update("\n".join(lines))

        count = self.dash.penalty.count()
        self.query_one("#penalty", Static).update(
            f"{count} / {self.dash.settings.penalty_daily_limit}  [{self.dash.penalty.status()}]"
        )
        self.sub_title = f"🔥 {self.dash.ledger.streak_counter().current_streak_length}"

    def _show_reading(self, reading: TimerReading) -> None:
        clock = self.query_one("#timer-clock", Static)
        clock.update(format_clock(reading.remaining_seconds))
        clock.set_class(reading.mode == TimerMode.BREAK, "break")
        label = "Break" if reading.mode == TimerMode.BREAK else "Deep work"
        state = {
            TimerPhase.IDLE: "ready",
            TimerPhase.RUNNING: "running",
            TimerPhase.COMPLETED: "done",
        }[reading.phase]
        self.query_one("#timer-mode", Static).update(
            f"{label} · {state} · {round(reading.progress() * 100)}%"
        )
        if reading.phase == TimerPhase.COMPLETED:
            if reading.mode == TimerMode.FOCUS:
                self.notify("Focus session complete. Take a break with 'b'.")
            else:
                self.notify("Break over. Ready for the next focus block.")

    # ── Timers ─────────────────────────────────────────────────

    def _tick(self) -> None:
        self._show_reading(self.dash.timer.tick())

    async def _check_day_change(self) -> None:
        if self.dash.habits.check_day_change():
            await self._rebuild_habit_list()
            self._refresh_stats()

    # ── Habit events ───────────────────────────────────────────

    @on(Checkbox.Changed)
    def _on_habit_toggle(self, event: Checkbox.Changed) -> None:
        habit_id = (event.checkbox.id or "").removeprefix("habit-")
        try:
            habit = self.dash.habits.find(habit_id)
        except KeyError:
            return
        if habit.completed_today == event.value:
            return
        self.dash.habits.toggle_completion(habit_id, self.dash.today())
        parent = event.checkbox.parent
        if isinstance(parent, HabitRow):
            parent.set_class(event.value, "habit-done")

    @on(Input.Submitted, "#new-habit")
    async def _on_new_habit(self, event: Input.Submitted) -> None:
        try:
            self.dash.habits.add(event.value)
        except ValueError as e:
            self.notify(str(e), severity="warning")
            return
        event.input.value = ""
        await self._rebuild_habit_list()

    def _focused_habit_id(self) -> str | None:
        focused = self.focused
        if isinstance(focused, Checkbox) and (focused.id or "").startswith("habit-"):
            return focused.id.removeprefix("habit-")
        return None

    async def action_cycle_icon(self) -> None:
        habit_id = self._focused_habit_id()
        if habit_id is None:
            return
        self.dash.habits.cycle_icon(habit_id)
        await self._rebuild_habit_list()

    async def action_remove_habit(self) -> None:
        habit_id = self._focused_habit_id()
        if habit_id is None:
            return
        removed = self.dash.habits.remove(habit_id)
        await self._rebuild_habit_list()
        self.notify(f"Removed {removed.name}")

    # ── Timer & penalty actions ────────────────────────────────

    def _start(self, mode: TimerMode) -> None:
        try:
            self._show_reading(self.dash.timer.start(mode))
        except ValueError as e:
            self.notify(str(e), severity="warning")

    def action_start_focus(self) -> None:
        self._start(TimerMode.FOCUS)

    def action_start_break(self) -> None:
        self._start(TimerMode.BREAK)

    def action_stop_timer(self) -> None:
        try:
            self._show_reading(self.dash.timer.stop())
        except ValueError as e:
            self.notify(str(e), severity="warning")

    def action_reset_timer(self) -> None:
        self._show_reading(self.dash.timer.reset())

    def action_penalty_up(self) -> None:
        self.dash.penalty.increment()

    def action_penalty_down(self) -> None:
        self.dash.penalty.decrement()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    try:
        init_workspace(root)
    except OSError as e:
        print(f"Cannot create workspace {root}: {e}")
        print("Set HABITDASH_ROOT to a writable directory.")
        sys.exit(1)

    configure_logging(load_settings(root), filename=root / "habitdash.log")
    app = HabitDashApp(open_dashboard(root))
    app.run()


if __name__ == "__main__":
    main()
