"""Tests for habitdash/ledger.py — ledger reads, writes, rollover and broadcast."""

import pytest

from habitdash.ledger import Ledger
from habitdash.models import DailyLogEntry, HabitDefinition
from habitdash.store import LEDGER_KEY, KeyValueStore


@pytest.fixture
def store(workspace):
    return KeyValueStore(workspace / "store.json")


@pytest.fixture
def ledger(store):
    return Ledger(store, today=lambda: "2026-10-18")


def test_load_ledger_sorted(ledger):
    days = list(ledger.load_ledger())
    assert days == ["2026-10-16", "2026-10-17"]


def test_legacy_focus_backfills_unified(store, ledger):
    logs = store.get(LEDGER_KEY)
    logs["2026-10-15"] = {"date": "2026-10-15", "habitsCompleted": 1, "completedHabitNames": ["Read"]}
    store.set(LEDGER_KEY, logs)
    store.set("day-data-Thu Oct 15 2026", {
        "date": "Thu Oct 15 2026",
        "habits": ["Read"],
        "focusSessions": 3,
        "penaltyStatus": "success",
        "allHabitsCompleted": False,
    })
    entry = ledger.get_entry("2026-10-15")
    assert entry.focus_sessions == 3
    assert entry.completed_habit_names == ["Read"]


def test_legacy_only_day_is_read(store, ledger):
    store.set("day-data-Mon Oct 12 2026", {
        "date": "Mon Oct 12 2026",
        "habits": ["Workout", "Read"],
        "focusSessions": 1,
        "snusStatus": "pending",
        "snusCount": 2,
    })
    entry = ledger.load_ledger()["2026-10-12"]
    assert entry.habits_completed == 2
    assert entry.penalized_unit_count == 2


def test_malformed_entries_skipped(store, ledger):
    logs = store.get(LEDGER_KEY)
    logs["not-a-date"] = {"habitsCompleted": 1}
    logs["2026-10-10"] = "oops"
    store.set(LEDGER_KEY, logs)
    store.set("day-data-garbage", {"date": "garbage"})
    assert list(ledger.load_ledger()) == ["2026-10-16", "2026-10-17"]


def test_record_habit_completion(store, ledger):
    entry = ledger.record_habit_completion("2026-10-18", ["Workout completed", "Learned something new"])
    assert entry.habits_completed == 2
    stored = store.get(LEDGER_KEY)["2026-10-18"]
    assert stored["habitsCompleted"] == 2
    assert stored["completedHabitNames"] == ["Workout completed", "Learned something new"]


def test_record_keeps_stored_counters(ledger):
    entry = ledger.record_habit_completion("2026-10-17", [])
    assert entry.focus_sessions == 2
    assert entry.penalized_unit_count == 1
    assert entry.habits_completed == 0


def test_record_invalid_date(ledger):
    with pytest.raises(ValueError, match="Invalid date"):
        ledger.record_habit_completion("18/10/2026", ["Workout"])


def test_record_advances_streak_counter(ledger):
    ledger.record_habit_completion("2026-10-18", ["A"])  # score 2
    assert ledger.streak_counter().current_streak_length == 0
    ledger.record_habit_completion("2026-10-18", ["A", "B"])  # score 4
    counter = ledger.streak_counter()
    assert counter.current_streak_length == 1
    assert counter.last_qualifying_date == "2026-10-18"


def test_increment_focus_and_penalty(ledger):
    ledger.increment_focus_sessions("2026-10-18")
    entry = ledger.increment_focus_sessions("2026-10-18")
    assert entry.focus_sessions == 2
    entry = ledger.adjust_penalized_count("2026-10-18", -1)
    assert entry.penalized_unit_count == 0


def test_save_entry_mirrors_legacy_record(store, ledger):
    ledger.save_entry(DailyLogEntry(date="2026-10-18", completed_habit_names=["A"], penalized_unit_count=7))
    legacy = store.get("day-data-Sun Oct 18 2026")
    assert legacy["habits"] == ["A"]
    assert legacy["penaltyStatus"] == "failed"
    assert legacy["penaltyCount"] == 7


def test_broadcast_and_unsubscribe(ledger):
    calls = []
    unsubscribe = ledger.subscribe(lambda: calls.append("hit"))
    ledger.record_habit_completion("2026-10-18", ["A"])
    assert calls == ["hit"]
    unsubscribe()
    ledger.record_habit_completion("2026-10-18", ["A", "B"])
    assert calls == ["hit"]


def test_failing_listener_does_not_block_others(ledger):
    calls = []

    def broken():
        raise RuntimeError("boom")

    ledger.subscribe(broken)
    ledger.subscribe(lambda: calls.append("ok"))
    ledger.record_habit_completion("2026-10-18", ["A"])
    assert calls == ["ok"]


def test_rollover_round_trip(store, ledger):
    habits = [
        HabitDefinition(id="a", name="Workout completed", completed_today=True),
        HabitDefinition(id="b", name="Drank enough water", completed_today=False),
        HabitDefinition(id="c", name="Learned something new", completed_today=True),
    ]
    assert ledger.rollover_day("2026-10-18", habits, current_date="2026-10-19") is True

    entry = ledger.get_entry("2026-10-18")
    assert entry.completed_habit_names == ["Workout completed", "Learned something new"]
    assert entry.habits_completed == 2
    assert all(not h.completed_today for h in habits)
    assert ledger.day_guard() == "2026-10-19"

    # Same transition again is a no-op
    assert ledger.rollover_day("2026-10-18", habits, current_date="2026-10-19") is False


def test_rollover_nothing_completed_writes_nothing(ledger):
    habits = [HabitDefinition(id="a", name="Workout completed")]
    assert ledger.rollover_day("2026-10-18", habits, current_date="2026-10-19") is True
    assert ledger.get_entry("2026-10-18") is None


def test_unavailable_store_falls_back(tmp_path, caplog):
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")
    ledger = Ledger(KeyValueStore(path), today=lambda: "2026-10-18")

    assert ledger.load_ledger() == {}
    assert ledger.streak_counter().current_streak_length == 0
    entry = ledger.record_habit_completion("2026-10-18", ["A", "B"])
    assert entry.habits_completed == 2
    assert "Could not persist ledger entry" in caplog.text


def test_bare_count_survives_focus_and_penalty(store, ledger):
    logs = store.get(LEDGER_KEY)
    logs["2026-10-14"] = {"date": "2026-10-14", "habitsCompleted": 3}
    store.set(LEDGER_KEY, logs)

    assert ledger.increment_focus_sessions("2026-10-14").habits_completed == 3
    entry = ledger.adjust_penalized_count("2026-10-14", 1)
    assert entry.habits_completed == 3
    assert entry.focus_sessions == 1
    assert store.get(LEDGER_KEY)["2026-10-14"]["habitsCompleted"] == 3


def test_save_entry_keeps_bare_count(store, ledger):
    entry = DailyLogEntry.from_dict("2026-10-10", {"habitsCompleted": 3, "focusSessions": 1})
    saved = ledger.save_entry(entry)
    assert saved.habits_completed == 3
    assert ledger.get_entry("2026-10-10").habits_completed == 3


def test_names_override_bare_count(ledger):
    entry = ledger.record_habit_completion("2026-10-14", ["A"], habits_completed=5)
    assert entry.habits_completed == 1


class CountingStore(KeyValueStore):
    def __init__(self, path):
        super().__init__(path)
        self.loads = 0

    def _load(self):
        self.loads += 1
        return super()._load()


def test_reads_store_once_per_lookup(workspace):
    store = CountingStore(workspace / "store.json")
    for label in ("Mon Oct 12 2026", "Tue Oct 13 2026", "Wed Oct 14 2026"):
        store.set("day-data-" + label, {"date": label, "habits": ["A"], "focusSessions": 1})
    ledger = Ledger(store, today=lambda: "2026-10-18")

    store.loads = 0
    assert ledger.get_entry("2026-10-13").focus_sessions == 1
    assert store.loads == 1

    store.loads = 0
    assert len(ledger.load_ledger()) == 5
    assert store.loads == 1
