"""Habit structure CRUD, legacy upgrade and completion toggling for HabitDash."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from habitdash.errors import MalformedRecord, StoreUnavailable
from habitdash.ledger import Ledger
from habitdash.migration import upgrade_legacy_habits
from habitdash.models import ICON_KEYS, HabitDefinition
from habitdash.store import HABIT_STRUCTURE_KEY, LEGACY_HABITS_KEY, KeyValueStore
from habitdash.workspace import today_str

logger = logging.getLogger(__name__)


DEFAULT_HABITS = [
    ("stay-clean", "Stay clean today", "flame"),
    ("workout", "Workout completed", "dumbbell"),
    ("shipped", "Shipped something", "rocket"),
    ("hydrated", "Drank enough water", "droplet"),
    ("learning", "Learned something new", "book"),
]


def default_habits() -> list[HabitDefinition]:
    return [HabitDefinition(id=i, name=n, icon_key=icon) for i, n, icon in DEFAULT_HABITS]


def new_habit_id() -> str:
    return uuid.uuid4().hex[:8]


def next_icon(icon_key: str) -> str:
    """The icon after *icon_key* in the fixed icon order, wrapping around."""
    try:
        idx = ICON_KEYS.index(icon_key)
    except ValueError:
        return ICON_KEYS[0]
    return ICON_KEYS[(idx + 1) % len(ICON_KEYS)]


class HabitManager:
    """Owns the ordered list of HabitDefinitions.

    Structural edits are persisted immediately. The ledger only ever sees
    habit names, never ids.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ledger: Ledger,
        today: Callable[[], str] | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self._today = today or today_str
        self.habits: list[HabitDefinition] = []

    # ── Loading ───────────────────────────────────────────────

    def _read(self, key: str) -> object | None:
        try:
            return self.store.get(key)
        except StoreUnavailable as e:
            logger.warning("Could not read %s: %s", key, e)
            return None

    def _load_canonical(self) -> list[HabitDefinition] | None:
        raw = self._read(HABIT_STRUCTURE_KEY)
        if raw is None:
            return None
        try:
            if not isinstance(raw, list):
                raise MalformedRecord(HABIT_STRUCTURE_KEY, "expected a list")
            return [HabitDefinition.from_dict(item) for item in raw]
        except MalformedRecord as e:
            logger.warning("Ignoring malformed habit structure: %s", e)
            return None

    def _load_legacy(self) -> list[HabitDefinition] | None:
        raw = self._read(LEGACY_HABITS_KEY)
        if raw is None:
            return None
        try:
            return upgrade_legacy_habits(raw)
        except MalformedRecord as e:
            logger.warning("Ignoring malformed legacy habits: %s", e)
            return None

    def initialize(self) -> list[HabitDefinition]:
        """Load habits, upgrading the legacy list or seeding defaults once."""
        habits = self._load_canonical()
        if habits is None:
            habits = self._load_legacy()
            if habits is None:
                logger.info("No habits stored, seeding %d defaults", len(DEFAULT_HABITS))
                habits = default_habits()
            self.habits = habits
            self._save()
        else:
            self.habits = habits
        return self.habits

    def _save(self) -> None:
        try:
            self.store.set(HABIT_STRUCTURE_KEY, [h.to_dict() for h in self.habits])
        except StoreUnavailable as e:
            logger.error("Could not persist habits: %s", e)

    # ── Structural edits ──────────────────────────────────────

    def find(self, habit_id: str) -> HabitDefinition:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        raise KeyError(habit_id)

    def add(self, name: str) -> HabitDefinition:
        name = (name or "").strip()
        if not name:
            raise ValueError("Habit name must not be empty")
        habit = HabitDefinition(id=new_habit_id(), name=name)
        self.habits.append(habit)
        self._save()
        return habit

    def rename(self, habit_id: str, new_name: str) -> HabitDefinition:
        """Rename a habit. Existing ledger entries keep the old name."""
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValueError("Habit name must not be empty")
        habit = self.find(habit_id)
        habit.name = new_name
        self._save()
        return habit

    def remove(self, habit_id: str) -> HabitDefinition:
        habit = self.find(habit_id)
        self.habits.remove(habit)
        self._save()
        return habit

    def cycle_icon(self, habit_id: str) -> HabitDefinition:
        habit = self.find(habit_id)
        habit.icon_key = next_icon(habit.icon_key)
        self._save()
        return habit

    # ── Completion ────────────────────────────────────────────

    def completed_names(self) -> list[str]:
        return [h.name for h in self.habits if h.completed_today]

    def toggle_completion(self, habit_id: str, day: str | None = None) -> HabitDefinition:
        """Flip a habit and rebuild the day's ledger entry from every completed habit."""
        habit = self.find(habit_id)
        habit.completed_today = not habit.completed_today
        self._save()
        self.ledger.record_habit_completion(day or self._today(), self.completed_names())
        return habit

    def check_day_change(self, today: str | None = None) -> bool:
        """Roll over when the calendar day changed since the last check."""
        if today is None:
            today = self._today()
        last_seen = self.ledger.day_guard()
        if last_seen is None:
            self.ledger.set_day_guard(today)
            return False
        if last_seen == today:
            return False
        rolled = self.ledger.rollover_day(last_seen, self.habits, current_date=today)
        if rolled:
            self._save()
        return rolled
