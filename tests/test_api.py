"""Tests for ui/app.py — HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from habitdash import open_dashboard
from ui.app import app, get_dashboard


@pytest.fixture
def client(workspace, clock):
    app.dependency_overrides[get_dashboard] = lambda: open_dashboard(workspace, clock=clock)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_list_habits(client):
    habits = client.get("/api/habits").json()["habits"]
    assert [h["id"] for h in habits] == ["workout", "hydrated", "learning"]


def test_add_rename_delete_habit(client):
    r = client.post("/api/habits", json={"name": "Meditate"})
    assert r.status_code == 200
    habit_id = r.json()["habit"]["id"]

    r = client.put(f"/api/habits/{habit_id}", json={"name": "Meditate 10m"})
    assert r.json()["habit"]["name"] == "Meditate 10m"

    r = client.delete(f"/api/habits/{habit_id}")
    assert r.json() == {"ok": True, "deleted": habit_id}
    assert client.delete(f"/api/habits/{habit_id}").status_code == 404


def test_add_habit_missing_name(client):
    assert client.post("/api/habits", json={"name": "  "}).status_code == 400


def test_toggle_updates_ledger(client):
    r = client.post("/api/habits/workout/toggle")
    body = r.json()
    assert body["habit"]["completedToday"] is True
    assert body["entry"]["habitsCompleted"] == 1
    assert client.post("/api/habits/nope/toggle").status_code == 404


def test_cycle_icon(client):
    assert client.post("/api/habits/workout/icon").json()["habit"]["iconKey"] == "rocket"


def test_ledger_and_manual_edit(client):
    ledger = client.get("/api/ledger").json()
    assert ledger["count"] == 2

    r = client.put("/api/ledger/2026-10-15", json={"completedHabitNames": ["Read", "Walk"], "focusSessions": 2})
    entry = r.json()["entry"]
    assert entry["habitsCompleted"] == 2
    assert entry["focusSessions"] == 2
    assert client.get("/api/ledger").json()["count"] == 3


def test_manual_edit_keeps_bare_count(client):
    r = client.put("/api/ledger/2026-10-15", json={"habitsCompleted": 3})
    assert r.json()["entry"]["habitsCompleted"] == 3
    day = client.get("/api/ledger").json()["entries"]["2026-10-15"]
    assert day["habitsCompleted"] == 3


def test_manual_edit_bad_input(client):
    assert client.put("/api/ledger/yesterday", json={}).status_code == 400
    assert client.put("/api/ledger/2026-10-15", json=["not", "an", "object"]).status_code == 422


def test_penalty_endpoints(client):
    r = client.post("/api/penalty/increment")
    assert r.json() == {"ok": True, "count": 1, "status": "pending"}
    r = client.post("/api/penalty/decrement")
    assert r.json()["count"] == 0
    assert r.json()["status"] == "success"


def test_stats_and_weekly(client):
    stats = client.get("/api/stats").json()
    assert stats["currentStreak"] == 2
    assert "streakCounter" in stats
    weekly = client.get("/api/weekly").json()
    assert len(weekly["days"]) == 7


def test_timer_flow(client, clock):
    assert client.get("/api/timer").json()["phase"] == "idle"

    r = client.post("/api/timer/start", json={"mode": "focus"})
    assert r.json()["timer"]["phase"] == "running"
    assert client.post("/api/timer/start", json={}).status_code == 409

    clock.advance(600)
    assert client.get("/api/timer").json()["remainingSeconds"] == 900

    r = client.post("/api/timer/stop")
    assert r.json()["timer"]["remainingSeconds"] == 900
    assert client.post("/api/timer/stop").status_code == 409

    client.post("/api/timer/start")
    clock.advance(5000)
    r = client.post("/api/timer/resume")
    assert r.json()["timer"]["phase"] == "completed"

    r = client.post("/api/timer/reset")
    assert r.json()["timer"]["remainingSeconds"] == 1500


def test_timer_start_bad_input(client):
    assert client.post("/api/timer/start", json={"mode": "nap"}).status_code == 400
    assert client.post("/api/timer/start", json={"duration_seconds": "long"}).status_code == 400
    assert client.post("/api/timer/start", json={"duration_seconds": 0}).status_code == 400
