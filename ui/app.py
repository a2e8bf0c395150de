from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException

from habitdash import (
    DailyLogEntry,
    Dashboard,
    MalformedRecord,
    TimerMode,
    configure_logging,
    load_settings,
    open_dashboard,
)
from habitdash.dates import parse_iso

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(load_settings())
    yield


app = FastAPI(title="HabitDash", version="0.1.0", lifespan=lifespan)


def get_dashboard() -> Dashboard:
    """A fresh view over the store for every request."""
    return open_dashboard()


def _habit_list(dash: Dashboard) -> dict[str, Any]:
    return {"habits": [h.to_dict() for h in dash.habits.habits]}


def _require_name(payload: dict[str, Any]) -> str:
    name = str(payload.get("name", "")).strip()
    if not name:
        raise HTTPException(status_code=400, detail="Missing name")
    return name


def _require_date(day: str) -> str:
    if parse_iso(day) is None:
        raise HTTPException(status_code=400, detail=f"Invalid date: {day}")
    return day


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


# ── Habits ────────────────────────────────────────────────────

@app.get("/api/habits")
def api_list_habits(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    return _habit_list(dash)


@app.post("/api/habits")
def api_add_habit(payload: dict[str, Any] = Body(...), dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    habit = dash.habits.add(_require_name(payload))
    return {"ok": True, "habit": habit.to_dict()}


@app.put("/api/habits/{habit_id}")
def api_rename_habit(habit_id: str, payload: dict[str, Any] = Body(...), dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    name = _require_name(payload)
    try:
        habit = dash.habits.rename(habit_id, name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    return {"ok": True, "habit": habit.to_dict()}


@app.delete("/api/habits/{habit_id}")
def api_remove_habit(habit_id: str, dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    try:
        dash.habits.remove(habit_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    return {"ok": True, "deleted": habit_id}


@app.post("/api/habits/{habit_id}/toggle")
def api_toggle_habit(habit_id: str, dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    try:
        habit = dash.habits.toggle_completion(habit_id, dash.today())
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    entry = dash.ledger.get_entry(dash.today())
    return {"ok": True, "habit": habit.to_dict(), "entry": entry.to_dict() if entry else None}


@app.post("/api/habits/{habit_id}/icon")
def api_cycle_icon(habit_id: str, dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    try:
        habit = dash.habits.cycle_icon(habit_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    return {"ok": True, "habit": habit.to_dict()}


# ── Ledger ────────────────────────────────────────────────────

@app.get("/api/ledger")
def api_ledger(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    """Every logged day, legacy records merged in."""
    ledger = dash.ledger.load_ledger()
    return {"count": len(ledger), "entries": {d: e.to_dict() for d, e in ledger.items()}}


@app.put("/api/ledger/{day}")
def api_edit_day(day: str, payload: dict[str, Any] = Body(...), dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    """Manual edit of one day."""
    _require_date(day)
    try:
        entry = DailyLogEntry.from_dict(day, payload)
    except (ValueError, MalformedRecord) as e:
        raise HTTPException(status_code=400, detail=str(e))
    saved = dash.ledger.save_entry(entry)
    logger.info("Manual edit saved for %s", day)
    return {"ok": True, "entry": saved.to_dict()}


@app.post("/api/penalty/increment")
def api_penalty_increment(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    entry = dash.penalty.increment()
    return {"ok": True, "count": entry.penalized_unit_count, "status": dash.penalty.status()}


@app.post("/api/penalty/decrement")
def api_penalty_decrement(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    entry = dash.penalty.decrement()
    return {"ok": True, "count": entry.penalized_unit_count, "status": dash.penalty.status()}


# ── Stats ─────────────────────────────────────────────────────

@app.get("/api/stats")
def api_stats(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    stats = dash.stats()
    stats["streakCounter"] = dash.ledger.streak_counter().to_dict()
    return stats


@app.get("/api/weekly")
def api_weekly(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    return dash.weekly()


# ── Timer ─────────────────────────────────────────────────────

@app.get("/api/timer")
def api_timer(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    return dash.timer.tick().to_dict()


@app.post("/api/timer/start")
def api_timer_start(payload: dict[str, Any] = Body(default={}), dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    """Start a focus or break interval."""
    try:
        mode = TimerMode(str(payload.get("mode", TimerMode.FOCUS.value)))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid mode: {payload.get('mode')}")
    duration = payload.get("duration_seconds")
    if duration is not None:
        try:
            duration = int(duration)
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail="duration_seconds must be an integer")
        if duration <= 0:
            raise HTTPException(status_code=400, detail="duration_seconds must be positive")
    try:
        reading = dash.timer.start(mode, duration)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "timer": reading.to_dict()}


@app.post("/api/timer/stop")
def api_timer_stop(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    try:
        reading = dash.timer.stop()
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "timer": reading.to_dict()}


@app.post("/api/timer/resume")
def api_timer_resume(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    """The client became visible again; recompute from the wall clock."""
    return {"ok": True, "timer": dash.timer.on_resume().to_dict()}


@app.post("/api/timer/reset")
def api_timer_reset(dash: Dashboard = Depends(get_dashboard)) -> dict[str, Any]:
    return {"ok": True, "timer": dash.timer.reset().to_dict()}


def main() -> None:
    import uvicorn

    uvicorn.run(
        "ui.app:app",
        host=os.environ.get("HABITDASH_HOST", "127.0.0.1"),
        port=int(os.environ.get("HABITDASH_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
