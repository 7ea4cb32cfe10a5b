"""Tests for cadence.data.analytics: the composed analytics pass."""

from __future__ import annotations

from datetime import date, timedelta

from cadence.core.config import Settings
from cadence.core.dates import date_key
from cadence.data.analytics import analyze_store, load_snapshot, run_analytics
from cadence.data.schemas import Goal, Log, LogStatus
from cadence.store import InMemoryLogStore

AS_OF = date(2024, 3, 20)

GOALS = [
    Goal(id="read", title="Read", start_date="2024-03-01", created_at="1"),
    Goal(id="gym", title="Gym", start_date="2024-03-01", created_at="2"),
]
LOGS = [Log("read", date_key(AS_OF - timedelta(days=i)), LogStatus.DONE) for i in range(10)] + [
    Log("gym", date_key(AS_OF - timedelta(days=i)), LogStatus.MISSED) for i in range(3)
]


def test_report_shape() -> None:
    report = run_analytics(GOALS, LOGS, AS_OF)
    assert report["as_of"] == "2024-03-20"
    assert [s["id"] for s in report["habit_stats"]] == ["read", "gym"]
    assert len(report["weekday_stats"]) == 7
    assert report["weekday_stats"][0]["day_name"] == "Monday"
    assert len(report["comparisons"]) == 2
    assert len(report["trend"]) == 7
    assert report["badges"]["total"] == 15
    assert report["period_stats"]["overall"]["total_done"] == 10


def test_engines_agree() -> None:
    report = run_analytics(GOALS, LOGS, AS_OF)
    read, gym = report["habit_stats"]
    assert read["current_streak"] == 10
    assert gym["current_streak"] == 0
    assert report["global_stats"]["best_streak"] == 10
    assert report["critical_days"][0]["habit_id"] == "gym"
    unlocked = {b["id"] for b in report["badges"]["unlocked"]}
    assert {"streak_7", "total_10", "perfect_week"} <= unlocked


def test_config_drives_windows(tmp_settings: Settings) -> None:
    narrow = tmp_settings.model_copy(update={"rolling_rate_days": 5, "monthly_goal_target": 10})
    report = run_analytics(GOALS, LOGS, AS_OF, narrow)
    assert report["habit_stats"][0]["completion_rate"] == 100
    monthly = next(b for b in report["badges"]["badges"] if b["id"] == "monthly_goal")
    assert monthly["unlocked"] is True


def test_future_logs_do_not_unlock_badges() -> None:
    future = [Log("read", date_key(AS_OF + timedelta(days=i)), LogStatus.DONE) for i in range(1, 8)]
    report = run_analytics(GOALS[:1], future, AS_OF)
    unlocked = {b["id"] for b in report["badges"]["unlocked"]}
    assert "perfect_week" not in unlocked
    assert "monthly_goal" not in unlocked
    assert report["period_stats"]["current_month"]["days_done"] == 0


def test_empty_store() -> None:
    report = run_analytics([], [], AS_OF)
    assert report["habit_stats"] == []
    assert report["worst_weekday"] == "N/A"
    assert report["badges"]["unlocked_count"] == 0


async def test_load_snapshot_and_analyze_store() -> None:
    store = InMemoryLogStore(goals=list(GOALS), logs=list(LOGS))
    goals, logs = await load_snapshot(store)
    assert len(goals) == 2
    assert len(logs) == 13
    report = await analyze_store(store, AS_OF)
    assert report == run_analytics(goals, logs, AS_OF)
