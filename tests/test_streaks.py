"""Tests for cadence.data.streaks: gap-tolerant streaks and rolling rates."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from cadence.core.dates import MAX_LOOKBACK_DAYS, date_key
from cadence.data.schemas import Goal, Log, LogStatus, build_logs_index
from cadence.data.streaks import (
    compute_habit_stat,
    completion_rate,
    current_streak,
    longest_streak,
    rate_percent,
    total_completed,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

TODAY = date(2024, 3, 10)
D = LogStatus.DONE
M = LogStatus.MISSED


def _goal(start: date, end: date | None = None, goal_id: str = "g1") -> Goal:
    return Goal(
        id=goal_id,
        title="Read",
        start_date=date_key(start),
        end_date=date_key(end) if end else None,
    )


def _index(entries: dict[date, LogStatus], goal_id: str = "g1") -> dict[str, dict[str, LogStatus]]:
    return build_logs_index([Log(goal_id, date_key(d), s) for d, s in entries.items()])


def _days_back(statuses: list[LogStatus | None], end: date = TODAY) -> dict[date, LogStatus]:
    """Map statuses oldest-first onto consecutive days ending at end; None = unmarked."""
    first = end - timedelta(days=len(statuses) - 1)
    return {first + timedelta(days=i): s for i, s in enumerate(statuses) if s is not None}


# ---------------------------------------------------------------------------
# Current / longest streak
# ---------------------------------------------------------------------------


def test_done_done_missed_done() -> None:
    goal = _goal(TODAY - timedelta(days=3))
    index = _index(_days_back([D, D, M, D]))
    assert current_streak(goal, index, TODAY) == 1
    assert longest_streak(goal, index, TODAY) == 2


def test_unmarked_days_bridge_the_streak() -> None:
    goal = _goal(TODAY - timedelta(days=4))
    index = _index(_days_back([D, None, D, None, D]))
    assert current_streak(goal, index, TODAY) == 3
    assert longest_streak(goal, index, TODAY) == 3


def test_unmarked_today_is_pending() -> None:
    goal = _goal(TODAY - timedelta(days=2))
    index = _index(_days_back([D, D, None]))
    assert current_streak(goal, index, TODAY) == 2


def test_missed_today_breaks_current() -> None:
    goal = _goal(TODAY - timedelta(days=2))
    index = _index(_days_back([D, D, M]))
    assert current_streak(goal, index, TODAY) == 0
    assert longest_streak(goal, index, TODAY) == 2


def test_logs_before_start_are_ignored() -> None:
    goal = _goal(TODAY - timedelta(days=1))
    index = _index(_days_back([D, D, D, D]))
    assert current_streak(goal, index, TODAY) == 2
    assert total_completed(goal, index, TODAY) == 2


def test_current_streak_respects_lookback_bound() -> None:
    start = TODAY - timedelta(days=MAX_LOOKBACK_DAYS + 50)
    goal = _goal(start)
    index = _index({start + timedelta(days=i): D for i in range(MAX_LOOKBACK_DAYS + 51)})
    assert current_streak(goal, index, TODAY) == MAX_LOOKBACK_DAYS + 1


@pytest.mark.parametrize(
    "statuses",
    [
        [D, D, M, D],
        [D, None, D, M, D, D, D],
        [M, M, None, D],
        [None, None, None],
        [D, D, D, D, M, D, D, None, D],
    ],
)
def test_longest_never_below_current(statuses: list[LogStatus | None]) -> None:
    goal = _goal(TODAY - timedelta(days=len(statuses) - 1))
    index = _index(_days_back(statuses))
    assert longest_streak(goal, index, TODAY) >= current_streak(goal, index, TODAY)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def test_future_start_yields_zeros() -> None:
    goal = _goal(TODAY + timedelta(days=5))
    stat = compute_habit_stat(goal, _index({}), TODAY)
    assert stat["current_streak"] == 0
    assert stat["longest_streak"] == 0
    assert stat["total_days"] == 0
    assert stat["completion_rate"] == 0


def test_archived_goal_keeps_final_stats() -> None:
    end = TODAY - timedelta(days=5)
    goal = _goal(end - timedelta(days=2), end)
    index = _index(_days_back([D, D, D], end=end))
    stat = compute_habit_stat(goal, index, TODAY)
    assert stat["current_streak"] == 3
    assert stat["completion_rate"] == 100


# ---------------------------------------------------------------------------
# Completion rate
# ---------------------------------------------------------------------------


def test_rate_uses_days_since_start_when_younger_than_window() -> None:
    goal = _goal(TODAY - timedelta(days=3))
    index = _index(_days_back([D, None, D, M]))
    assert completion_rate(goal, index, TODAY) == 50


def test_rate_window_is_trailing_30_days() -> None:
    goal = _goal(TODAY - timedelta(days=99))
    # Done on all of the first 70 days, nothing in the last 30.
    index = _index({TODAY - timedelta(days=99 - i): D for i in range(70)})
    assert completion_rate(goal, index, TODAY) == 0
    assert completion_rate(goal, index, TODAY, window_days=100) == 70


@pytest.mark.parametrize(
    "statuses",
    [[D] * 40, [M] * 10, [D, M] * 20, [None] * 5, [D, None, None]],
)
def test_rate_bounds(statuses: list[LogStatus | None]) -> None:
    goal = _goal(TODAY - timedelta(days=len(statuses) - 1))
    rate = completion_rate(goal, _index(_days_back(statuses)), TODAY)
    assert 0 <= rate <= 100


def test_rate_percent_rounds_and_handles_zero() -> None:
    assert rate_percent(2, 3) == 67
    assert rate_percent(0, 0) == 0
    assert rate_percent(5, -1) == 0
