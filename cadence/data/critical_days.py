"""Per-goal weakest weekday over a trailing window."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from cadence.core.dates import date_key, iter_days
from cadence.data.aggregates import MIN_WEEKDAY_SAMPLES, WEEKDAY_NAMES, new_tallies, tally_day, weakest_weekday
from cadence.data.schemas import CriticalDay, Goal, LogsIndex
from cadence.data.streaks import goal_window, rate_percent

logger = logging.getLogger(__name__)

CRITICAL_WINDOW_DAYS = 90
NOT_AVAILABLE = "N/A"


def find_critical_day(
    goal: Goal,
    index: LogsIndex,
    as_of: date,
    window_days: int = CRITICAL_WINDOW_DAYS,
    min_samples: int = MIN_WEEKDAY_SAMPLES,
) -> CriticalDay:
    """Return the goal's lowest-rate weekday among those with min_samples observations.

    With no qualifying weekday the day is 'N/A' and the rate is the goal's
    overall rate over the same window.
    """
    start, end = goal_window(goal, as_of)
    window_start = max(start, end - timedelta(days=window_days - 1))

    tallies = new_tallies()
    for day in iter_days(window_start, end):
        tally_day(tallies, day, index.get(date_key(day), {}).get(goal.id))

    worst = weakest_weekday(tallies, min_samples)
    if worst is None:
        active = sum(t.active for t in tallies)
        done = sum(t.done for t in tallies)
        overall = rate_percent(done, active)
        return CriticalDay(habit_id=goal.id, title=goal.title, day=NOT_AVAILABLE, rate=overall)

    return CriticalDay(
        habit_id=goal.id,
        title=goal.title,
        day=WEEKDAY_NAMES[worst],
        rate=tallies[worst].rate,
    )


def compute_critical_days(
    goals: list[Goal],
    index: LogsIndex,
    as_of: date,
    window_days: int = CRITICAL_WINDOW_DAYS,
    min_samples: int = MIN_WEEKDAY_SAMPLES,
) -> list[CriticalDay]:
    """Critical day for every goal, weakest first."""
    days = [find_critical_day(g, index, as_of, window_days, min_samples) for g in goals]
    return sorted(days, key=lambda d: d["rate"])
