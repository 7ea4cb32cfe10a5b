"""Streak and completion-rate engine over a goal's log history.

Streaks are gap tolerant: an unmarked day neither extends nor breaks a run,
only an explicit ``missed`` does. All functions are pure and take the
reference day explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, timedelta

from cadence.core.dates import MAX_LOOKBACK_DAYS, date_key, day_count, iter_days, parse_date_key
from cadence.data.schemas import Goal, HabitStat, LogsIndex, LogStatus

logger = logging.getLogger(__name__)

StatusLookup = Callable[[date], LogStatus | None]

DEFAULT_RATE_WINDOW = 30


def status_lookup(index: LogsIndex, goal_id: str) -> StatusLookup:
    """Return a day -> status accessor for one goal."""

    def _lookup(day: date) -> LogStatus | None:
        return index.get(date_key(day), {}).get(goal_id)

    return _lookup


def goal_window(goal: Goal, as_of: date) -> tuple[date, date]:
    """Return (start, end) of the goal's evaluated window; empty when start > end.

    The end is as_of, clipped to end_date for archived goals.
    """
    start = parse_date_key(goal.start_date)
    end = as_of
    if goal.end_date is not None:
        end = min(end, parse_date_key(goal.end_date))
    return start, end


def walk_current_streak(lookup: StatusLookup, start: date, today: date) -> int:
    """Count done days backwards from today until a missed day or start.

    An unmarked today is pending rather than a break.
    """
    if today < start:
        return 0
    floor = max(start, today - timedelta(days=MAX_LOOKBACK_DAYS))
    streak = 0
    cursor = today
    while cursor >= floor:
        status = lookup(cursor)
        if status is LogStatus.MISSED:
            break
        if status is LogStatus.DONE:
            streak += 1
        cursor -= timedelta(days=1)
    return streak


def scan_longest_streak(lookup: StatusLookup, start: date, today: date) -> int:
    """Longest run of done days in [start, today]; only missed resets the run."""
    longest = 0
    running = 0
    for day in iter_days(start, today):
        status = lookup(day)
        if status is LogStatus.DONE:
            running += 1
            longest = max(longest, running)
        elif status is LogStatus.MISSED:
            running = 0
    return longest


def count_done(lookup: StatusLookup, start: date, today: date) -> int:
    return sum(1 for day in iter_days(start, today) if lookup(day) is LogStatus.DONE)


def rate_percent(done: int, total: int) -> int:
    """Integer percentage, 0 for an empty denominator."""
    if total <= 0:
        return 0
    return round(done / total * 100)


def current_streak(goal: Goal, index: LogsIndex, as_of: date) -> int:
    start, end = goal_window(goal, as_of)
    return walk_current_streak(status_lookup(index, goal.id), start, end)


def longest_streak(goal: Goal, index: LogsIndex, as_of: date) -> int:
    start, end = goal_window(goal, as_of)
    return scan_longest_streak(status_lookup(index, goal.id), start, end)


def total_completed(goal: Goal, index: LogsIndex, as_of: date) -> int:
    start, end = goal_window(goal, as_of)
    return count_done(status_lookup(index, goal.id), start, end)


def completion_rate(
    goal: Goal,
    index: LogsIndex,
    as_of: date,
    window_days: int = DEFAULT_RATE_WINDOW,
) -> int:
    """Done percentage over the trailing window_days intersected with the goal window."""
    start, end = goal_window(goal, as_of)
    window_start = max(start, end - timedelta(days=window_days - 1))
    days = day_count(window_start, end)
    if days == 0:
        return 0
    done = count_done(status_lookup(index, goal.id), window_start, end)
    return rate_percent(done, days)


def compute_habit_stat(
    goal: Goal,
    index: LogsIndex,
    as_of: date,
    window_days: int = DEFAULT_RATE_WINDOW,
) -> HabitStat:
    """Derive streaks, totals and the rolling completion rate for one goal."""
    start, end = goal_window(goal, as_of)
    lookup = status_lookup(index, goal.id)

    if end < start:
        logger.debug("Goal %s has an empty window as of %s", goal.id, as_of)

    return HabitStat(
        id=goal.id,
        title=goal.title,
        color=goal.color,
        current_streak=walk_current_streak(lookup, start, end),
        longest_streak=scan_longest_streak(lookup, start, end),
        total_days=count_done(lookup, start, end),
        completion_rate=completion_rate(goal, index, as_of, window_days),
    )
