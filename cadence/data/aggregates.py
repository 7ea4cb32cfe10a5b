"""Weekday buckets, period-over-period comparison, heatmap and trend series."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from cadence.core.dates import date_key, in_range, iter_days, month_start, parse_date_key, week_start, year_start
from cadence.data.schemas import (
    DayActivity,
    GlobalStats,
    Goal,
    HabitComparison,
    HabitStat,
    LogsIndex,
    LogStatus,
    PeriodDelta,
    PeriodKind,
    Trend,
    WeekdayStat,
)
from cadence.data.streaks import rate_percent

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

WEEKDAY_LOOKBACK_DAYS = 365
HEATMAP_DAYS = 365
TREND_DAYS = 7
MIN_WEEKDAY_SAMPLES = 4


def is_active(goal: Goal, day: date) -> bool:
    """True when day lies inside the goal's validity window."""
    return in_range(date_key(day), goal.start_date, goal.end_date)


@dataclass
class WeekdayTally:
    """Active/done counters for one weekday."""

    active: int = 0
    done: int = 0

    @property
    def rate(self) -> int:
        return rate_percent(self.done, self.active)


def new_tallies() -> list[WeekdayTally]:
    return [WeekdayTally() for _ in WEEKDAY_NAMES]


def tally_day(tallies: list[WeekdayTally], day: date, status: LogStatus | None) -> None:
    bucket = tallies[day.weekday()]
    bucket.active += 1
    if status is LogStatus.DONE:
        bucket.done += 1


def weakest_weekday(
    tallies: list[WeekdayTally],
    min_samples: int = MIN_WEEKDAY_SAMPLES,
) -> int | None:
    """Index of the lowest-rate weekday with at least min_samples observations.

    Ties resolve to the earlier weekday (Monday first). None when every
    weekday is under-sampled.
    """
    worst: int | None = None
    for idx, bucket in enumerate(tallies):
        if bucket.active < min_samples:
            continue
        if worst is None or bucket.rate < tallies[worst].rate:
            worst = idx
    return worst


# ---------------------------------------------------------------------------
# Weekday stats
# ---------------------------------------------------------------------------


def compute_weekday_stats(goals: list[Goal], index: LogsIndex, as_of: date) -> list[WeekdayStat]:
    """Done/active counts per weekday across all goals, Monday to Sunday."""
    tallies = new_tallies()
    if goals:
        earliest = min(parse_date_key(g.start_date) for g in goals)
        analysis_start = max(earliest, as_of - timedelta(days=WEEKDAY_LOOKBACK_DAYS))
        for day in iter_days(analysis_start, as_of):
            day_logs = index.get(date_key(day), {})
            for goal in goals:
                if is_active(goal, day):
                    tally_day(tallies, day, day_logs.get(goal.id))

    return [
        WeekdayStat(
            day_index=idx,
            day_name=WEEKDAY_NAMES[idx],
            total_active=bucket.active,
            total_done=bucket.done,
            rate=bucket.rate,
        )
        for idx, bucket in enumerate(tallies)
    ]


def worst_weekday(stats: list[WeekdayStat], min_samples: int = MIN_WEEKDAY_SAMPLES) -> str:
    """Name of the weakest sufficiently-sampled weekday, or 'N/A'."""
    tallies = [WeekdayTally(active=s["total_active"], done=s["total_done"]) for s in stats]
    idx = weakest_weekday(tallies, min_samples)
    return "N/A" if idx is None else stats[idx]["day_name"]


# ---------------------------------------------------------------------------
# Period comparison
# ---------------------------------------------------------------------------

_PERIOD_START = {
    PeriodKind.WEEK: week_start,
    PeriodKind.MONTH: month_start,
    PeriodKind.YEAR: year_start,
}


def period_windows(kind: PeriodKind, as_of: date) -> tuple[tuple[date, date], tuple[date, date]]:
    """Return ((previous_start, previous_end), (current_start, current_end))."""
    period_start = _PERIOD_START[kind]
    current_start = period_start(as_of)
    previous_end = current_start - timedelta(days=1)
    return (period_start(previous_end), previous_end), (current_start, as_of)


def window_rate(goal: Goal, index: LogsIndex, start: date, end: date) -> int:
    """Done percentage over the part of [start, end] where the goal is valid."""
    effective_start = max(start, parse_date_key(goal.start_date))
    effective_end = end
    if goal.end_date is not None:
        effective_end = min(end, parse_date_key(goal.end_date))
    if effective_start > effective_end:
        return 0
    total = 0
    done = 0
    for day in iter_days(effective_start, effective_end):
        total += 1
        if index.get(date_key(day), {}).get(goal.id) is LogStatus.DONE:
            done += 1
    return rate_percent(done, total)


def make_delta(previous: int, current: int) -> PeriodDelta:
    change = current - previous
    if change > 0:
        trend = Trend.UP
    elif change < 0:
        trend = Trend.DOWN
    else:
        trend = Trend.NEUTRAL
    return PeriodDelta(previous=previous, current=current, change=change, trend=trend)


def compare_periods(goal: Goal, index: LogsIndex, as_of: date) -> HabitComparison:
    """Week, month and year deltas for one goal."""
    deltas: dict[PeriodKind, PeriodDelta] = {}
    for kind in PeriodKind:
        (prev_start, prev_end), (cur_start, cur_end) = period_windows(kind, as_of)
        deltas[kind] = make_delta(
            window_rate(goal, index, prev_start, prev_end),
            window_rate(goal, index, cur_start, cur_end),
        )
    return HabitComparison(
        habit_id=goal.id,
        week=deltas[PeriodKind.WEEK],
        month=deltas[PeriodKind.MONTH],
        year=deltas[PeriodKind.YEAR],
    )


def compute_period_comparisons(goals: list[Goal], index: LogsIndex, as_of: date) -> list[HabitComparison]:
    return [compare_periods(goal, index, as_of) for goal in goals]


# ---------------------------------------------------------------------------
# Heatmap, trend, global stats
# ---------------------------------------------------------------------------


def _intensity(done: int, active: int) -> int:
    """Map a done/active ratio to a 0-4 heat level."""
    if active == 0 or done == 0:
        return 0
    pct = done / active
    if pct <= 0.25:
        return 1
    if pct <= 0.50:
        return 2
    if pct <= 0.75:
        return 3
    return 4


def compute_heatmap(goals: list[Goal], index: LogsIndex, as_of: date) -> list[DayActivity]:
    """Daily done counts and heat intensity for the last year."""
    activity: list[DayActivity] = []
    for day in iter_days(as_of - timedelta(days=HEATMAP_DAYS), as_of):
        day_logs = index.get(date_key(day), {})
        active = [g for g in goals if is_active(g, day)]
        done = sum(1 for g in active if day_logs.get(g.id) is LogStatus.DONE)
        activity.append(DayActivity(date=date_key(day), count=done, intensity=_intensity(done, len(active))))
    return activity


def compute_trend(goals: list[Goal], index: LogsIndex, as_of: date) -> list[dict[str, Any]]:
    """Per-goal 100/0 completion for the last 7 days plus an overall percentage."""
    points: list[dict[str, Any]] = []
    for day in iter_days(as_of - timedelta(days=TREND_DAYS - 1), as_of):
        day_logs = index.get(date_key(day), {})
        point: dict[str, Any] = {"date": date_key(day), "label": WEEKDAY_NAMES[day.weekday()][:3]}
        active = 0
        done = 0
        for goal in goals:
            if not is_active(goal, day):
                point[goal.id] = 0
                continue
            active += 1
            is_done = day_logs.get(goal.id) is LogStatus.DONE
            done += int(is_done)
            point[goal.id] = 100 if is_done else 0
        point["overall"] = rate_percent(done, active)
        points.append(point)
    return points


def compute_global_stats(habit_stats: list[HabitStat], index: LogsIndex) -> GlobalStats:
    """Best streak across goals and the mean rolling completion rate."""
    success = 0
    if habit_stats:
        success = round(sum(s["completion_rate"] for s in habit_stats) / len(habit_stats))
    return GlobalStats(
        total_active_days=len(index),
        global_success_rate=success,
        best_streak=max((s["longest_streak"] for s in habit_stats), default=0),
    )
