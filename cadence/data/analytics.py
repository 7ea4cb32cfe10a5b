"""Analytics pass: one store read feeding every engine.

Engines are pure functions of (goals, logs, as_of); this module only wires
them together and fixes the order in which their outputs are derived.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, TypedDict

from cadence.core.config import Settings, settings
from cadence.data.aggregates import (
    compute_global_stats,
    compute_heatmap,
    compute_period_comparisons,
    compute_trend,
    compute_weekday_stats,
    worst_weekday,
)
from cadence.data.badges import BadgeSummary, evaluate_badges
from cadence.data.critical_days import compute_critical_days
from cadence.data.period_stats import PeriodStats, collapse_series, compute_period_stats
from cadence.data.schemas import (
    CriticalDay,
    DayActivity,
    GlobalStats,
    Goal,
    HabitComparison,
    HabitStat,
    Log,
    WeekdayStat,
    build_logs_index,
)
from cadence.data.streaks import compute_habit_stat
from cadence.store.base import LogStore

logger = logging.getLogger(__name__)


class AnalyticsReport(TypedDict):
    as_of: str
    habit_stats: list[HabitStat]
    weekday_stats: list[WeekdayStat]
    worst_weekday: str
    comparisons: list[HabitComparison]
    critical_days: list[CriticalDay]
    badges: BadgeSummary
    global_stats: GlobalStats
    heatmap: list[DayActivity]
    trend: list[dict[str, Any]]
    period_stats: PeriodStats


async def load_snapshot(store: LogStore) -> tuple[list[Goal], list[Log]]:
    """Read goals and logs together so analytics sees one consistent pair."""
    goals, logs = await asyncio.gather(store.list_goals(), store.list_logs())
    return goals, logs


def run_analytics(
    goals: list[Goal],
    logs: list[Log],
    as_of: date,
    config: Settings | None = None,
) -> AnalyticsReport:
    cfg = config or settings
    index = build_logs_index(logs)

    habit_stats = [compute_habit_stat(g, index, as_of, cfg.rolling_rate_days) for g in goals]
    weekday_stats = compute_weekday_stats(goals, index, as_of)

    series = collapse_series(goals, index)
    period = compute_period_stats(series, as_of)
    badges = evaluate_badges(
        period["overall"],
        series,
        period["current_month"],
        period["current_year"],
        cfg.monthly_goal_target,
        as_of=as_of,
    )

    report = AnalyticsReport(
        as_of=as_of.isoformat(),
        habit_stats=habit_stats,
        weekday_stats=weekday_stats,
        worst_weekday=worst_weekday(weekday_stats, cfg.min_weekday_samples),
        comparisons=compute_period_comparisons(goals, index, as_of),
        critical_days=compute_critical_days(
            goals, index, as_of, cfg.critical_window_days, cfg.min_weekday_samples
        ),
        badges=badges,
        global_stats=compute_global_stats(habit_stats, index),
        heatmap=compute_heatmap(goals, index, as_of),
        trend=compute_trend(goals, index, as_of),
        period_stats=period,
    )
    logger.info(
        "Analytics as of %s: %d goals, %d logs, %d/%d badges",
        as_of,
        len(goals),
        len(logs),
        badges["unlocked_count"],
        badges["total"],
    )
    return report


async def analyze_store(store: LogStore, as_of: date, config: Settings | None = None) -> AnalyticsReport:
    goals, logs = await load_snapshot(store)
    return run_analytics(goals, logs, as_of, config)
