"""Overall, yearly, monthly and weekly breakdowns of a single day series.

A day series maps date keys to a status. It is either one goal's column of
the logs index or the collapsed view across all goals (a day is done when
any goal active that day was done, missed when something was marked but
nothing done).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import TypedDict

from cadence.core.dates import date_key, in_range, iso_week, parse_date_key
from cadence.data.aggregates import WEEKDAY_NAMES
from cadence.data.schemas import Goal, LogsIndex, LogStatus
from cadence.data.streaks import rate_percent, scan_longest_streak, walk_current_streak

logger = logging.getLogger(__name__)

DaySeries = dict[str, LogStatus]

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class DayOfWeekScore(TypedDict):
    day: str
    percentage: int


class WeekStats(TypedDict):
    """One ISO week of a calendar year, labelled by (iso_year, week_number).

    Late-December days in ISO week 1 of the next year carry iso_year = year + 1.
    """

    week_number: int
    iso_year: int
    year: int
    days_done: int
    days_missed: int
    days_total: int
    percentage: int


class MonthStats(TypedDict):
    month: int  # 1-12
    year: int
    name: str
    days_done: int
    days_missed: int
    days_total: int
    percentage: int
    best_streak: int


class YearStats(TypedDict):
    year: int
    total_done: int
    total_missed: int
    total_marked: int
    percentage: int
    best_month: MonthStats | None
    worst_month: MonthStats | None
    longest_streak: int
    average_per_week: float
    average_per_month: float
    monthly_breakdown: list[MonthStats]
    weekly_breakdown: list[WeekStats]


class OverallStats(TypedDict):
    total_done: int
    total_missed: int
    total_marked: int
    percentage: int
    current_streak: int
    longest_streak: int
    first_record_date: str | None
    last_record_date: str | None
    days_since_start: int
    consistency_score: int
    best_day_of_week: DayOfWeekScore | None
    worst_day_of_week: DayOfWeekScore | None


class PeriodStats(TypedDict):
    overall: OverallStats
    yearly: list[YearStats]
    current_month: MonthStats
    current_year: YearStats | None


def goal_series(index: LogsIndex, goal_id: str) -> DaySeries:
    """One goal's statuses keyed by date."""
    return {key: day[goal_id] for key, day in index.items() if goal_id in day}


def collapse_series(goals: list[Goal], index: LogsIndex) -> DaySeries:
    """Fold every goal into one series: any done wins, else any missed."""
    series: DaySeries = {}
    for key, day in index.items():
        statuses = [day[g.id] for g in goals if g.id in day and in_range(key, g.start_date, g.end_date)]
        if LogStatus.DONE in statuses:
            series[key] = LogStatus.DONE
        elif statuses:
            series[key] = LogStatus.MISSED
    return series


def _longest_in(series: DaySeries, keys: list[str]) -> int:
    """Bridged longest run over the span covered by keys."""
    if not keys:
        return 0
    first, last = parse_date_key(min(keys)), parse_date_key(max(keys))
    return scan_longest_streak(lambda d: series.get(date_key(d)), first, last)


def _count(series: DaySeries, keys: list[str], status: LogStatus) -> int:
    return sum(1 for k in keys if series[k] is status)


def _month_stats(series: DaySeries, keys: list[str], year: int, month: int) -> MonthStats:
    done = _count(series, keys, LogStatus.DONE)
    missed = _count(series, keys, LogStatus.MISSED)
    done_keys = [k for k in keys if series[k] is LogStatus.DONE]
    return MonthStats(
        month=month,
        year=year,
        name=MONTH_NAMES[month - 1],
        days_done=done,
        days_missed=missed,
        days_total=done + missed,
        percentage=rate_percent(done, done + missed),
        best_streak=_longest_in(series, done_keys),
    )


def _year_stats(series: DaySeries, year: int, keys: list[str]) -> YearStats:
    done = _count(series, keys, LogStatus.DONE)
    missed = _count(series, keys, LogStatus.MISSED)

    by_month: dict[int, list[str]] = defaultdict(list)
    by_week: dict[tuple[int, int], list[str]] = defaultdict(list)
    for key in keys:
        day = parse_date_key(key)
        by_month[day.month].append(key)
        by_week[iso_week(day)].append(key)

    monthly = [_month_stats(series, by_month.get(m, []), year, m) for m in range(1, 13)]
    weekly: list[WeekStats] = []
    for iso_year, week_number in sorted(by_week):
        week_keys = by_week[(iso_year, week_number)]
        w_done = _count(series, week_keys, LogStatus.DONE)
        w_missed = _count(series, week_keys, LogStatus.MISSED)
        weekly.append(
            WeekStats(
                week_number=week_number,
                iso_year=iso_year,
                year=year,
                days_done=w_done,
                days_missed=w_missed,
                days_total=w_done + w_missed,
                percentage=rate_percent(w_done, w_done + w_missed),
            )
        )

    active_months = [m for m in monthly if m["days_total"] > 0]
    active_weeks = [w for w in weekly if w["days_total"] > 0]
    best_month = max(active_months, key=lambda m: m["percentage"], default=None)
    worst_month = min(active_months, key=lambda m: m["percentage"], default=None)

    return YearStats(
        year=year,
        total_done=done,
        total_missed=missed,
        total_marked=done + missed,
        percentage=rate_percent(done, done + missed),
        best_month=best_month,
        worst_month=worst_month,
        longest_streak=_longest_in(series, [k for k in keys if series[k] is LogStatus.DONE]),
        average_per_week=round(done / len(active_weeks), 1) if active_weeks else 0,
        average_per_month=round(done / len(active_months), 1) if active_months else 0,
        monthly_breakdown=monthly,
        weekly_breakdown=weekly,
    )


def _day_of_week_scores(series: DaySeries) -> tuple[DayOfWeekScore | None, DayOfWeekScore | None]:
    """Best and worst weekday by done percentage over marked days."""
    totals = [0] * 7
    dones = [0] * 7
    for key, status in series.items():
        weekday = parse_date_key(key).weekday()
        totals[weekday] += 1
        if status is LogStatus.DONE:
            dones[weekday] += 1

    best: DayOfWeekScore | None = None
    worst: DayOfWeekScore | None = None
    for weekday in range(7):
        if totals[weekday] == 0:
            continue
        pct = rate_percent(dones[weekday], totals[weekday])
        if best is None or pct > best["percentage"]:
            best = DayOfWeekScore(day=WEEKDAY_NAMES[weekday], percentage=pct)
        if worst is None or pct < worst["percentage"]:
            worst = DayOfWeekScore(day=WEEKDAY_NAMES[weekday], percentage=pct)
    return best, worst


def compute_overall_stats(series: DaySeries, as_of: date) -> OverallStats:
    """Totals, streaks and consistency of a series up to as_of."""
    keys = sorted(k for k in series if parse_date_key(k) <= as_of)
    done = _count(series, keys, LogStatus.DONE)
    missed = _count(series, keys, LogStatus.MISSED)

    first = parse_date_key(keys[0]) if keys else None
    current = 0
    longest = 0
    days_since_start = 0
    if first is not None:

        def lookup(day: date) -> LogStatus | None:
            return series.get(date_key(day))

        current = walk_current_streak(lookup, first, as_of)
        longest = scan_longest_streak(lookup, first, as_of)
        days_since_start = (as_of - first).days + 1

    best, worst = _day_of_week_scores({k: series[k] for k in keys})

    return OverallStats(
        total_done=done,
        total_missed=missed,
        total_marked=done + missed,
        percentage=rate_percent(done, done + missed),
        current_streak=current,
        longest_streak=longest,
        first_record_date=keys[0] if keys else None,
        last_record_date=keys[-1] if keys else None,
        days_since_start=days_since_start,
        consistency_score=min(100, rate_percent(done + missed, days_since_start)),
        best_day_of_week=best,
        worst_day_of_week=worst,
    )


def compute_period_stats(series: DaySeries, as_of: date) -> PeriodStats:
    """Overall stats plus per-year breakdowns and the as_of month/year."""
    by_year: dict[int, list[str]] = defaultdict(list)
    for key in series:
        by_year[parse_date_key(key).year].append(key)

    yearly = [_year_stats(series, year, sorted(by_year[year])) for year in sorted(by_year)]
    current_year = next((y for y in yearly if y["year"] == as_of.year), None)

    today = date_key(as_of)
    month_keys = sorted(
        k for k in by_year.get(as_of.year, []) if parse_date_key(k).month == as_of.month and k <= today
    )
    current_month = _month_stats(series, month_keys, as_of.year, as_of.month)

    return PeriodStats(
        overall=compute_overall_stats(series, as_of),
        yearly=yearly,
        current_month=current_month,
        current_year=current_year,
    )
