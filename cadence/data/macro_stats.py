"""Yearly statistics over long-term (annual/monthly/weekly) goals."""

from __future__ import annotations

from typing import Any, TypedDict

from cadence.data.period_stats import MONTH_NAMES
from cadence.data.schemas import LongTermGoal, LongTermGoalType
from cadence.data.streaks import rate_percent

UNCATEGORIZED = "null"


class MonthBreakdown(TypedDict):
    month: int
    name: str
    total: int
    completed: int
    rate: int
    cumulative_total: int
    cumulative_completed: int


class CategoryStat(TypedDict):
    category: str
    label: str
    total: int
    completed: int
    rate: int


class TypeStat(TypedDict):
    type: str
    total: int
    completed: int
    rate: int


class MacroStats(TypedDict):
    year: int
    total_goals: int
    completed_goals: int
    completion_rate: int
    by_type: dict[str, int]
    main_focus: str | None
    monthly: list[MonthBreakdown]
    categories: list[CategoryStat]
    types: list[TypeStat]
    best_type: TypeStat | None
    best_month: MonthBreakdown | None
    best_category: CategoryStat | None


def category_label(color: str | None, mappings: dict[str, Any] | None) -> str:
    """Resolve a color key through the user's category mappings."""
    key = color or UNCATEGORIZED
    if mappings and isinstance(mappings.get(key), str):
        return str(mappings[key])
    return "Uncategorized" if key == UNCATEGORIZED else key.capitalize()


def _month_bucket(goal: LongTermGoal) -> int:
    # Annual goals and goals without a month land in January.
    if not goal.month:
        return 1
    return min(max(goal.month, 1), 12)


def _by_rate_then_completed(item: dict[str, Any]) -> tuple[int, int]:
    return -item["rate"], -item["completed"]


def compute_macro_stats(
    goals: list[LongTermGoal],
    year: int,
    mappings: dict[str, Any] | None = None,
) -> MacroStats:
    """KPIs, monthly breakdown and category/type rankings for one year.

    Rankings sort by rate, then completed count; ties keep input order.
    """
    scoped = [g for g in goals if g.year == year]
    completed = sum(1 for g in scoped if g.is_completed)

    by_type = {str(t): sum(1 for g in scoped if g.type == t) for t in LongTermGoalType}
    main_focus = max(by_type, key=lambda t: by_type[t]) if scoped else None

    monthly: list[MonthBreakdown] = []
    running_total = running_completed = 0
    for month in range(1, 13):
        in_month = [g for g in scoped if _month_bucket(g) == month]
        total = len(in_month)
        done = sum(1 for g in in_month if g.is_completed)
        running_total += total
        running_completed += done
        monthly.append(
            MonthBreakdown(
                month=month,
                name=MONTH_NAMES[month - 1],
                total=total,
                completed=done,
                rate=rate_percent(done, total),
                cumulative_total=running_total,
                cumulative_completed=running_completed,
            )
        )

    tallies: dict[str, list[int]] = {}
    for goal in scoped:
        counts = tallies.setdefault(goal.color or UNCATEGORIZED, [0, 0])
        counts[0] += 1
        counts[1] += int(goal.is_completed)
    categories = sorted(
        (
            CategoryStat(
                category=key,
                label=category_label(None if key == UNCATEGORIZED else key, mappings),
                total=total,
                completed=done,
                rate=rate_percent(done, total),
            )
            for key, (total, done) in tallies.items()
        ),
        key=lambda c: -c["rate"],
    )

    types: list[TypeStat] = []
    for goal_type, total in by_type.items():
        done = sum(1 for g in scoped if g.type == goal_type and g.is_completed)
        types.append(TypeStat(type=goal_type, total=total, completed=done, rate=rate_percent(done, total)))
    types.sort(key=_by_rate_then_completed)  # type: ignore[arg-type]

    active_months = [m for m in monthly if m["total"] > 0]
    active_months.sort(key=_by_rate_then_completed)  # type: ignore[arg-type]

    return MacroStats(
        year=year,
        total_goals=len(scoped),
        completed_goals=completed,
        completion_rate=rate_percent(completed, len(scoped)),
        by_type=by_type,
        main_focus=main_focus,
        monthly=monthly,
        categories=categories,
        types=types,
        best_type=types[0] if scoped else None,
        best_month=active_months[0] if active_months else None,
        best_category=categories[0] if categories else None,
    )
