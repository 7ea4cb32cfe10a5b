"""Achievement badges evaluated from aggregate statistics.

Badges are never stored. Every analytics pass re-evaluates the whole table,
so unlocking is an idempotent predicate rather than an event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum
from typing import TypedDict

from cadence.core.dates import parse_date_key
from cadence.data.period_stats import DaySeries, MonthStats, OverallStats, YearStats
from cadence.data.schemas import BadgeState, LogStatus

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_TARGET = 20
PERFECT_WEEK_DAYS = 7


class BadgeTier(StrEnum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class RuleKind(StrEnum):
    """Closed set of badge rule variants."""

    STREAK_THRESHOLD = "streak_threshold"
    CUMULATIVE_THRESHOLD = "cumulative_threshold"
    CONSISTENCY_THRESHOLD = "consistency_threshold"
    GOAL_ATTAINMENT = "goal_attainment"
    PERFECT_WEEK = "perfect_week"
    FIRST_RECORD = "first_record"


@dataclass(frozen=True)
class BadgeRule:
    kind: RuleKind
    threshold: int = 0  # unused by goal_attainment, which reads the monthly target


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    icon: str
    tier: BadgeTier
    rule: BadgeRule


class RuleResult(TypedDict):
    unlocked: bool
    progress: int | None
    max_progress: int | None


class BadgeSummary(TypedDict):
    badges: list[BadgeState]
    unlocked: list[BadgeState]
    locked: list[BadgeState]
    total: int
    unlocked_count: int


BADGE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    # Streaks
    BadgeDefinition(
        id="streak_3",
        name="Promising start",
        description="Keep a 3-day streak",
        icon="🔥",
        tier=BadgeTier.BRONZE,
        rule=BadgeRule(RuleKind.STREAK_THRESHOLD, 3),
    ),
    BadgeDefinition(
        id="streak_7",
        name="One week",
        description="Keep a 7-day streak",
        icon="📅",
        tier=BadgeTier.BRONZE,
        rule=BadgeRule(RuleKind.STREAK_THRESHOLD, 7),
    ),
    BadgeDefinition(
        id="streak_14",
        name="Two weeks",
        description="Keep a 14-day streak",
        icon="⚡",
        tier=BadgeTier.SILVER,
        rule=BadgeRule(RuleKind.STREAK_THRESHOLD, 14),
    ),
    BadgeDefinition(
        id="streak_30",
        name="Month on fire",
        description="Keep a 30-day streak",
        icon="🏆",
        tier=BadgeTier.GOLD,
        rule=BadgeRule(RuleKind.STREAK_THRESHOLD, 30),
    ),
    BadgeDefinition(
        id="streak_100",
        name="Legend",
        description="Keep a 100-day streak",
        icon="👑",
        tier=BadgeTier.PLATINUM,
        rule=BadgeRule(RuleKind.STREAK_THRESHOLD, 100),
    ),
    # Cumulative days
    BadgeDefinition(
        id="total_10",
        name="First milestone",
        description="Complete 10 days in total",
        icon="📖",
        tier=BadgeTier.BRONZE,
        rule=BadgeRule(RuleKind.CUMULATIVE_THRESHOLD, 10),
    ),
    BadgeDefinition(
        id="total_50",
        name="Regular",
        description="Complete 50 days in total",
        icon="📚",
        tier=BadgeTier.SILVER,
        rule=BadgeRule(RuleKind.CUMULATIVE_THRESHOLD, 50),
    ),
    BadgeDefinition(
        id="total_100",
        name="Centurion",
        description="Complete 100 days in total",
        icon="🎖️",
        tier=BadgeTier.GOLD,
        rule=BadgeRule(RuleKind.CUMULATIVE_THRESHOLD, 100),
    ),
    BadgeDefinition(
        id="total_365",
        name="A full year",
        description="Complete 365 days in total",
        icon="🌟",
        tier=BadgeTier.PLATINUM,
        rule=BadgeRule(RuleKind.CUMULATIVE_THRESHOLD, 365),
    ),
    # Consistency
    BadgeDefinition(
        id="consistency_50",
        name="Steady",
        description="Reach 50% consistency",
        icon="🎯",
        tier=BadgeTier.BRONZE,
        rule=BadgeRule(RuleKind.CONSISTENCY_THRESHOLD, 50),
    ),
    BadgeDefinition(
        id="consistency_80",
        name="Determined",
        description="Reach 80% consistency",
        icon="💪",
        tier=BadgeTier.SILVER,
        rule=BadgeRule(RuleKind.CONSISTENCY_THRESHOLD, 80),
    ),
    BadgeDefinition(
        id="consistency_95",
        name="Unstoppable",
        description="Reach 95% consistency",
        icon="🔱",
        tier=BadgeTier.GOLD,
        rule=BadgeRule(RuleKind.CONSISTENCY_THRESHOLD, 95),
    ),
    # Monthly target, perfect week, first record
    BadgeDefinition(
        id="monthly_goal",
        name="Monthly goal",
        description="Reach the monthly target",
        icon="🏅",
        tier=BadgeTier.SILVER,
        rule=BadgeRule(RuleKind.GOAL_ATTAINMENT),
    ),
    BadgeDefinition(
        id="perfect_week",
        name="Perfect week",
        description="Complete seven days in a row",
        icon="✨",
        tier=BadgeTier.SILVER,
        rule=BadgeRule(RuleKind.PERFECT_WEEK, PERFECT_WEEK_DAYS),
    ),
    BadgeDefinition(
        id="first_step",
        name="First step",
        description="Record your first completed day",
        icon="🚀",
        tier=BadgeTier.BRONZE,
        rule=BadgeRule(RuleKind.FIRST_RECORD, 1),
    ),
)


def clamp_monthly_target(target: int) -> int:
    """Monthly targets live in [1, 31]."""
    return max(1, min(31, target))


def longest_consecutive_done(series: DaySeries) -> int:
    """Longest run of calendar-consecutive done days; gaps are not bridged here."""
    done_days = sorted(parse_date_key(k) for k, status in series.items() if status is LogStatus.DONE)
    best = 0
    run = 0
    previous = None
    for day in done_days:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def _threshold(value: int, threshold: int) -> RuleResult:
    return RuleResult(unlocked=value >= threshold, progress=min(value, threshold), max_progress=threshold)


def evaluate_rule(
    rule: BadgeRule,
    overall: OverallStats,
    series: DaySeries,
    month: MonthStats | None,
    year: YearStats | None,
    monthly_target: int,
) -> RuleResult:
    """Evaluate one rule variant against the current aggregates."""
    if rule.kind is RuleKind.STREAK_THRESHOLD:
        return _threshold(overall["longest_streak"], rule.threshold)
    if rule.kind is RuleKind.CUMULATIVE_THRESHOLD:
        return _threshold(overall["total_done"], rule.threshold)
    if rule.kind is RuleKind.CONSISTENCY_THRESHOLD:
        return _threshold(overall["consistency_score"], rule.threshold)
    if rule.kind is RuleKind.GOAL_ATTAINMENT:
        days_done = month["days_done"] if month is not None else 0
        return RuleResult(unlocked=days_done >= monthly_target, progress=days_done, max_progress=monthly_target)
    if rule.kind is RuleKind.PERFECT_WEEK:
        return _threshold(longest_consecutive_done(series), rule.threshold)
    if rule.kind is RuleKind.FIRST_RECORD:
        return _threshold(overall["total_done"], rule.threshold)
    msg = f"Unknown badge rule kind: {rule.kind}"
    raise ValueError(msg)


def evaluate_badges(
    overall: OverallStats,
    series: DaySeries,
    month: MonthStats | None,
    year: YearStats | None,
    monthly_target: int = DEFAULT_MONTHLY_TARGET,
    definitions: tuple[BadgeDefinition, ...] = BADGE_DEFINITIONS,
    as_of: date | None = None,
) -> BadgeSummary:
    """Evaluate every badge definition, preserving table order.

    With as_of, days after it are dropped from the series first.
    """
    if as_of is not None:
        series = {k: status for k, status in series.items() if parse_date_key(k) <= as_of}
    target = clamp_monthly_target(monthly_target)
    badges: list[BadgeState] = []
    for definition in definitions:
        result = evaluate_rule(definition.rule, overall, series, month, year, target)
        badges.append(
            BadgeState(
                id=definition.id,
                name=definition.name,
                description=definition.description,
                icon=definition.icon,
                tier=definition.tier,
                unlocked=result["unlocked"],
                progress=result["progress"],
                max_progress=result["max_progress"],
            )
        )

    unlocked = [b for b in badges if b["unlocked"]]
    locked = [b for b in badges if not b["unlocked"]]
    logger.debug("Badges evaluated: %d/%d unlocked", len(unlocked), len(badges))
    return BadgeSummary(
        badges=badges,
        unlocked=unlocked,
        locked=locked,
        total=len(badges),
        unlocked_count=len(unlocked),
    )
