"""Goal, log and report schemas for the habit tracker."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, TypedDict

from cadence.core.dates import parse_date_key


class LogStatus(StrEnum):
    """Observed state of a goal on one day. Unmarked days have no log."""

    DONE = "done"
    MISSED = "missed"


class LongTermGoalType(StrEnum):
    """Horizon of a long-term goal."""

    ANNUAL = "annual"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class PeriodKind(StrEnum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# date key -> goal id -> status
LogsIndex = dict[str, dict[str, LogStatus]]


@dataclass
class Goal:
    """A trackable habit with a validity window."""

    id: str
    title: str
    start_date: str  # YYYY-MM-DD, inclusive
    color: str | None = None
    end_date: str | None = None  # inclusive, None = open-ended
    created_at: str = ""

    def __post_init__(self) -> None:
        if self.end_date is not None and self.end_date < self.start_date:
            msg = f"Goal {self.id}: end_date {self.end_date} precedes start_date {self.start_date}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Log:
    """One per-day, per-goal observation."""

    goal_id: str
    date: str  # YYYY-MM-DD
    status: LogStatus


@dataclass
class LongTermGoal:
    """Annual/monthly/weekly objective; the record type carried by backups."""

    id: str
    title: str
    type: str  # LongTermGoalType value
    year: int
    month: int | None = None
    week_number: int | None = None
    is_completed: bool = False
    color: str | None = None
    created_at: str = ""
    extra: dict[str, Any] = field(default_factory=dict)  # passthrough columns (user_id, ...)

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)
        extra = record.pop("extra")
        return {**extra, **record}


MUTABLE_FIELDS = ("title", "is_completed", "type", "year", "month", "week_number", "color")
_KNOWN_FIELDS = (*MUTABLE_FIELDS, "id", "created_at")


class HabitStat(TypedDict):
    """Per-goal streak and completion summary."""

    id: str
    title: str
    color: str | None
    current_streak: int
    longest_streak: int
    total_days: int
    completion_rate: int


class WeekdayStat(TypedDict):
    day_index: int  # 0 = Monday ... 6 = Sunday
    day_name: str
    total_active: int
    total_done: int
    rate: int


class PeriodDelta(TypedDict):
    previous: int
    current: int
    change: int
    trend: str  # Trend value


class HabitComparison(TypedDict):
    habit_id: str
    week: PeriodDelta
    month: PeriodDelta
    year: PeriodDelta


class CriticalDay(TypedDict):
    """Weakest weekday of a goal, or day='N/A' when no weekday has enough samples."""

    habit_id: str
    title: str
    day: str
    rate: int


class DayActivity(TypedDict):
    date: str
    count: int
    intensity: int  # 0-4


class GlobalStats(TypedDict):
    total_active_days: int
    global_success_rate: int
    best_streak: int


class BadgeState(TypedDict):
    id: str
    name: str
    description: str
    icon: str
    tier: str
    unlocked: bool
    progress: int | None
    max_progress: int | None


class ImportReport(TypedDict):
    """Outcome of a backup reconciliation."""

    restored: list[dict[str, Any]]
    updated: list[dict[str, Any]]
    unchanged: int
    settings_updated: bool
    ambiguous: list[str]


def make_goal(
    goal_id: str,
    title: str,
    start_date: str,
    color: str | None = None,
    end_date: str | None = None,
    created_at: str | None = None,
) -> Goal:
    """Create a goal, normalizing date keys and stamping created_at."""
    return Goal(
        id=goal_id,
        title=title,
        start_date=parse_date_key(start_date).isoformat(),
        color=color,
        end_date=parse_date_key(end_date).isoformat() if end_date else None,
        created_at=created_at or datetime.now().astimezone().isoformat(),
    )


def goal_from_record(record: dict[str, Any]) -> Goal:
    """Build a Goal from a store row, ignoring unknown columns."""
    end = record.get("end_date")
    return Goal(
        id=str(record["id"]),
        title=str(record.get("title", "")),
        start_date=parse_date_key(str(record["start_date"])).isoformat(),
        color=record.get("color"),
        end_date=parse_date_key(str(end)).isoformat() if end else None,
        created_at=str(record.get("created_at") or ""),
    )


def log_from_record(record: dict[str, Any]) -> Log:
    return Log(
        goal_id=str(record["goal_id"]),
        date=parse_date_key(str(record["date"])).isoformat(),
        status=LogStatus(record["status"]),
    )


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no", ""})


def _strict_bool(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    msg = f"not a boolean: {value!r}"
    raise ValueError(msg)


def long_term_goal_from_record(record: dict[str, Any]) -> LongTermGoal:
    """Build a LongTermGoal from an exported row; unknown columns go to extra.

    Raises ValueError or TypeError on non-numeric year/month/week_number or a
    non-boolean is_completed.
    """
    return LongTermGoal(
        id=str(record.get("id") or ""),
        title=str(record.get("title", "")),
        type=str(record.get("type", "")),
        year=int(record.get("year") or 0),
        month=_optional_int(record.get("month")),
        week_number=_optional_int(record.get("week_number")),
        is_completed=_strict_bool(record.get("is_completed")),
        color=record.get("color"),
        created_at=str(record.get("created_at") or ""),
        extra={k: v for k, v in record.items() if k not in _KNOWN_FIELDS},
    )


def build_logs_index(logs: list[Log]) -> LogsIndex:
    """Rebuild the date -> goal -> status mapping. Later logs win on duplicates."""
    index: LogsIndex = {}
    for log in logs:
        index.setdefault(log.date, {})[log.goal_id] = log.status
    return index
