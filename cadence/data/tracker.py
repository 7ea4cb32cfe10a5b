"""Goal lifecycle and the done -> missed -> unmarked toggle cycle.

Toggling is a two-phase commit: the next state is applied to an in-memory
overlay first, then written to the store; a failed write rolls the overlay
back so callers never show a state the store does not hold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum

from cadence.core.config import Settings
from cadence.core.config import settings as default_settings
from cadence.core.dates import date_key, in_range
from cadence.data.audit import write_audit_entry
from cadence.data.schemas import Goal, Log, LogsIndex, LogStatus, build_logs_index
from cadence.store.base import LogStore, StoreError

logger = logging.getLogger(__name__)


class GoalNotFoundError(LookupError):
    """The referenced goal does not exist."""


class OutOfRangeError(ValueError):
    """The date lies outside the goal's validity window."""


class DeleteOutcome(StrEnum):
    ARCHIVED = "archived"
    DELETED = "deleted"


def next_status(current: LogStatus | None) -> LogStatus | None:
    """Advance the cycle: unmarked -> done -> missed -> unmarked."""
    if current is None:
        return LogStatus.DONE
    if current is LogStatus.DONE:
        return LogStatus.MISSED
    return None


@dataclass(frozen=True)
class LogChange:
    """A single applied toggle, carrying what is needed to undo it."""

    goal_id: str
    date: str
    previous: LogStatus | None
    next: LogStatus | None


@dataclass
class LogOverlay:
    """Optimistic logs index layered over the last consistent store read."""

    index: LogsIndex = field(default_factory=dict)

    @classmethod
    def from_logs(cls, logs: list[Log]) -> LogOverlay:
        return cls(index=build_logs_index(logs))

    def status(self, goal_id: str, key: str) -> LogStatus | None:
        return self.index.get(key, {}).get(goal_id)

    def _set(self, goal_id: str, key: str, status: LogStatus | None) -> None:
        day = self.index.setdefault(key, {})
        if status is None:
            day.pop(goal_id, None)
            if not day:
                del self.index[key]
        else:
            day[goal_id] = status

    def apply(self, goal_id: str, key: str, status: LogStatus | None) -> LogChange:
        change = LogChange(goal_id=goal_id, date=key, previous=self.status(goal_id, key), next=status)
        self._set(goal_id, key, status)
        return change

    def revert(self, change: LogChange) -> None:
        self._set(change.goal_id, change.date, change.previous)


def ensure_in_window(goal: Goal, key: str) -> None:
    if not in_range(key, goal.start_date, goal.end_date):
        msg = f"cannot modify outside validity window: {key} not in [{goal.start_date}, {goal.end_date or '...'}]"
        raise OutOfRangeError(msg)


async def toggle_log(store: LogStore, overlay: LogOverlay, goal_id: str, day: date | datetime) -> LogChange:
    """Cycle the status of (goal_id, day) and persist it.

    Raises GoalNotFoundError or OutOfRangeError before anything is written;
    any store failure is re-raised after rolling the overlay back.
    """
    key = date_key(day)
    goal = await store.get_goal(goal_id)
    if goal is None:
        msg = f"Goal not found: {goal_id}"
        raise GoalNotFoundError(msg)
    ensure_in_window(goal, key)

    change = overlay.apply(goal_id, key, next_status(overlay.status(goal_id, key)))
    try:
        if change.next is None:
            await store.delete_log(goal_id, key)
        else:
            await store.upsert_log(goal_id, key, change.next)
    except Exception:
        overlay.revert(change)
        logger.exception("Toggle of %s on %s failed; overlay rolled back", goal_id, key)
        raise

    logger.info("Goal %s on %s: %s -> %s", goal_id, key, change.previous, change.next)
    return change


async def create_goal(store: LogStore, title: str, color: str | None, start_date: str | None = None) -> Goal:
    title = title.strip()
    if not title:
        msg = "Goal title must not be empty"
        raise ValueError(msg)
    goal = await store.create_goal(title, color, start_date)
    logger.info("Created goal %s (%s)", goal.id, title)
    return goal


async def remove_goal(store: LogStore, goal_id: str, as_of: date) -> DeleteOutcome:
    """Archive a goal that has history, hard-delete one that has none.

    Archiving sets end_date to the day before as_of, never earlier than the
    goal's start_date. A failed hard delete falls back to archiving.
    """
    goal = await store.get_goal(goal_id)
    if goal is None:
        msg = f"Goal not found: {goal_id}"
        raise GoalNotFoundError(msg)

    yesterday = max(date_key(as_of - timedelta(days=1)), goal.start_date)
    if await store.count_logs(goal_id) > 0:
        await store.archive_goal(goal_id, yesterday)
        logger.info("Archived goal %s with end_date %s", goal_id, yesterday)
        return DeleteOutcome.ARCHIVED

    try:
        await store.delete_goal(goal_id)
    except StoreError as exc:
        logger.warning("Hard delete of %s failed (%s); archiving instead", goal_id, exc)
        await store.archive_goal(goal_id, yesterday)
        return DeleteOutcome.ARCHIVED

    logger.info("Deleted goal %s", goal_id)
    return DeleteOutcome.DELETED


async def reset_all_data(store: LogStore, config: Settings | None = None) -> int:
    """Delete every goal and log. Long-term goals and category settings stay.

    The wipe is audited after the store confirms it.
    """
    cfg = config or default_settings
    removed = await store.reset_all()
    write_audit_entry(cfg.data_audit_path / "reset.jsonl", "reset_all", goals_removed=removed)
    logger.warning("All goals and logs deleted (%d goals)", removed)
    return removed
