"""In-process store, used by tests and as a scratch backend."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime
from typing import Any

from cadence.data.schemas import Goal, Log, LogStatus, LongTermGoal, make_goal
from cadence.store.base import LogStore


class InMemoryLogStore(LogStore):
    """Dict-backed LogStore. Returned objects are copies."""

    def __init__(
        self,
        goals: list[Goal] | None = None,
        logs: list[Log] | None = None,
        long_term_goals: list[LongTermGoal] | None = None,
        category_settings: dict[str, Any] | None = None,
    ) -> None:
        self._goals: dict[str, Goal] = {g.id: g for g in goals or []}
        self._logs: dict[tuple[str, str], Log] = {(log.goal_id, log.date): log for log in logs or []}
        self._long_term: dict[str, LongTermGoal] = {g.id: g for g in long_term_goals or []}
        self._settings = category_settings
        self.write_count = 0

    @property
    def name(self) -> str:
        return "memory"

    async def list_goals(self) -> list[Goal]:
        return sorted((copy.copy(g) for g in self._goals.values()), key=lambda g: g.created_at)

    async def get_goal(self, goal_id: str) -> Goal | None:
        goal = self._goals.get(goal_id)
        return copy.copy(goal) if goal is not None else None

    async def create_goal(self, title: str, color: str | None, start_date: str | None = None) -> Goal:
        goal = make_goal(str(uuid.uuid4()), title, start_date or datetime.now().date().isoformat(), color=color)
        self._goals[goal.id] = goal
        self.write_count += 1
        return copy.copy(goal)

    async def archive_goal(self, goal_id: str, end_date: str) -> None:
        if goal_id in self._goals:
            self._goals[goal_id].end_date = end_date
            self.write_count += 1

    async def delete_goal(self, goal_id: str) -> None:
        self._goals.pop(goal_id, None)
        self.write_count += 1

    async def list_logs(self) -> list[Log]:
        return list(self._logs.values())

    async def upsert_log(self, goal_id: str, date: str, status: LogStatus) -> None:
        self._logs[(goal_id, date)] = Log(goal_id=goal_id, date=date, status=LogStatus(status))
        self.write_count += 1

    async def delete_log(self, goal_id: str, date: str) -> None:
        self._logs.pop((goal_id, date), None)
        self.write_count += 1

    async def reset_all(self) -> int:
        removed = len(self._goals)
        self._goals.clear()
        self._logs.clear()
        self.write_count += 1
        return removed

    async def list_long_term_goals(self) -> list[LongTermGoal]:
        return [copy.deepcopy(g) for g in self._long_term.values()]

    async def upsert_long_term_goals(self, goals: list[LongTermGoal]) -> None:
        for goal in goals:
            self._long_term[goal.id] = copy.deepcopy(goal)
        self.write_count += 1

    async def get_category_settings(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._settings)

    async def put_category_settings(self, mappings: dict[str, Any]) -> None:
        self._settings = copy.deepcopy(mappings)
        self.write_count += 1
