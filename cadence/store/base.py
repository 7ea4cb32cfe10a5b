"""Abstract base for goal/log storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from cadence.data.schemas import Goal, Log, LogStatus, LongTermGoal


class StoreError(RuntimeError):
    """A storage backend failed to read or write."""


class LogStore(ABC):
    """Storage contract consumed by the tracker, analytics and backup code.

    Implementations: InMemoryLogStore, LakeLogStore.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique backend name (e.g. 'memory')."""

    # Habits -----------------------------------------------------------------

    @abstractmethod
    async def list_goals(self) -> list[Goal]:
        """All goals ordered by created_at."""

    @abstractmethod
    async def get_goal(self, goal_id: str) -> Goal | None:
        """Single goal by id, None when absent."""

    @abstractmethod
    async def create_goal(self, title: str, color: str | None, start_date: str | None = None) -> Goal:
        """Create a goal starting on start_date (default: today)."""

    @abstractmethod
    async def archive_goal(self, goal_id: str, end_date: str) -> None:
        """Close a goal's validity window, keeping its history."""

    @abstractmethod
    async def delete_goal(self, goal_id: str) -> None:
        """Remove a goal permanently."""

    # Logs -------------------------------------------------------------------

    @abstractmethod
    async def list_logs(self) -> list[Log]:
        """Every log of every goal."""

    @abstractmethod
    async def upsert_log(self, goal_id: str, date: str, status: LogStatus) -> None:
        """Insert or overwrite the log for (goal_id, date)."""

    @abstractmethod
    async def delete_log(self, goal_id: str, date: str) -> None:
        """Remove the log for (goal_id, date); no-op when absent."""

    @abstractmethod
    async def reset_all(self) -> int:
        """Delete every goal and every log; returns the number of goals removed."""

    async def count_logs(self, goal_id: str) -> int:
        """Number of logs recorded for a goal."""
        return sum(1 for log in await self.list_logs() if log.goal_id == goal_id)

    # Long-term goals & settings --------------------------------------------

    @abstractmethod
    async def list_long_term_goals(self) -> list[LongTermGoal]:
        """All long-term goals."""

    @abstractmethod
    async def upsert_long_term_goals(self, goals: list[LongTermGoal]) -> None:
        """Insert or overwrite long-term goals by id in one batch."""

    @abstractmethod
    async def get_category_settings(self) -> dict[str, Any] | None:
        """Category label mappings, None when never saved."""

    @abstractmethod
    async def put_category_settings(self, mappings: dict[str, Any]) -> None:
        """Replace the category label mappings."""

    async def initialize(self) -> None:  # noqa: B027
        """Initialize the backend (no-op default)."""

    async def shutdown(self) -> None:  # noqa: B027
        """Shut down the backend (no-op default)."""
