"""age-encrypted file store: one sealed JSON document per collection."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from cadence.core.config import Settings, settings
from cadence.data.audit import write_audit_entry
from cadence.data.encryption import open_document, seal_document
from cadence.data.schemas import (
    Goal,
    Log,
    LogStatus,
    LongTermGoal,
    goal_from_record,
    log_from_record,
    long_term_goal_from_record,
    make_goal,
)
from cadence.store.base import LogStore, StoreError

logger = logging.getLogger(__name__)

_GOALS = "goals"
_LOGS = "logs"
_LONG_TERM = "long_term_goals"
_SETTINGS = "category_settings"


class LakeLogStore(LogStore):
    """LogStore persisted as age-encrypted documents under data_store_path.

    Every write rewrites the whole collection document and appends an audit
    entry. Suitable for a single user; concurrent writers are last-write-wins.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings
        self._root: Path = self._config.data_store_path
        self._audit_file: Path = self._config.data_audit_path / "store.jsonl"

    @property
    def name(self) -> str:
        return "lake"

    async def initialize(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("Lake store ready at %s", self._root)

    # Raw document access ----------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._root / f"{collection}.age"

    def _read(self, collection: str, default: Any) -> Any:
        path = self._path(collection)
        if not path.exists():
            return default
        try:
            return open_document(path.read_bytes(), self._config.age_identity)
        except Exception as exc:
            msg = f"Failed to read {collection} from {path}: {exc}"
            raise StoreError(msg) from exc

    def _write(self, collection: str, document: Any, action: str, **details: Any) -> None:
        path = self._path(collection)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(seal_document(document, self._config.age_recipient))
        except Exception as exc:
            msg = f"Failed to write {collection} to {path}: {exc}"
            raise StoreError(msg) from exc
        write_audit_entry(self._audit_file, action, collection=collection, **details)

    # Habits -----------------------------------------------------------------

    def _goal_rows(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = self._read(_GOALS, [])
        return rows

    async def list_goals(self) -> list[Goal]:
        goals = [goal_from_record(row) for row in self._goal_rows()]
        return sorted(goals, key=lambda g: g.created_at)

    async def get_goal(self, goal_id: str) -> Goal | None:
        for row in self._goal_rows():
            if row.get("id") == goal_id:
                return goal_from_record(row)
        return None

    async def create_goal(self, title: str, color: str | None, start_date: str | None = None) -> Goal:
        goal = make_goal(str(uuid.uuid4()), title, start_date or datetime.now().date().isoformat(), color=color)
        rows = self._goal_rows()
        rows.append(asdict(goal))
        self._write(_GOALS, rows, "create_goal", goal_id=goal.id)
        return goal

    async def archive_goal(self, goal_id: str, end_date: str) -> None:
        rows = self._goal_rows()
        for row in rows:
            if row.get("id") == goal_id:
                row["end_date"] = end_date
        self._write(_GOALS, rows, "archive_goal", goal_id=goal_id, end_date=end_date)

    async def delete_goal(self, goal_id: str) -> None:
        rows = [row for row in self._goal_rows() if row.get("id") != goal_id]
        self._write(_GOALS, rows, "delete_goal", goal_id=goal_id)

    # Logs -------------------------------------------------------------------

    def _log_rows(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = self._read(_LOGS, [])
        return rows

    async def list_logs(self) -> list[Log]:
        return [log_from_record(row) for row in self._log_rows()]

    async def upsert_log(self, goal_id: str, date: str, status: LogStatus) -> None:
        rows = [r for r in self._log_rows() if not (r.get("goal_id") == goal_id and r.get("date") == date)]
        rows.append({"goal_id": goal_id, "date": date, "status": str(status)})
        self._write(_LOGS, rows, "upsert_log", goal_id=goal_id, date=date, status=str(status))

    async def delete_log(self, goal_id: str, date: str) -> None:
        rows = [r for r in self._log_rows() if not (r.get("goal_id") == goal_id and r.get("date") == date)]
        self._write(_LOGS, rows, "delete_log", goal_id=goal_id, date=date)

    async def reset_all(self) -> int:
        removed = len(self._goal_rows())
        self._write(_LOGS, [], "reset_all")
        self._write(_GOALS, [], "reset_all", goals_removed=removed)
        return removed

    # Long-term goals & settings --------------------------------------------

    async def list_long_term_goals(self) -> list[LongTermGoal]:
        rows: list[dict[str, Any]] = self._read(_LONG_TERM, [])
        return [long_term_goal_from_record(row) for row in rows]

    async def upsert_long_term_goals(self, goals: list[LongTermGoal]) -> None:
        rows: list[dict[str, Any]] = self._read(_LONG_TERM, [])
        by_id = {str(row.get("id")): row for row in rows}
        for goal in goals:
            by_id[goal.id] = goal.to_record()
        self._write(_LONG_TERM, list(by_id.values()), "upsert_long_term_goals", records=len(goals))

    async def get_category_settings(self) -> dict[str, Any] | None:
        document: dict[str, Any] | None = self._read(_SETTINGS, None)
        return document

    async def put_category_settings(self, mappings: dict[str, Any]) -> None:
        self._write(_SETTINGS, mappings, "put_category_settings", keys=len(mappings))
