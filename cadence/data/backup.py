"""JSON backup export and reconciliation-based import of long-term goals.

Import never blindly upserts. Each imported record is matched to a live goal
by id, then by the (title, type, year) content key, and only records that
are new or actually differ are written. Content matching keeps re-imports
from duplicating goals whose ids were regenerated between export and import.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from cadence.core.config import Settings
from cadence.core.config import settings as default_settings
from cadence.data.audit import write_audit_entry
from cadence.data.schemas import MUTABLE_FIELDS, ImportReport, LongTermGoal, long_term_goal_from_record
from cadence.store.base import LogStore, StoreError

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1


class InvalidBackupError(ValueError):
    """The backup document is malformed; nothing was written."""


class ImportFailedError(RuntimeError):
    """The store failed while reading or applying an import."""


@dataclass(frozen=True)
class BackupSnapshot:
    version: int
    timestamp: str
    goals: tuple[dict[str, Any], ...]
    settings: dict[str, Any] | None = None

    @property
    def mappings(self) -> dict[str, Any] | None:
        if self.settings is None:
            return None
        mappings = self.settings.get("mappings")
        return mappings if isinstance(mappings, dict) else None


@dataclass
class ReconciliationPlan:
    """Classified diff between an imported snapshot and the live goals."""

    restored: list[LongTermGoal] = field(default_factory=list)
    updated: list[LongTermGoal] = field(default_factory=list)
    unchanged: int = 0
    ambiguous: list[str] = field(default_factory=list)

    @property
    def writes(self) -> list[LongTermGoal]:
        return [*self.restored, *self.updated]


def _invalid(reason: str) -> InvalidBackupError:
    return InvalidBackupError(f"invalid backup format: {reason}")


def parse_backup(raw: str | bytes | dict[str, Any]) -> BackupSnapshot:
    """Validate and load a backup document. Raises InvalidBackupError."""
    if isinstance(raw, dict):
        data: Any = raw
    else:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise _invalid(f"not JSON ({exc})") from exc

    if not isinstance(data, dict):
        raise _invalid("top level must be an object")
    version = data.get("version")
    if version is None:
        raise _invalid("missing version")
    if isinstance(version, bool) or version != BACKUP_VERSION:
        raise _invalid(f"unsupported version {version!r}")
    goals = data.get("goals")
    if not isinstance(goals, list):
        raise _invalid("goals must be a list")
    if not all(isinstance(g, dict) for g in goals):
        raise _invalid("every goal must be an object")
    for position, record in enumerate(goals):
        try:
            long_term_goal_from_record(record)
        except (ValueError, TypeError) as exc:
            raise _invalid(f"goal {position}: {exc}") from exc
    settings = data.get("settings")
    if settings is not None and not isinstance(settings, dict):
        raise _invalid("settings must be an object or null")

    return BackupSnapshot(
        version=int(version),
        timestamp=str(data.get("timestamp", "")),
        goals=tuple(goals),
        settings=settings,
    )


def content_key(goal: LongTermGoal) -> tuple[str, str, int]:
    """Natural key used when ids do not line up."""
    return goal.title, goal.type, goal.year


def differs(imported: LongTermGoal, live: LongTermGoal) -> bool:
    return any(getattr(imported, name) != getattr(live, name) for name in MUTABLE_FIELDS)


def plan_reconciliation(imported: Sequence[dict[str, Any]], live: list[LongTermGoal]) -> ReconciliationPlan:
    """Classify imported records as restored, updated or unchanged.

    Id matches are resolved first for every record and claim their live
    goal. Remaining records then adopt the first unclaimed live goal with the
    same content key (its id replaces the imported one), claiming it in turn.
    Titles with more than one unclaimed content candidate are reported as
    ambiguous.
    """
    plan = ReconciliationPlan()
    live_by_id = {g.id: g for g in live}
    candidates = [long_term_goal_from_record(record) for record in imported]

    matches: list[LongTermGoal | None] = [live_by_id.get(c.id) if c.id else None for c in candidates]
    claimed = {match.id for match in matches if match is not None}

    for position, candidate in enumerate(candidates):
        if matches[position] is not None:
            continue
        key = content_key(candidate)
        options = [g for g in live if g.id not in claimed and content_key(g) == key]
        if not options:
            continue
        match = options[0]
        if len(options) > 1:
            plan.ambiguous.append(candidate.title)
            logger.warning(
                "Ambiguous content match for %r (%s %d): %d live candidates, using %s",
                candidate.title,
                candidate.type,
                candidate.year,
                len(options),
                match.id,
            )
        matches[position] = match
        claimed.add(match.id)

    for candidate, match in zip(candidates, matches, strict=True):
        if match is None:
            if not candidate.id:
                candidate.id = str(uuid.uuid4())
            plan.restored.append(candidate)
        elif differs(candidate, match):
            changes = {name: getattr(candidate, name) for name in MUTABLE_FIELDS}
            plan.updated.append(replace(match, **changes, extra={**match.extra, **candidate.extra}))
        else:
            plan.unchanged += 1

    return plan


def _canonical(mappings: dict[str, Any] | None) -> str:
    return json.dumps(mappings, sort_keys=True, default=str)


async def import_backup(
    store: LogStore,
    raw: str | bytes | dict[str, Any],
    config: Settings | None = None,
) -> ImportReport:
    """Reconcile a backup document into the store and report what changed.

    The document is validated before any read. Store failures surface as
    ImportFailedError; the whole import may be retried since the diff is
    recomputed from a fresh read every run.
    """
    cfg = config or default_settings
    snapshot = parse_backup(raw)

    try:
        live = await store.list_long_term_goals()
        live_mappings = await store.get_category_settings()
    except StoreError as exc:
        msg = f"Import failed while reading live data: {exc}"
        raise ImportFailedError(msg) from exc

    plan = plan_reconciliation(snapshot.goals, live)
    new_mappings = snapshot.mappings
    settings_changed = new_mappings is not None and _canonical(new_mappings) != _canonical(live_mappings)

    try:
        if plan.writes:
            await store.upsert_long_term_goals(plan.writes)
        if settings_changed and new_mappings is not None:
            await store.put_category_settings(new_mappings)
    except StoreError as exc:
        logger.exception("Backup import aborted during write")
        msg = f"Import failed while writing: {exc}"
        raise ImportFailedError(msg) from exc

    write_audit_entry(
        cfg.data_audit_path / "import.jsonl",
        "import_backup",
        backup_timestamp=snapshot.timestamp,
        restored=len(plan.restored),
        updated=len(plan.updated),
        unchanged=plan.unchanged,
        settings_updated=settings_changed,
    )
    logger.info(
        "Backup import: %d restored, %d updated, %d unchanged, settings_updated=%s",
        len(plan.restored),
        len(plan.updated),
        plan.unchanged,
        settings_changed,
    )

    return ImportReport(
        restored=[g.to_record() for g in plan.restored],
        updated=[g.to_record() for g in plan.updated],
        unchanged=plan.unchanged,
        settings_updated=settings_changed,
        ambiguous=plan.ambiguous,
    )


async def export_backup(store: LogStore, now: datetime | None = None) -> dict[str, Any]:
    """Build a version-1 backup document from a fresh store read."""
    goals = await store.list_long_term_goals()
    mappings = await store.get_category_settings()
    stamp = now or datetime.now().astimezone()
    return {
        "version": BACKUP_VERSION,
        "timestamp": stamp.isoformat(),
        "goals": [g.to_record() for g in goals],
        "settings": {"mappings": mappings} if mappings is not None else None,
    }


def backup_filename(now: datetime) -> str:
    return f"habit_tracker_backup_{now.date().isoformat()}.json"
