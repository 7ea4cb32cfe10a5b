"""Legacy CSV export/import for raw logs and long-term goals.

CSV import is a straight upsert per row with no reconciliation; use the JSON
backup for merges.
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from dataclasses import dataclass, field

from cadence.core.dates import in_range, parse_date_key
from cadence.data.schemas import Goal, Log, LogStatus, LongTermGoal, LongTermGoalType
from cadence.store.base import LogStore

logger = logging.getLogger(__name__)

LOG_HEADER = ["Date", "Habit Name", "Status", "Value", "Notes"]
LONG_TERM_HEADER = ["ID", "Title", "Type", "Year", "Month", "Week", "Is Completed", "Created At"]

# Ids shorter than this are treated as absent (a fresh id is minted).
_MIN_ID_LENGTH = 30


@dataclass
class LogRow:
    date: str
    habit_name: str
    status: LogStatus


@dataclass
class CsvImportResult:
    """Summary of a CSV import."""

    rows_imported: int = 0
    errors: list[str] = field(default_factory=list)


def _write_rows(header: list[str], rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _read_rows(text: str) -> list[list[str]]:
    """Parse CSV text, dropping blank lines and the header row."""
    rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff"))) if any(cell.strip() for cell in row)]
    return rows[1:]


# ---------------------------------------------------------------------------
# Raw logs
# ---------------------------------------------------------------------------


def export_logs_csv(goals: list[Goal], logs: list[Log]) -> str:
    """Render logs as Date,Habit Name,Status,Value,Notes sorted by date then title."""
    titles = {g.id: g.title for g in goals}
    rows = [
        [log.date, titles[log.goal_id], str(log.status), "1" if log.status is LogStatus.DONE else "0", ""]
        for log in logs
        if log.goal_id in titles
    ]
    rows.sort(key=lambda r: (r[0], r[1]))
    return _write_rows(LOG_HEADER, rows)


def parse_logs_csv(text: str) -> tuple[list[LogRow], list[str]]:
    """Parse log rows; malformed rows are reported, not fatal."""
    parsed: list[LogRow] = []
    errors: list[str] = []
    for line_no, row in enumerate(_read_rows(text), start=2):
        if len(row) < 3:
            errors.append(f"line {line_no}: expected at least 3 columns, got {len(row)}")
            continue
        raw_date, habit, raw_status = row[0].strip(), row[1].strip(), row[2].strip().lower()
        try:
            key = parse_date_key(raw_date).isoformat()
        except ValueError:
            errors.append(f"line {line_no}: invalid date {raw_date!r}")
            continue
        try:
            status = LogStatus(raw_status)
        except ValueError:
            errors.append(f"line {line_no}: invalid status {raw_status!r}")
            continue
        parsed.append(LogRow(date=key, habit_name=habit, status=status))
    return parsed, errors


async def import_logs_csv(store: LogStore, text: str) -> CsvImportResult:
    """Upsert each CSV row, resolving habit names to goals by title."""
    rows, errors = parse_logs_csv(text)
    result = CsvImportResult(errors=errors)

    by_title: dict[str, Goal] = {}
    for goal in await store.list_goals():
        by_title.setdefault(goal.title, goal)

    for row in rows:
        goal = by_title.get(row.habit_name)
        if goal is None:
            result.errors.append(f"unknown habit {row.habit_name!r} on {row.date}")
            continue
        if not in_range(row.date, goal.start_date, goal.end_date):
            result.errors.append(f"{row.date} outside validity window of {row.habit_name!r}")
            continue
        await store.upsert_log(goal.id, row.date, row.status)
        result.rows_imported += 1

    if result.errors:
        logger.warning("CSV log import skipped %d rows", len(result.errors))
    logger.info("CSV log import: %d rows upserted", result.rows_imported)
    return result


# ---------------------------------------------------------------------------
# Long-term goals
# ---------------------------------------------------------------------------


def export_long_term_csv(goals: list[LongTermGoal]) -> str:
    rows = [
        [
            g.id,
            g.title,
            g.type,
            str(g.year),
            str(g.month or ""),
            str(g.week_number or ""),
            "TRUE" if g.is_completed else "FALSE",
            g.created_at,
        ]
        for g in goals
    ]
    return _write_rows(LONG_TERM_HEADER, rows)


def _optional_int(value: str) -> int | None:
    value = value.strip()
    return int(value) if value else None


def parse_long_term_csv(text: str) -> tuple[list[LongTermGoal], list[str]]:
    """Parse ID,Title,Type,Year,Month,Week,Is Completed,Created At rows."""
    goals: list[LongTermGoal] = []
    errors: list[str] = []
    for line_no, row in enumerate(_read_rows(text), start=2):
        if len(row) < 4:
            errors.append(f"line {line_no}: expected at least 4 columns, got {len(row)}")
            continue
        padded = row + [""] * (len(LONG_TERM_HEADER) - len(row))
        raw_id, title, goal_type, year, month, week, completed, created_at = padded[:8]
        try:
            LongTermGoalType(goal_type.strip())
            goal = LongTermGoal(
                id=raw_id.strip() if len(raw_id.strip()) > _MIN_ID_LENGTH else str(uuid.uuid4()),
                title=title,
                type=goal_type.strip(),
                year=int(year),
                month=_optional_int(month),
                week_number=_optional_int(week),
                is_completed=completed.strip().upper() == "TRUE",
                created_at=created_at.strip(),
            )
        except ValueError as exc:
            errors.append(f"line {line_no}: {exc}")
            continue
        goals.append(goal)
    return goals, errors


async def import_long_term_csv(store: LogStore, text: str) -> CsvImportResult:
    goals, errors = parse_long_term_csv(text)
    result = CsvImportResult(errors=errors)
    if goals:
        await store.upsert_long_term_goals(goals)
        result.rows_imported = len(goals)
    logger.info("CSV long-term import: %d goals upserted, %d rows skipped", len(goals), len(errors))
    return result
