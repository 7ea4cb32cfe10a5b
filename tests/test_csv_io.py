"""Tests for cadence.data.csv_io: legacy log and long-term goal CSV."""

from __future__ import annotations

import uuid

from cadence.data.csv_io import (
    LOG_HEADER,
    export_logs_csv,
    export_long_term_csv,
    import_logs_csv,
    import_long_term_csv,
    parse_logs_csv,
    parse_long_term_csv,
)
from cadence.data.schemas import Goal, Log, LogStatus, LongTermGoal
from cadence.store import InMemoryLogStore

GOALS = [
    Goal(id="g1", title="Read, then write", start_date="2024-03-01"),
    Goal(id="g2", title='Say "hi"', start_date="2024-03-01", end_date="2024-03-05"),
]


# ---------------------------------------------------------------------------
# Raw logs
# ---------------------------------------------------------------------------


def test_export_quotes_and_sorts() -> None:
    logs = [
        Log("g2", "2024-03-02", LogStatus.MISSED),
        Log("g1", "2024-03-02", LogStatus.DONE),
        Log("g1", "2024-03-01", LogStatus.DONE),
        Log("orphan", "2024-03-01", LogStatus.DONE),
    ]
    lines = export_logs_csv(GOALS, logs).splitlines()
    assert lines[0] == ",".join(LOG_HEADER)
    assert lines[1:] == [
        '2024-03-01,"Read, then write",done,1,',
        '2024-03-02,"Read, then write",done,1,',
        '2024-03-02,"Say ""hi""",missed,0,',
    ]


def test_parse_reports_bad_rows() -> None:
    text = (
        "Date,Habit Name,Status,Value,Notes\n"
        "2024-03-01,Read,Done,1,\n"
        "nope,Read,done\n"
        "2024-03-02,Read,skipped\n"
        "2024-03-03\n"
    )
    rows, errors = parse_logs_csv(text)
    assert [(r.date, r.status) for r in rows] == [("2024-03-01", LogStatus.DONE)]
    assert len(errors) == 3
    assert errors[0].startswith("line 3")


async def test_import_upserts_by_title() -> None:
    store = InMemoryLogStore(goals=list(GOALS))
    text = export_logs_csv(
        GOALS,
        [Log("g1", "2024-03-01", LogStatus.DONE), Log("g2", "2024-03-02", LogStatus.MISSED)],
    )
    text += "2024-03-09,\"Say \"\"hi\"\"\",done,1,\n2024-03-04,Unknown,done,1,\n"

    result = await import_logs_csv(store, text)
    assert result.rows_imported == 2
    assert len(result.errors) == 2
    logs = {(log.goal_id, log.date): log.status for log in await store.list_logs()}
    assert logs == {("g1", "2024-03-01"): LogStatus.DONE, ("g2", "2024-03-02"): LogStatus.MISSED}


async def test_import_overwrites_existing_day() -> None:
    store = InMemoryLogStore(goals=list(GOALS), logs=[Log("g1", "2024-03-01", LogStatus.MISSED)])
    result = await import_logs_csv(store, '\ufeffDate,Habit Name,Status\n2024-03-01,"Read, then write",done\n')
    assert result.rows_imported == 1
    assert (await store.list_logs())[0].status is LogStatus.DONE


# ---------------------------------------------------------------------------
# Long-term goals
# ---------------------------------------------------------------------------


def test_long_term_export_format() -> None:
    goal = LongTermGoal(
        id="A", title="Read 12, books", type="annual", year=2024, is_completed=True, created_at="2024-01-01"
    )
    lines = export_long_term_csv([goal]).splitlines()
    assert lines[0] == "ID,Title,Type,Year,Month,Week,Is Completed,Created At"
    assert lines[1] == 'A,"Read 12, books",annual,2024,,,TRUE,2024-01-01'


def test_long_term_parse_keeps_long_ids_only() -> None:
    kept = str(uuid.uuid4())
    text = (
        "ID,Title,Type,Year,Month,Week,Is Completed,Created At\n"
        f"{kept},Read,monthly,2024,3,,TRUE,2024-03-01\n"
        "7,Run,weekly,2024,,12,false,\n"
        ",Walk,annual,2024\n"
        "x,Bad,daily,2024\n"
        "x,Short\n"
    )
    goals, errors = parse_long_term_csv(text)
    assert [g.title for g in goals] == ["Read", "Run", "Walk"]
    assert goals[0].id == kept
    assert goals[0].month == 3
    assert goals[0].is_completed is True
    assert goals[1].id != "7"
    assert goals[1].week_number == 12
    assert goals[1].is_completed is False
    assert len(errors) == 2


async def test_long_term_import() -> None:
    store = InMemoryLogStore()
    result = await import_long_term_csv(store, "ID,Title,Type,Year\n,Read,annual,2024\n")
    assert result.rows_imported == 1
    assert [g.title for g in await store.list_long_term_goals()] == ["Read"]
