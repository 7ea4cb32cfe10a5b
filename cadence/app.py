"""FastAPI entrypoint exposing analytics, toggling, backups and CSV transfer."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from cadence.core.config import settings
from cadence.data.analytics import analyze_store
from cadence.data.backup import ImportFailedError, InvalidBackupError, backup_filename, export_backup, import_backup
from cadence.data.csv_io import export_logs_csv, export_long_term_csv, import_logs_csv, import_long_term_csv
from cadence.data.macro_stats import compute_macro_stats
from cadence.data.tracker import (
    GoalNotFoundError,
    LogOverlay,
    OutOfRangeError,
    create_goal,
    remove_goal,
    reset_all_data,
    toggle_log,
)
from cadence.store import LakeLogStore, LogStore, StoreError

logger = logging.getLogger(__name__)

_store: LogStore | None = None
_overlay: LogOverlay | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and open the encrypted store for the server's lifetime."""
    global _store, _overlay  # noqa: PLW0603

    logging.basicConfig(level=settings.log_level)

    if settings.age_recipient and settings.age_identity:
        _store = LakeLogStore(settings)
        await _store.initialize()
    else:
        logger.warning("AGE_RECIPIENT/AGE_IDENTITY not set; store disabled")

    yield

    if _store is not None:
        await _store.shutdown()
    _store = None
    _overlay = None


app = FastAPI(title="Cadence", version="0.1.0", lifespan=lifespan)

_bearer_scheme = HTTPBearer()


class HealthResponse(BaseModel):
    """Response for the /health endpoint."""

    status: str


class ToggleRequest(BaseModel):
    day: date = Field(alias="date")


class ToggleResponse(BaseModel):
    goal_id: str
    date: str
    previous: str | None
    status: str | None


class CreateGoalRequest(BaseModel):
    title: str
    color: str | None = None
    start_date: date | None = None


class GoalResponse(BaseModel):
    id: str
    title: str
    color: str | None
    start_date: str
    end_date: str | None


class RemoveGoalResponse(BaseModel):
    goal_id: str
    outcome: str


class ResetResponse(BaseModel):
    goals_removed: int


class CsvImportResponse(BaseModel):
    rows_imported: int
    errors: list[str]


async def _verify_api_key(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),  # noqa: B008
) -> str:
    """Validate the Bearer token against the configured api_key."""
    if not settings.api_key or credentials.credentials != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return credentials.credentials


def _require_store() -> LogStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Store not configured")
    return _store


async def _get_overlay(store: LogStore) -> LogOverlay:
    global _overlay  # noqa: PLW0603
    if _overlay is None:
        _overlay = LogOverlay.from_logs(await store.list_logs())
    return _overlay


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok")


@app.get("/analytics")
async def analytics(
    as_of: date | None = None,
    _key: str = Depends(_verify_api_key),
) -> dict[str, Any]:
    """Full analytics report; as_of defaults to the server's local date."""
    report = await analyze_store(_require_store(), as_of or date.today(), settings)
    return dict(report)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@app.post("/goals", response_model=GoalResponse)
async def add_goal(body: CreateGoalRequest, _key: str = Depends(_verify_api_key)) -> GoalResponse:
    start = body.start_date.isoformat() if body.start_date else None
    try:
        goal = await create_goal(_require_store(), body.title, body.color, start)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return GoalResponse(
        id=goal.id,
        title=goal.title,
        color=goal.color,
        start_date=goal.start_date,
        end_date=goal.end_date,
    )


@app.delete("/goals", response_model=ResetResponse)
async def reset_goals(_key: str = Depends(_verify_api_key)) -> ResetResponse:
    """Hard reset: delete every goal and every log."""
    global _overlay  # noqa: PLW0603
    store = _require_store()
    try:
        removed = await reset_all_data(store, settings)
    except StoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        _overlay = None
    return ResetResponse(goals_removed=removed)


@app.delete("/goals/{goal_id}", response_model=RemoveGoalResponse)
async def delete_goal(
    goal_id: str,
    as_of: date | None = None,
    _key: str = Depends(_verify_api_key),
) -> RemoveGoalResponse:
    """Archive a goal with history, hard-delete one without."""
    try:
        outcome = await remove_goal(_require_store(), goal_id, as_of or date.today())
    except GoalNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return RemoveGoalResponse(goal_id=goal_id, outcome=str(outcome))


@app.post("/goals/{goal_id}/toggle", response_model=ToggleResponse)
async def toggle(
    goal_id: str,
    body: ToggleRequest,
    _key: str = Depends(_verify_api_key),
) -> ToggleResponse:
    """Advance the goal's status on a day: unmarked -> done -> missed -> unmarked."""
    store = _require_store()
    overlay = await _get_overlay(store)
    try:
        change = await toggle_log(store, overlay, goal_id, body.day)
    except GoalNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except OutOfRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ToggleResponse(
        goal_id=change.goal_id,
        date=change.date,
        previous=str(change.previous) if change.previous else None,
        status=str(change.next) if change.next else None,
    )


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


@app.get("/backup", response_class=JSONResponse)
async def download_backup(_key: str = Depends(_verify_api_key)) -> JSONResponse:
    now = datetime.now().astimezone()
    document = await export_backup(_require_store(), now)
    return JSONResponse(
        document,
        headers={"Content-Disposition": f'attachment; filename="{backup_filename(now)}"'},
    )


@app.post("/backup")
async def upload_backup(request: Request, _key: str = Depends(_verify_api_key)) -> dict[str, Any]:
    """Reconcile an uploaded backup into the store."""
    store = _require_store()
    raw = await request.body()
    try:
        report = await import_backup(store, raw, settings)
    except InvalidBackupError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImportFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return dict(report)


# ---------------------------------------------------------------------------
# CSV transfer and long-term goal statistics
# ---------------------------------------------------------------------------


@app.get("/logs.csv", response_class=PlainTextResponse)
async def download_logs_csv(_key: str = Depends(_verify_api_key)) -> PlainTextResponse:
    store = _require_store()
    text = export_logs_csv(await store.list_goals(), await store.list_logs())
    return PlainTextResponse(text, media_type="text/csv")


@app.post("/logs.csv", response_model=CsvImportResponse)
async def upload_logs_csv(request: Request, _key: str = Depends(_verify_api_key)) -> CsvImportResponse:
    global _overlay  # noqa: PLW0603
    text = (await request.body()).decode("utf-8", errors="replace")
    try:
        result = await import_logs_csv(_require_store(), text)
    except StoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        # Rows were written behind the overlay's back.
        _overlay = None
    return CsvImportResponse(rows_imported=result.rows_imported, errors=result.errors)


@app.get("/long-term-goals.csv", response_class=PlainTextResponse)
async def download_long_term_csv(_key: str = Depends(_verify_api_key)) -> PlainTextResponse:
    goals = await _require_store().list_long_term_goals()
    return PlainTextResponse(export_long_term_csv(goals), media_type="text/csv")


@app.post("/long-term-goals.csv", response_model=CsvImportResponse)
async def upload_long_term_csv(request: Request, _key: str = Depends(_verify_api_key)) -> CsvImportResponse:
    text = (await request.body()).decode("utf-8", errors="replace")
    try:
        result = await import_long_term_csv(_require_store(), text)
    except StoreError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return CsvImportResponse(rows_imported=result.rows_imported, errors=result.errors)


@app.get("/long-term-goals/stats")
async def long_term_stats(year: int, _key: str = Depends(_verify_api_key)) -> dict[str, Any]:
    store = _require_store()
    goals = await store.list_long_term_goals()
    return dict(compute_macro_stats(goals, year, await store.get_category_settings()))
