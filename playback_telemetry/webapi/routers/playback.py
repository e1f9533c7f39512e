"""Routes for proof-of-play ingestion and reporting."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ... import config_manager as cfg
from ...services.errors import ValidationFailed
from ...services.ingestion_service import PlaybackIngestionService
from ...services.playback_store import PlaybackEventStore
from ...services.report_filters import ReportFilters
from ...services.reporting_service import PlaybackReportingService
from ...services.sample_data import clamp_sample_count, generate_sample_events
from ..dependencies import (
    get_event_store,
    get_ingestion_service,
    get_reporting_service,
    get_settings,
    require_ingest_caller,
    require_session_user,
)
from ..metrics import REPORT_DURATION, record_error, record_ingestion
from ..schemas.playback import (
    DeleteLogsResponse,
    PlaybackErrorResponse,
    PlaybackLogPartialResponse,
    PlaybackLogResponse,
    PlaybackReportResponse,
    PlaybackStatsResponse,
    RecentLogsResponse,
    SampleLogsResponse,
)

router = APIRouter(prefix="/api/playback", tags=["playback"])

LOGGER = logging.getLogger(__name__)

RECENT_LOG_LIMIT = 20

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": PlaybackErrorResponse},
    401: {"model": PlaybackErrorResponse},
    500: {"model": PlaybackErrorResponse},
}


def _internal_error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
    )


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


@router.post(
    "/log",
    response_model=PlaybackLogResponse,
    responses={207: {"model": PlaybackLogPartialResponse}, **_ERROR_RESPONSES},
)
async def ingest_playback_logs(
    request: Request,
    caller: str = Depends(require_ingest_caller),
    ingestion_service: PlaybackIngestionService = Depends(get_ingestion_service),
):
    """Record one playback event or a batch of events."""

    body = await request.body()
    try:
        outcome = await run_in_threadpool(ingestion_service.ingest_raw, body)
    except ValidationFailed:
        record_ingestion("rejected")
        raise
    except Exception as exc:
        LOGGER.exception(
            "Playback ingestion failed",
            extra={"event": "playback.ingest.error", "caller": caller},
        )
        record_ingestion("error")
        record_error(exc, "/api/playback/log")
        return _internal_error(exc)

    record_ingestion(
        "partial" if outcome.partial else "ok",
        inserted=outcome.inserted,
        failed=outcome.failed,
    )
    if outcome.partial:
        payload = PlaybackLogPartialResponse(
            inserted=outcome.inserted,
            errors=outcome.failed,
            message=outcome.message,
        )
        return JSONResponse(status_code=status.HTTP_207_MULTI_STATUS, content=payload.model_dump())
    return PlaybackLogResponse(inserted=outcome.inserted, message=outcome.message)


@router.get("/report", response_model=PlaybackReportResponse, responses=_ERROR_RESPONSES)
def playback_report(
    device_id: Optional[str] = Query(default=None),
    asset_id: Optional[str] = Query(default=None),
    playlist_id: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    _user: str = Depends(require_session_user),
    settings: cfg.TelemetrySettings = Depends(get_settings),
    reporting_service: PlaybackReportingService = Depends(get_reporting_service),
):
    """Return the filtered summary, per-dimension breakdowns and pagination."""

    filters = ReportFilters.from_query(
        device_id=device_id,
        asset_id=asset_id,
        playlist_id=playlist_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
        default_limit=settings.report_default_limit,
        max_limit=settings.report_max_limit,
    )

    try:
        with REPORT_DURATION.labels(endpoint="report").time():
            return reporting_service.build_report(filters)
    except Exception as exc:
        record_error(exc, "/api/playback/report")
        LOGGER.exception("Playback report failed", extra={"event": "playback.report.error"})
        return _internal_error(exc)


@router.get("/stats", response_model=PlaybackStatsResponse, responses=_ERROR_RESPONSES)
def playback_stats(
    _user: str = Depends(require_session_user),
    reporting_service: PlaybackReportingService = Depends(get_reporting_service),
):
    """Return unfiltered totals across every stored event."""

    try:
        with REPORT_DURATION.labels(endpoint="stats").time():
            return {"stats": reporting_service.global_stats()}
    except Exception as exc:
        record_error(exc, "/api/playback/stats")
        LOGGER.exception("Playback stats failed", extra={"event": "playback.stats.error"})
        return _internal_error(exc)


@router.post("/test", response_model=SampleLogsResponse, responses=_ERROR_RESPONSES)
def create_sample_logs(
    count: Optional[int] = Query(default=None),
    _user: str = Depends(require_session_user),
    ingestion_service: PlaybackIngestionService = Depends(get_ingestion_service),
):
    """Generate and ingest random valid events for smoke-testing."""

    logs = generate_sample_events(clamp_sample_count(count))
    try:
        outcome = ingestion_service.ingest(logs)
    except Exception as exc:
        LOGGER.exception("Sample ingestion failed", extra={"event": "playback.sample.error"})
        return _internal_error(exc)

    return SampleLogsResponse(
        inserted=outcome.inserted,
        message=f"Created {outcome.inserted} test playback logs",
        logs=logs,
    )


@router.get("/test", response_model=RecentLogsResponse, responses=_ERROR_RESPONSES)
def recent_logs(
    _user: str = Depends(require_session_user),
    store: PlaybackEventStore = Depends(get_event_store),
):
    """Return the total event count and the most recently ingested events."""

    try:
        total = store.count()
        rows = store.recent(RECENT_LOG_LIMIT)
    except Exception as exc:
        LOGGER.exception("Listing recent logs failed", extra={"event": "playback.recent.error"})
        return _internal_error(exc)

    logs = [
        {
            **row,
            "start_time": _iso(row["start_time"]),
            "end_time": _iso(row["end_time"]),
            "created_at": _iso(row["created_at"]),
        }
        for row in rows
    ]
    return RecentLogsResponse(total_count=total, showing=len(logs), logs=logs)


@router.delete("/test", response_model=DeleteLogsResponse, responses=_ERROR_RESPONSES)
def delete_logs(
    user: str = Depends(require_session_user),
    store: PlaybackEventStore = Depends(get_event_store),
):
    """Delete every stored playback event."""

    try:
        deleted = store.delete_all()
    except Exception as exc:
        LOGGER.exception("Deleting logs failed", extra={"event": "playback.delete.error"})
        return _internal_error(exc)

    LOGGER.warning(
        "Playback logs deleted by %s",
        user,
        extra={"event": "playback.delete", "status": "ok"},
    )
    return DeleteLogsResponse(deleted=deleted, message="All playback logs deleted")
