"""Prometheus metrics exporter for the playback telemetry API.

Defines the custom application metrics and wires automatic HTTP
instrumentation via prometheus-fastapi-instrumentator.

Usage:
    from .metrics import setup_metrics
    setup_metrics(app)  # call once in create_app()
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application info
# ---------------------------------------------------------------------------
APP_INFO = Info(
    "playback_telemetry",
    "Playback telemetry application information",
)

UP_GAUGE = Gauge(
    "playback_telemetry_up",
    "Whether the playback telemetry backend is up (1=up, 0=down)",
)

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
INGEST_REQUESTS = Counter(
    "playback_telemetry_ingest_requests_total",
    "Ingestion requests by outcome (ok, partial, rejected, error)",
    ["outcome"],
)

EVENTS_INGESTED = Counter(
    "playback_telemetry_events_total",
    "Playback events that reached storage, by result (inserted, failed)",
    ["result"],
)

EVENTS_STORED = Gauge(
    "playback_telemetry_events_stored",
    "Number of playback events currently stored",
)

# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------
REPORT_DURATION = Histogram(
    "playback_telemetry_report_duration_seconds",
    "Time spent building reports and global stats",
    ["endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10],
)

# ---------------------------------------------------------------------------
# Auth & errors
# ---------------------------------------------------------------------------
AUTH_ATTEMPTS = Counter(
    "playback_telemetry_auth_attempts_total",
    "Authentication attempts by method and result",
    ["method", "result"],
)

ERRORS_TOTAL = Counter(
    "playback_telemetry_errors_total",
    "Unexpected errors by type and endpoint",
    ["error_type", "endpoint"],
)

_GAUGE_UPDATE_INTERVAL_SECONDS = 15

_gauge_task: asyncio.Task | None = None


def record_ingestion(outcome: str, *, inserted: int = 0, failed: int = 0) -> None:
    """Count one ingestion request and the rows it wrote or lost."""

    INGEST_REQUESTS.labels(outcome=outcome).inc()
    if inserted:
        EVENTS_INGESTED.labels(result="inserted").inc(inserted)
    if failed:
        EVENTS_INGESTED.labels(result="failed").inc(failed)


def record_error(exc: BaseException, endpoint: str) -> None:
    ERRORS_TOTAL.labels(error_type=type(exc).__name__, endpoint=endpoint).inc()


def _collect_event_gauge() -> None:
    from .dependencies import get_event_store

    EVENTS_STORED.set(get_event_store().count())


async def _periodic_gauge_update() -> None:
    """Background loop that refreshes gauge metrics."""
    while True:
        await asyncio.sleep(_GAUGE_UPDATE_INTERVAL_SECONDS)
        try:
            await asyncio.to_thread(_collect_event_gauge)
        except SQLAlchemyError:
            logger.debug("Unable to refresh stored event gauge", exc_info=True)


_setup_done = False


def setup_metrics(app: FastAPI) -> None:
    """Wire Prometheus metrics into the FastAPI application.

    Idempotent: test suites create many apps against one global registry.
    """
    global _setup_done

    try:
        APP_INFO.info({
            "version": getattr(app, "version", "unknown"),
            "title": getattr(app, "title", "playback-telemetry"),
        })
    except ValueError:
        logger.debug("Application info metric already set")
    UP_GAUGE.set(1)

    if not _setup_done:
        try:
            instrumentator = Instrumentator(
                should_group_status_codes=False,
                should_ignore_untemplated=True,
                should_respect_env_var=False,
                should_instrument_requests_inprogress=True,
                excluded_handlers=["/metrics", "/_health"],
                inprogress_name="playback_telemetry_http_requests_inprogress",
                inprogress_labels=True,
            )
            instrumentator.instrument(app)
            instrumentator.expose(app, endpoint="/metrics", include_in_schema=False)
        except ValueError:
            # Collectors already registered in the global registry.
            logger.debug("HTTP instrumentation metrics already registered")
        _setup_done = True

    if not any(getattr(route, "path", None) == "/metrics" for route in app.routes):
        @app.get("/metrics", include_in_schema=False)
        async def _metrics_fallback() -> Response:
            return Response(
                content=generate_latest(REGISTRY),
                media_type=CONTENT_TYPE_LATEST,
            )

    @app.on_event("startup")
    async def _start_gauge_collector() -> None:
        global _gauge_task
        _gauge_task = asyncio.create_task(_periodic_gauge_update())
        logger.info(
            "Prometheus gauge collector started (interval=%ds)", _GAUGE_UPDATE_INTERVAL_SECONDS
        )

    @app.on_event("shutdown")
    async def _stop_gauge_collector() -> None:
        global _gauge_task
        if _gauge_task is not None:
            _gauge_task.cancel()
            _gauge_task = None


__all__ = [
    "AUTH_ATTEMPTS",
    "EVENTS_INGESTED",
    "INGEST_REQUESTS",
    "REPORT_DURATION",
    "record_error",
    "record_ingestion",
    "setup_metrics",
]
