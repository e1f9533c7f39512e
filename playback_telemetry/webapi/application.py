"""Application factory for the playback telemetry API."""

from __future__ import annotations

import logging
import re
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import config_manager as cfg
from .. import load_environment
from .. import logging_manager as log_mgr
from ..services.errors import PlaybackTelemetryError
from .metrics import setup_metrics
from .routers.playback import router as playback_router

load_environment()

LOGGER = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Request-ID"


def _parse_cors_origins(raw_value: str | None) -> tuple[list[str], bool]:
    """Return the allowed origins and whether credentials are supported."""

    if raw_value is None:
        return [], False

    tokens = [token.strip() for token in re.split(r"[\s,]+", raw_value) if token.strip()]
    if not tokens:
        return [], False
    if "*" in tokens:
        return ["*"], False
    return tokens, True


def _configure_cors(app: FastAPI, settings: cfg.TelemetrySettings) -> None:
    allowed_origins, allow_credentials = _parse_cors_origins(settings.cors_origins)
    if not allowed_origins:
        LOGGER.info("CORS middleware disabled; no allowed origins configured.")
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )


async def _handle_request_error(_request: Request, exc: PlaybackTelemetryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    """Translate request-level service errors into ``{"error": ...}`` responses."""

    app.add_exception_handler(PlaybackTelemetryError, _handle_request_error)


def _register_correlation_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def _correlation_id(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid4().hex
        with log_mgr.log_context(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = cfg.get_settings()
    log_mgr.set_log_level(settings.log_level)

    app = FastAPI(title="Playback Telemetry API", version="0.1.0")

    setup_metrics(app)
    register_exception_handlers(app)
    _register_correlation_middleware(app)
    _configure_cors(app, settings)

    @app.get("/_health", tags=["health"])
    def healthcheck() -> dict[str, str]:
        """Simple healthcheck endpoint for smoke-testing the server."""

        return {"status": "ok"}

    app.include_router(playback_router)

    return app
