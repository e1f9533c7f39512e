"""Dependency wiring for the FastAPI application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Header, Query

from .. import config_manager as cfg
from ..services.errors import AuthenticationRequired
from ..services.ingestion_service import PlaybackIngestionService
from ..services.playback_store import PlaybackEventStore
from ..services.reporting_service import PlaybackReportingService
from ..user_management import AuthService, SessionManager
from .metrics import AUTH_ATTEMPTS


@dataclass(frozen=True)
class RequestUserContext:
    """Identity extracted from the session token, if any."""

    user_id: str | None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip() or None
    return authorization.strip() or None


def get_settings() -> cfg.TelemetrySettings:
    """Return the active service settings."""

    return cfg.get_settings()


@lru_cache
def get_auth_service() -> AuthService:
    """Return a configured :class:`AuthService` instance."""

    settings = cfg.get_settings()
    session_manager = SessionManager(
        session_file=Path(settings.session_file).expanduser(),
        ttl=timedelta(hours=settings.session_ttl_hours) if settings.session_ttl_hours else None,
    )
    api_key = settings.playback_api_key.get_secret_value() if settings.playback_api_key else None
    return AuthService(session_manager, api_key=api_key)


@lru_cache
def get_event_store() -> PlaybackEventStore:
    """Return the shared :class:`PlaybackEventStore`."""

    return PlaybackEventStore()


@lru_cache
def get_ingestion_service() -> PlaybackIngestionService:
    """Return the shared :class:`PlaybackIngestionService`."""

    return PlaybackIngestionService(get_event_store())


@lru_cache
def get_reporting_service() -> PlaybackReportingService:
    """Return the shared :class:`PlaybackReportingService`."""

    settings = cfg.get_settings()
    return PlaybackReportingService(
        get_event_store(),
        breakdown_top_n=settings.breakdown_top_n,
        max_workers=settings.report_workers,
    )


def reset_dependency_caches() -> None:
    """Drop cached services so they are rebuilt from fresh settings."""

    for factory in (
        get_auth_service,
        get_event_store,
        get_ingestion_service,
        get_reporting_service,
    ):
        factory.cache_clear()


def get_request_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    access_token: str | None = Query(default=None, alias="access_token"),
    auth_service: AuthService = Depends(get_auth_service),
) -> RequestUserContext:
    """Resolve the request user identity from the session token."""

    token = _extract_bearer_token(authorization)
    if not token:
        token = (access_token or "").strip() or None
    if not token:
        return RequestUserContext(user_id=None)

    principal = auth_service.authenticate(token)
    if principal is None:
        AUTH_ATTEMPTS.labels(method="session", result="failure").inc()
        return RequestUserContext(user_id=None)
    AUTH_ATTEMPTS.labels(method="session", result="success").inc()
    return RequestUserContext(user_id=principal.username)


def require_session_user(
    request_user: RequestUserContext = Depends(get_request_user),
) -> str:
    """Reject requests without a valid session token."""

    if not request_user.user_id:
        raise AuthenticationRequired("Unauthorized")
    return request_user.user_id


def require_ingest_caller(
    request_user: RequestUserContext = Depends(get_request_user),
    api_key: str | None = Header(default=None, alias="X-API-Key"),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """Accept either a session token or the player backend API key."""

    if request_user.user_id:
        return request_user.user_id
    if auth_service.verify_api_key(api_key):
        AUTH_ATTEMPTS.labels(method="api_key", result="success").inc()
        return "api-key"
    if api_key:
        AUTH_ATTEMPTS.labels(method="api_key", result="failure").inc()
    raise AuthenticationRequired("Unauthorized. Provide valid session or X-API-Key header.")
