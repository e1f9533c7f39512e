"""Exceptions raised by the playback ingestion and reporting services."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class PlaybackTelemetryError(Exception):
    """Base class for request-level telemetry failures.

    ``status_code`` is the HTTP status the API answers with; ``to_payload``
    builds the ``{"error": ...}`` body.
    """

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationFailed(PlaybackTelemetryError):
    """Raised when an ingestion payload is rejected before any write."""

    def __init__(
        self,
        message: str,
        *,
        error: str = "Validation failed",
        details: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.details = list(details or [])

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidFilter(PlaybackTelemetryError):
    """Raised when report filter parameters cannot be parsed."""


class AuthenticationRequired(PlaybackTelemetryError):
    """Raised when a request carries no valid session or API key."""

    status_code = 401


__all__ = [
    "AuthenticationRequired",
    "InvalidFilter",
    "PlaybackTelemetryError",
    "ValidationFailed",
]
