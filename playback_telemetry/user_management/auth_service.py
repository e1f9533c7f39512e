"""Authentication precondition checks for playback endpoints."""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from .session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionPrincipal:
    """Caller identity resolved from a session token."""

    username: str


class AuthService:
    """Resolve session tokens and player API keys.

    Devices report through a backend that authenticates with a shared API
    key; dashboard users present a session token.
    """

    def __init__(self, session_manager: SessionManager, api_key: Optional[str] = None) -> None:
        self._session_manager = session_manager
        self._api_key = api_key or None
        if self._api_key is None:
            logger.warning(
                "PLAYBACK_API_KEY not configured; API key authentication disabled",
                extra={"event": "auth.api_key.missing"},
            )

    def authenticate(self, session_token: str) -> Optional[SessionPrincipal]:
        """Resolve a session token into the associated principal."""
        username = self._session_manager.get_username(session_token)
        if not username:
            return None
        return SessionPrincipal(username=username)

    def verify_api_key(self, candidate: Optional[str]) -> bool:
        """Return True when ``candidate`` matches the configured API key."""
        if self._api_key is None or not candidate:
            return False
        return hmac.compare_digest(candidate.encode("utf-8"), self._api_key.encode("utf-8"))

    @property
    def session_manager(self) -> SessionManager:
        return self._session_manager
