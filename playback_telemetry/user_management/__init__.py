"""Authentication helpers for the playback telemetry service."""
from .auth_service import AuthService, SessionPrincipal
from .session_manager import SessionManager

__all__ = ["AuthService", "SessionManager", "SessionPrincipal"]
