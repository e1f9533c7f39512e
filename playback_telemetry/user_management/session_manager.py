"""Session token lookup backed by a JSON file."""
from __future__ import annotations

import json
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4


class SessionManager:
    """Persist dashboard session tokens in a JSON file.

    Tokens are issued by the login flow of the surrounding application; this
    service only needs to resolve them. ``ttl`` expires tokens older than the
    given age when set.
    """

    def __init__(self, session_file: Path, ttl: Optional[timedelta] = None) -> None:
        self._session_file = Path(session_file).expanduser()
        self._ttl = ttl
        self._lock = threading.Lock()
        self._ensure_storage()

    def create_session(self, username: str) -> str:
        token = uuid4().hex
        with self._lock:
            sessions = self._load()
            sessions[token] = {
                "username": username,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            self._save(sessions)
        return token

    def get_username(self, token: str) -> Optional[str]:
        with self._lock:
            session = self._load().get(token)
        if not session or self._expired(session):
            return None
        return session.get("username")

    def delete_session(self, token: str) -> bool:
        with self._lock:
            sessions = self._load()
            if sessions.pop(token, None) is None:
                return False
            self._save(sessions)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _expired(self, session: Dict[str, str]) -> bool:
        if self._ttl is None:
            return False
        try:
            created_at = datetime.fromisoformat(session.get("created_at", ""))
        except ValueError:
            return True
        return datetime.now(timezone.utc) - created_at > self._ttl

    def _ensure_storage(self) -> None:
        self._session_file.parent.mkdir(parents=True, exist_ok=True)
        if not self._session_file.exists():
            self._save({})

    def _load(self) -> Dict[str, Dict[str, str]]:
        with self._session_file.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        return dict(data.get("sessions", {}))

    def _save(self, sessions: Dict[str, Dict[str, str]]) -> None:
        with self._session_file.open("w", encoding="utf-8") as fh:
            json.dump({"sessions": sessions}, fh, indent=2)
