import json
from datetime import datetime, timedelta, timezone

import pytest

from playback_telemetry.user_management.auth_service import AuthService, SessionPrincipal
from playback_telemetry.user_management.session_manager import SessionManager

pytestmark = pytest.mark.auth


def test_create_and_resolve_session(tmp_path):
    manager = SessionManager(tmp_path / "sessions.json")

    token = manager.create_session("alice")

    assert manager.get_username(token) == "alice"
    assert manager.get_username("unknown") is None


def test_delete_session(tmp_path):
    manager = SessionManager(tmp_path / "sessions.json")
    token = manager.create_session("bob")

    assert manager.delete_session(token) is True
    assert manager.delete_session(token) is False
    assert manager.get_username(token) is None


def test_sessions_persist_across_instances(tmp_path):
    session_file = tmp_path / "nested" / "sessions.json"
    token = SessionManager(session_file).create_session("carol")

    assert SessionManager(session_file).get_username(token) == "carol"
    assert token in json.loads(session_file.read_text())["sessions"]


def test_expired_session_is_rejected(tmp_path):
    session_file = tmp_path / "sessions.json"
    manager = SessionManager(session_file, ttl=timedelta(hours=1))
    token = manager.create_session("dave")

    data = json.loads(session_file.read_text())
    stale = datetime.now(timezone.utc) - timedelta(hours=2)
    data["sessions"][token]["created_at"] = stale.isoformat()
    session_file.write_text(json.dumps(data))

    assert manager.get_username(token) is None


def test_authenticate_resolves_principal(tmp_path):
    auth = AuthService(SessionManager(tmp_path / "sessions.json"))
    token = auth.session_manager.create_session("erin")

    assert auth.authenticate(token) == SessionPrincipal(username="erin")
    assert auth.authenticate("bogus") is None


def test_api_key_verification(tmp_path):
    auth = AuthService(SessionManager(tmp_path / "sessions.json"), api_key="s3cret")

    assert auth.verify_api_key("s3cret") is True
    assert auth.verify_api_key("S3CRET") is False
    assert auth.verify_api_key(None) is False
    assert auth.verify_api_key("") is False


def test_api_key_disabled_without_configuration(tmp_path):
    auth = AuthService(SessionManager(tmp_path / "sessions.json"))

    assert auth.verify_api_key("anything") is False
