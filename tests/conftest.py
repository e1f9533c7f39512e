"""Shared fixtures for the playback telemetry test-suite."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import text

from playback_telemetry.config_manager import reset_settings
from playback_telemetry.database import dispose_engine, get_engine, init_schema
from playback_telemetry.webapi.dependencies import reset_dependency_caches


@pytest.fixture
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Point the service at a fresh SQLite file and create the schema."""

    url = f"sqlite:///{tmp_path / 'playback.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("PLAYBACK_CONFIG_FILE", str(tmp_path / "missing-config.json"))
    monkeypatch.setenv("PLAYBACK_SESSION_FILE", str(tmp_path / "sessions.json"))
    reset_settings()
    reset_dependency_caches()
    dispose_engine()
    init_schema()
    yield url
    dispose_engine()
    reset_dependency_caches()
    reset_settings()


@pytest.fixture
def reject_devices(database: str) -> str:
    """Install a trigger that makes storage reject events from ``reject-*`` devices."""

    with get_engine().begin() as connection:
        connection.execute(
            text(
                "CREATE TRIGGER reject_marked_devices BEFORE INSERT ON playback_events "
                "WHEN NEW.device_id LIKE 'reject-%' "
                "BEGIN SELECT RAISE(ABORT, 'device rejected by storage'); END"
            )
        )
    return "reject-"
