"""Tests for dotenv discovery and loading."""

from __future__ import annotations

import os

from playback_telemetry.environment import PROJECT_ROOT, dotenv_candidates, load_environment


def test_candidate_order(tmp_path, monkeypatch) -> None:
    first = tmp_path / "first.env"
    second = tmp_path / "second.env"
    monkeypatch.setenv("PLAYBACK_ENV_FILE", os.pathsep.join([str(first), str(second), str(first)]))
    monkeypatch.setenv("PLAYBACK_ENV", "staging")

    assert dotenv_candidates() == [
        first.resolve(),
        second.resolve(),
        (PROJECT_ROOT / ".env").resolve(),
        (PROJECT_ROOT / ".env.staging").resolve(),
        (PROJECT_ROOT / ".env.local").resolve(),
    ]


def test_load_does_not_override_process_values(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / "playback.env"
    env_file.write_text(
        "PLAYBACK_TEST_GREETING=hello\nPLAYBACK_TEST_PRESET=from-file\n", encoding="utf-8"
    )
    # Registered with monkeypatch so teardown removes the value loaded from the file.
    monkeypatch.setenv("PLAYBACK_TEST_GREETING", "placeholder")
    monkeypatch.delenv("PLAYBACK_TEST_GREETING")
    monkeypatch.setenv("PLAYBACK_TEST_PRESET", "from-process")
    monkeypatch.setenv("PLAYBACK_ENV_FILE", str(env_file))
    monkeypatch.delenv("PLAYBACK_ENV", raising=False)

    loaded = load_environment(force=True)

    assert env_file.resolve() in loaded
    assert os.environ["PLAYBACK_TEST_GREETING"] == "hello"
    assert os.environ["PLAYBACK_TEST_PRESET"] == "from-process"


def test_missing_files_are_skipped(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PLAYBACK_ENV_FILE", str(tmp_path / "absent.env"))
    assert (tmp_path / "absent.env").resolve() not in load_environment(force=True)
