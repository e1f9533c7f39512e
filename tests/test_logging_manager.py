"""Tests for JSON log rendering and the bound logging context."""

from __future__ import annotations

import io
import json
import logging
from typing import Iterator, List, Tuple

import pytest

from playback_telemetry import logging_manager as log_mgr
from playback_telemetry.observability import operation


@pytest.fixture
def captured() -> Iterator[Tuple[logging.Logger, io.StringIO]]:
    """Package logger with an extra in-memory JSON handler attached."""

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(log_mgr.JSONLogFormatter())
    handler.addFilter(log_mgr.LogContextFilter())
    logger = log_mgr.get_logger()
    logger.addHandler(handler)
    yield logger, stream
    logger.removeHandler(handler)


def _entries(stream: io.StringIO) -> List[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_known_fields_are_promoted(captured) -> None:
    logger, stream = captured
    logger.info(
        "Stored %d playback events",
        3,
        extra={"event": "playback.ingest", "status": "ok", "batch_size": 3},
    )

    [entry] = _entries(stream)
    assert entry["message"] == "Stored 3 playback events"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "playback_telemetry"
    assert entry["event"] == "playback.ingest"
    assert entry["status"] == "ok"
    assert entry["extra"] == {"batch_size": 3}
    assert "correlation_id" not in entry


def test_exception_is_rendered(captured) -> None:
    logger, stream = captured
    try:
        raise ValueError("bad row")
    except ValueError:
        logger.exception("Insert failed")

    [entry] = _entries(stream)
    assert entry["level"] == "ERROR"
    assert "ValueError: bad row" in entry["exception"]


def test_context_is_bound_only_inside_block(captured) -> None:
    logger, stream = captured
    with log_mgr.log_context(correlation_id="req-42"):
        logger.info("inside")
        with log_mgr.log_context(stage="playback.report", status=None):
            logger.info("nested")
    logger.info("outside")

    inside, nested, outside = _entries(stream)
    assert inside["correlation_id"] == "req-42"
    assert "stage" not in inside
    assert nested["correlation_id"] == "req-42"
    assert nested["stage"] == "playback.report"
    assert "status" not in nested
    assert "correlation_id" not in outside


def test_explicit_extra_wins_over_context(captured) -> None:
    logger, stream = captured
    with log_mgr.log_context(status="ok"):
        logger.warning("partial", extra={"status": "partial"})

    [entry] = _entries(stream)
    assert entry["status"] == "partial"


def test_operation_logs_duration_with_correlation_id(captured) -> None:
    logger, stream = captured
    with log_mgr.log_context(correlation_id="req-7"):
        with operation("playback.stats"):
            pass

    [entry] = [item for item in _entries(stream) if item.get("event") == "playback.stats.complete"]
    assert entry["correlation_id"] == "req-7"
    assert entry["stage"] == "playback.stats"
    assert entry["status"] == "ok"
    assert entry["duration_ms"] >= 0


def test_operation_logs_failure(captured) -> None:
    logger, stream = captured
    with pytest.raises(RuntimeError):
        with operation("playback.ingest", attributes={"batch_size": 2}):
            raise RuntimeError("storage down")

    [entry] = [item for item in _entries(stream) if item.get("event") == "playback.ingest.failed"]
    assert entry["status"] == "error"
    assert entry["extra"]["attributes"] == {"batch_size": 2}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("loud", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_resolve_log_level(value, expected: int) -> None:
    assert log_mgr.resolve_log_level(value) == expected


def test_set_log_level_applies_to_handlers() -> None:
    logger = log_mgr.get_logger()
    try:
        assert log_mgr.set_log_level("debug") == logging.DEBUG
        assert logger.level == logging.DEBUG
        assert all(handler.level == logging.DEBUG for handler in logger.handlers)
    finally:
        log_mgr.set_log_level(logging.INFO)
