"""Structured JSON logging for the playback telemetry service.

Every record emitted under the ``playback_telemetry`` logger is rendered as a
single JSON object. Values bound with :func:`log_context` (the request
correlation id, the current operation stage) are attached to each record
logged inside that block, including records from worker threads that copied
the context.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Iterator, List, Optional

LOGGER_NAME = "playback_telemetry"
DEFAULT_LOG_LEVEL = logging.INFO
LOG_DIR = Path(os.environ.get("PLAYBACK_LOG_DIR") or Path(__file__).resolve().parents[1] / "log")
LOG_FILE = LOG_DIR / "app.log"

# Promoted to the top level of the JSON payload; other extras go under "extra".
TOP_LEVEL_FIELDS = ("correlation_id", "event", "stage", "duration_ms", "status")

# Attributes present on every LogRecord; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_context: contextvars.ContextVar[Dict[str, object]] = contextvars.ContextVar(
    "playback_telemetry_log_context", default={}
)
_logger: Optional[logging.Logger] = None


class JSONLogFormatter(logging.Formatter):
    """Render a log record as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra: Dict[str, object] = {}
        for key, value in vars(record).items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if key in TOP_LEVEL_FIELDS:
                if value is not None:
                    payload[key] = value
            else:
                extra[key] = value
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class LogContextFilter(logging.Filter):
    """Copy the bound context onto records that do not set the same keys."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for key, value in _context.get().items():
            record.__dict__.setdefault(key, value)
        return True


@contextlib.contextmanager
def log_context(**values: object) -> Iterator[None]:
    """Bind ``values`` to every record logged inside the block."""

    bound = {**_context.get(), **{key: value for key, value in values.items() if value is not None}}
    token = _context.set(bound)
    try:
        yield
    finally:
        _context.reset(token)


def _build_handlers() -> List[logging.Handler]:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    handlers: List[logging.Handler] = [
        logging.StreamHandler(),
        RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5),
    ]
    for handler in handlers:
        handler.setFormatter(JSONLogFormatter())
        handler.addFilter(LogContextFilter())
    return handlers


def get_logger() -> logging.Logger:
    """Return the package logger, attaching the JSON handlers on first use."""

    global _logger
    if _logger is None:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(DEFAULT_LOG_LEVEL)
        logger.propagate = False
        for handler in _build_handlers():
            logger.addHandler(handler)
        _logger = logger
    return _logger


def resolve_log_level(value: object, default: int = DEFAULT_LOG_LEVEL) -> int:
    """Translate a level name such as ``"debug"`` into a logging constant."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return default


def set_log_level(value: object) -> int:
    """Apply ``value`` to the package logger and its handlers."""

    level = resolve_log_level(value)
    logger = get_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    return level


__all__ = [
    "JSONLogFormatter",
    "LogContextFilter",
    "get_logger",
    "log_context",
    "resolve_log_level",
    "set_log_level",
]
