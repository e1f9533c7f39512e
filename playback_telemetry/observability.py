"""Structured timing logs for ingestion and reporting operations."""

from __future__ import annotations

import contextlib
import time
from typing import Iterator, Mapping, Optional

from . import logging_manager as log_mgr

logger = log_mgr.get_logger()


@contextlib.contextmanager
def operation(
    name: str,
    *,
    attributes: Optional[Mapping[str, object]] = None,
) -> Iterator[None]:
    """Log the start, completion or failure of ``name`` with its duration."""

    attrs = dict(attributes or {})

    with log_mgr.log_context(stage=name):
        start = time.perf_counter()
        logger.debug(
            "Operation started",
            extra={"event": f"{name}.start", "attributes": attrs},
        )
        try:
            yield
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.warning(
                "Operation failed",
                extra={
                    "event": f"{name}.failed",
                    "duration_ms": round(duration_ms, 2),
                    "status": "error",
                    "attributes": attrs,
                },
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "Operation completed",
            extra={
                "event": f"{name}.complete",
                "duration_ms": round(duration_ms, 2),
                "status": "ok",
                "attributes": attrs,
            },
        )


__all__ = ["operation"]
