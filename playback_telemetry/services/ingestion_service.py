"""Ingestion of proof-of-play events reported by display devices."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from ..observability import operation
from .errors import ValidationFailed
from .playback_store import PlaybackEventStore
from .playback_validator import validate_batch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionOutcome:
    """Result of a batch that passed validation and reached storage."""

    inserted: int
    failed: int = 0

    @property
    def partial(self) -> bool:
        return self.failed > 0

    @property
    def message(self) -> str:
        if self.partial:
            return f"Partially successful: {self.inserted} inserted, {self.failed} failed"
        noun = "playback log" if self.inserted == 1 else "playback logs"
        return f"Successfully inserted {self.inserted} {noun}"


def _as_batch(payload: Any) -> List[Any]:
    if isinstance(payload, Mapping):
        return [payload]
    if isinstance(payload, list):
        return list(payload)
    raise ValidationFailed(
        "Request body must be an event object or an array of events",
        error="Invalid JSON payload",
    )


class PlaybackIngestionService:
    """Validate playback event batches and persist them.

    Validation is all-or-nothing: a single invalid record rejects the whole
    request before anything is written. Persistence is not: rows rejected by
    the storage layer are counted and reported while the rest are kept.
    """

    def __init__(self, store: Optional[PlaybackEventStore] = None) -> None:
        self._store = store or PlaybackEventStore()

    def ingest_raw(self, body: Union[bytes, str]) -> IngestionOutcome:
        """Decode a JSON request body and ingest it."""

        try:
            payload = json.loads(body)
        except (TypeError, ValueError, UnicodeDecodeError):
            raise ValidationFailed(
                "Request body is not valid JSON", error="Invalid JSON payload"
            ) from None
        return self.ingest(payload)

    def ingest(self, payload: Any) -> IngestionOutcome:
        """Validate one event or a list of events and store the batch."""

        batch = _as_batch(payload)
        if not batch:
            raise ValidationFailed(
                "The request contained no log entries", error="No log data provided"
            )

        with operation("playback.ingest", attributes={"batch_size": len(batch)}):
            events, failures = validate_batch(batch)
            if failures:
                logger.info(
                    "Rejected playback batch: %d of %d entries invalid",
                    len(failures),
                    len(batch),
                    extra={"event": "playback.ingest.invalid", "status": "rejected"},
                )
                raise ValidationFailed(
                    f"{len(failures)} out of {len(batch)} log entries failed validation",
                    details=[failure.as_detail() for failure in failures],
                )

            result = self._store.insert_many(events)

        outcome = IngestionOutcome(inserted=result.inserted, failed=result.failed)
        if outcome.partial:
            logger.warning(
                outcome.message,
                extra={"event": "playback.ingest.partial", "status": "partial"},
            )
        return outcome


__all__ = ["IngestionOutcome", "PlaybackIngestionService"]
