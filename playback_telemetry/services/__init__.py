"""Domain services for playback ingestion and reporting."""

from .errors import AuthenticationRequired, InvalidFilter, PlaybackTelemetryError, ValidationFailed
from .ingestion_service import IngestionOutcome, PlaybackIngestionService
from .playback_store import BulkInsertResult, PlaybackEventStore
from .playback_validator import (
    PlaybackEventRecord,
    ValidationFailure,
    ValidationSuccess,
    validate_playback_event,
)
from .report_filters import ReportFilters
from .reporting_service import PlaybackReportingService

__all__ = [
    "AuthenticationRequired",
    "BulkInsertResult",
    "IngestionOutcome",
    "InvalidFilter",
    "PlaybackEventRecord",
    "PlaybackEventStore",
    "PlaybackIngestionService",
    "PlaybackReportingService",
    "PlaybackTelemetryError",
    "ReportFilters",
    "ValidationFailed",
    "ValidationFailure",
    "ValidationSuccess",
    "validate_playback_event",
]
