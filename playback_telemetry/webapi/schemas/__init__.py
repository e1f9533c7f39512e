"""Pydantic schemas for the playback telemetry API."""

from .playback import (
    DeleteLogsResponse,
    PlaybackErrorResponse,
    PlaybackLogPartialResponse,
    PlaybackLogResponse,
    PlaybackReportResponse,
    PlaybackStatsResponse,
    RecentLogsResponse,
    SampleLogsResponse,
)

__all__ = [
    "DeleteLogsResponse",
    "PlaybackErrorResponse",
    "PlaybackLogPartialResponse",
    "PlaybackLogResponse",
    "PlaybackReportResponse",
    "PlaybackStatsResponse",
    "RecentLogsResponse",
    "SampleLogsResponse",
]
