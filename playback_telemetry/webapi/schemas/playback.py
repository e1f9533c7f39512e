"""Schemas for playback ingestion and reporting endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlaybackLogEntry(BaseModel):
    """Documented shape of one ingested event (validation happens server-side)."""

    device_id: str
    asset_id: str
    playlist_id: str
    start_time: str
    end_time: str
    duration: float


class ValidationErrorDetail(BaseModel):
    index: Optional[int] = None
    errors: List[str]


class PlaybackErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
    details: Optional[Union[List[ValidationErrorDetail], str]] = None


class PlaybackLogResponse(BaseModel):
    success: bool = True
    inserted: int
    message: str


class PlaybackLogPartialResponse(PlaybackLogResponse):
    errors: int


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None


class ReportSummary(BaseModel):
    total_plays: int
    total_duration: int
    unique_devices: int
    unique_assets: int
    unique_playlists: int
    date_range: DateRange
    filters: Dict[str, Any] = Field(default_factory=dict)


class AssetBreakdown(BaseModel):
    asset_id: str
    play_count: int
    total_duration: int
    avg_duration: float
    first_played: Optional[str] = None
    last_played: Optional[str] = None


class DeviceBreakdown(BaseModel):
    device_id: str
    play_count: int
    total_duration: int
    unique_assets: int
    avg_duration: float
    first_played: Optional[str] = None
    last_played: Optional[str] = None


class PlaylistBreakdown(BaseModel):
    playlist_id: str
    play_count: int
    total_duration: int
    unique_assets: int
    unique_devices: int
    avg_duration: float
    first_played: Optional[str] = None
    last_played: Optional[str] = None


class ReportPagination(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PlaybackReportResponse(BaseModel):
    summary: ReportSummary
    by_asset: List[AssetBreakdown] = Field(default_factory=list)
    by_device: List[DeviceBreakdown] = Field(default_factory=list)
    by_playlist: List[PlaylistBreakdown] = Field(default_factory=list)
    pagination: ReportPagination


class PlaybackStats(BaseModel):
    total_plays: int
    total_duration: int
    unique_device_count: int
    unique_asset_count: int
    unique_playlist_count: int


class PlaybackStatsResponse(BaseModel):
    stats: PlaybackStats


class SampleLogsResponse(BaseModel):
    success: bool = True
    inserted: int
    message: str
    logs: List[PlaybackLogEntry] = Field(default_factory=list)


class StoredPlaybackEvent(BaseModel):
    id: int
    device_id: str
    asset_id: str
    playlist_id: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: int
    created_at: Optional[str] = None


class RecentLogsResponse(BaseModel):
    success: bool = True
    total_count: int
    showing: int
    logs: List[StoredPlaybackEvent] = Field(default_factory=list)


class DeleteLogsResponse(BaseModel):
    success: bool = True
    deleted: int
    message: str
