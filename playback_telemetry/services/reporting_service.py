"""Aggregate playback reports over stored proof-of-play events."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..config_manager import DEFAULT_BREAKDOWN_TOP_N
from ..observability import operation
from .playback_store import PlaybackEventStore
from .report_filters import UNFILTERED, ReportFilters

logger = logging.getLogger(__name__)

# Column order of breakdown rows in the response.
_BREAKDOWN_FIELDS = (
    "play_count",
    "total_duration",
    "unique_assets",
    "unique_devices",
    "avg_duration",
    "first_played",
    "last_played",
)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _average(total: int, count: int) -> float:
    if not count:
        return 0.0
    return round(total / count, 2)


def _shape_breakdown_row(dimension: str, row: Mapping[str, Any]) -> Dict[str, Any]:
    play_count = int(row["play_count"])
    total_duration = int(row["total_duration"] or 0)
    values = {
        "play_count": play_count,
        "total_duration": total_duration,
        "unique_assets": row.get("unique_assets"),
        "unique_devices": row.get("unique_devices"),
        "avg_duration": _average(total_duration, play_count),
        "first_played": _isoformat(row["first_played"]),
        "last_played": _isoformat(row["last_played"]),
    }
    shaped: Dict[str, Any] = {dimension: row[dimension]}
    for field in _BREAKDOWN_FIELDS:
        if field in ("unique_assets", "unique_devices") and field not in row:
            continue
        shaped[field] = values[field]
    return shaped


def _pagination(filters: ReportFilters, total_items: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_items / filters.limit)
    return {
        "page": filters.page,
        "limit": filters.limit,
        "total_items": total_items,
        "total_pages": total_pages,
        "has_next": filters.page < total_pages,
        "has_prev": filters.page > 1,
    }


class PlaybackReportingService:
    """Build filtered playback reports and unfiltered global statistics.

    A report consists of a summary plus breakdowns by asset, device and
    playlist. Each part is an independent read-only query over the same
    filter predicate; the queries run concurrently and share no snapshot.
    Only the by-asset breakdown is paginated, the other two are capped at
    ``breakdown_top_n`` rows.
    """

    def __init__(
        self,
        store: Optional[PlaybackEventStore] = None,
        *,
        breakdown_top_n: int = DEFAULT_BREAKDOWN_TOP_N,
        max_workers: int = 4,
    ) -> None:
        self._store = store or PlaybackEventStore()
        self._breakdown_top_n = breakdown_top_n
        self._max_workers = max(1, max_workers)

    def build_report(self, filters: ReportFilters) -> Dict[str, Any]:
        """Return the summary, the three breakdowns and pagination metadata."""

        store = self._store
        with operation("playback.report", attributes=filters.describe()):
            with ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="playback-report"
            ) as executor:
                summary_future = executor.submit(store.summary, filters)
                assets_future = executor.submit(
                    store.breakdown,
                    "asset_id",
                    filters,
                    limit=filters.limit,
                    offset=filters.offset,
                )
                asset_total_future = executor.submit(store.count_groups, "asset_id", filters)
                devices_future = executor.submit(
                    store.breakdown, "device_id", filters, limit=self._breakdown_top_n
                )
                playlists_future = executor.submit(
                    store.breakdown, "playlist_id", filters, limit=self._breakdown_top_n
                )

                summary_row = summary_future.result()
                asset_rows = assets_future.result()
                total_assets = asset_total_future.result()
                device_rows = devices_future.result()
                playlist_rows = playlists_future.result()

        summary = self._shape_summary(summary_row)
        summary["filters"] = filters.describe()
        return {
            "summary": summary,
            "by_asset": [_shape_breakdown_row("asset_id", row) for row in asset_rows],
            "by_device": [_shape_breakdown_row("device_id", row) for row in device_rows],
            "by_playlist": [_shape_breakdown_row("playlist_id", row) for row in playlist_rows],
            "pagination": _pagination(filters, total_assets),
        }

    def global_stats(self) -> Dict[str, Any]:
        """Return unfiltered totals without breakdowns or pagination."""

        with operation("playback.stats"):
            row = self._store.summary(UNFILTERED)
        return {
            "total_plays": int(row["total_plays"] or 0),
            "total_duration": int(row["total_duration"] or 0),
            "unique_device_count": int(row["unique_devices"] or 0),
            "unique_asset_count": int(row["unique_assets"] or 0),
            "unique_playlist_count": int(row["unique_playlists"] or 0),
        }

    @staticmethod
    def _shape_summary(row: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "total_plays": int(row["total_plays"] or 0),
            "total_duration": int(row["total_duration"] or 0),
            "unique_devices": int(row["unique_devices"] or 0),
            "unique_assets": int(row["unique_assets"] or 0),
            "unique_playlists": int(row["unique_playlists"] or 0),
            "date_range": {
                "from": _isoformat(row["min_date"]),
                "to": _isoformat(row["max_date"]),
            },
        }


__all__ = ["PlaybackReportingService"]
