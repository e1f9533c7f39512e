"""Tests for playback report aggregation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from playback_telemetry.services.ingestion_service import PlaybackIngestionService
from playback_telemetry.services.playback_store import PlaybackEventStore
from playback_telemetry.services.report_filters import ReportFilters
from playback_telemetry.services.reporting_service import PlaybackReportingService
from tests.helpers.playback_events import BASE_TIME, make_event

pytestmark = pytest.mark.reporting


@pytest.fixture
def store(database) -> PlaybackEventStore:
    return PlaybackEventStore()


@pytest.fixture
def reporting(store: PlaybackEventStore) -> PlaybackReportingService:
    return PlaybackReportingService(store)


@pytest.fixture
def ingest(store: PlaybackEventStore):
    service = PlaybackIngestionService(store)
    return service.ingest


@pytest.fixture
def mixed_events(ingest) -> None:
    """Seven plays across two days, three devices, three assets, two playlists."""

    day_two = BASE_TIME + timedelta(days=1)
    ingest(
        [
            make_event(device_id="lobby", asset_id="intro.mp4", playlist_id="morning", seconds=30),
            make_event(
                device_id="lobby",
                asset_id="intro.mp4",
                playlist_id="morning",
                start=BASE_TIME + timedelta(minutes=5),
                seconds=20,
            ),
            make_event(
                device_id="lobby",
                asset_id="promo.mp4",
                playlist_id="morning",
                start=BASE_TIME + timedelta(minutes=10),
                seconds=15,
            ),
            make_event(device_id="cafe", asset_id="intro.mp4", playlist_id="lunch", start=day_two, seconds=40),
            make_event(
                device_id="cafe",
                asset_id="menu.jpg",
                playlist_id="lunch",
                start=day_two + timedelta(minutes=1),
                seconds=10,
            ),
            make_event(
                device_id="cafe",
                asset_id="menu.jpg",
                playlist_id="lunch",
                start=day_two + timedelta(minutes=2),
                seconds=11,
            ),
            make_event(
                device_id="reception",
                asset_id="intro.mp4",
                playlist_id="morning",
                start=day_two + timedelta(hours=1),
                seconds=25,
            ),
        ]
    )


class TestSummary:

    def test_totals(self, reporting, mixed_events) -> None:
        summary = reporting.build_report(ReportFilters())["summary"]
        assert summary["total_plays"] == 7
        assert summary["total_duration"] == 151
        assert summary["unique_devices"] == 3
        assert summary["unique_assets"] == 3
        assert summary["unique_playlists"] == 2
        assert summary["date_range"] == {
            "from": "2026-03-02T09:00:00+00:00",
            "to": "2026-03-03T10:00:00+00:00",
        }
        assert summary["filters"] == {}

    def test_empty_result(self, reporting) -> None:
        report = reporting.build_report(ReportFilters())
        assert report["summary"]["total_plays"] == 0
        assert report["summary"]["total_duration"] == 0
        assert report["summary"]["date_range"] == {"from": None, "to": None}
        assert report["by_asset"] == []
        assert report["by_device"] == []
        assert report["by_playlist"] == []
        assert report["pagination"] == {
            "page": 1,
            "limit": 100,
            "total_items": 0,
            "total_pages": 0,
            "has_next": False,
            "has_prev": False,
        }


class TestBreakdowns:

    def test_by_asset(self, reporting, mixed_events) -> None:
        by_asset = reporting.build_report(ReportFilters())["by_asset"]
        assert [row["asset_id"] for row in by_asset] == ["intro.mp4", "menu.jpg", "promo.mp4"]
        intro = by_asset[0]
        assert intro == {
            "asset_id": "intro.mp4",
            "play_count": 4,
            "total_duration": 115,
            "avg_duration": 28.75,
            "first_played": "2026-03-02T09:00:00+00:00",
            "last_played": "2026-03-03T10:00:00+00:00",
        }

    def test_by_device(self, reporting, mixed_events) -> None:
        by_device = reporting.build_report(ReportFilters())["by_device"]
        assert [row["device_id"] for row in by_device] == ["cafe", "lobby", "reception"]
        cafe = by_device[0]
        assert cafe["play_count"] == 3
        assert cafe["unique_assets"] == 2
        assert cafe["avg_duration"] == 20.33
        assert "unique_devices" not in cafe

    def test_by_playlist(self, reporting, mixed_events) -> None:
        by_playlist = reporting.build_report(ReportFilters())["by_playlist"]
        assert [row["playlist_id"] for row in by_playlist] == ["morning", "lunch"]
        morning = by_playlist[0]
        assert morning["play_count"] == 4
        assert morning["unique_assets"] == 2
        assert morning["unique_devices"] == 2

    def test_breakdowns_agree_with_summary(self, reporting, mixed_events) -> None:
        report = reporting.build_report(ReportFilters())
        total_plays = report["summary"]["total_plays"]
        total_duration = report["summary"]["total_duration"]
        for key in ("by_asset", "by_device", "by_playlist"):
            assert sum(row["play_count"] for row in report[key]) == total_plays
            assert sum(row["total_duration"] for row in report[key]) == total_duration

    def test_device_and_playlist_are_capped(self, ingest, store) -> None:
        ingest(
            [
                make_event(device_id=f"device-{i:02d}", playlist_id=f"playlist-{i:02d}")
                for i in range(55)
            ]
        )
        report = PlaybackReportingService(store).build_report(ReportFilters())
        assert len(report["by_device"]) == 50
        assert len(report["by_playlist"]) == 50
        assert report["summary"]["unique_devices"] == 55

        capped = PlaybackReportingService(store, breakdown_top_n=3).build_report(ReportFilters())
        assert [row["device_id"] for row in capped["by_device"]] == [
            "device-00",
            "device-01",
            "device-02",
        ]


class TestFilters:

    def test_device_filter(self, reporting, mixed_events) -> None:
        report = reporting.build_report(ReportFilters(device_id="lobby"))
        assert report["summary"]["total_plays"] == 3
        assert report["summary"]["filters"] == {"device_id": "lobby"}
        assert {row["device_id"] for row in report["by_device"]} == {"lobby"}

    def test_combined_filters(self, reporting, mixed_events) -> None:
        report = reporting.build_report(
            ReportFilters(asset_id="intro.mp4", playlist_id="morning")
        )
        assert report["summary"]["total_plays"] == 3
        assert report["summary"]["unique_devices"] == 2

    def test_date_bounds_are_inclusive(self, reporting, mixed_events) -> None:
        day_two = BASE_TIME + timedelta(days=1)
        filters = ReportFilters.from_query(
            date_from=day_two.isoformat(),
            date_to=(day_two + timedelta(minutes=2)).isoformat(),
        )
        report = reporting.build_report(filters)
        assert report["summary"]["total_plays"] == 3
        assert report["summary"]["date_range"]["from"] == day_two.isoformat()

    def test_no_match(self, reporting, mixed_events) -> None:
        report = reporting.build_report(ReportFilters(device_id="unknown"))
        assert report["summary"]["total_plays"] == 0
        assert report["pagination"]["total_items"] == 0


class TestPagination:

    @pytest.fixture
    def many_assets(self, ingest) -> None:
        ingest(
            [
                make_event(asset_id=f"asset-{i:02d}", start=BASE_TIME + timedelta(minutes=i))
                for i in range(25)
            ]
        )

    def test_first_page(self, reporting, many_assets) -> None:
        report = reporting.build_report(ReportFilters.from_query(page="1", limit="10"))
        assert len(report["by_asset"]) == 10
        assert report["by_asset"][0]["asset_id"] == "asset-00"
        assert report["pagination"] == {
            "page": 1,
            "limit": 10,
            "total_items": 25,
            "total_pages": 3,
            "has_next": True,
            "has_prev": False,
        }

    def test_last_page(self, reporting, many_assets) -> None:
        report = reporting.build_report(ReportFilters.from_query(page="3", limit="10"))
        assert [row["asset_id"] for row in report["by_asset"]] == [
            f"asset-{i:02d}" for i in range(20, 25)
        ]
        assert report["pagination"]["has_next"] is False
        assert report["pagination"]["has_prev"] is True

    def test_page_past_the_end(self, reporting, many_assets) -> None:
        report = reporting.build_report(ReportFilters.from_query(page="9", limit="10"))
        assert report["by_asset"] == []
        assert report["pagination"]["total_pages"] == 3
        assert report["pagination"]["has_next"] is False

    def test_page_beyond_sql_integer_range(self, reporting, many_assets) -> None:
        filters = ReportFilters.from_query(page="100000000000000000000", limit="10")
        report = reporting.build_report(filters)
        assert report["by_asset"] == []
        assert report["pagination"]["page"] == filters.page
        assert report["pagination"]["total_items"] == 25
        assert report["pagination"]["total_pages"] == 3
        assert report["pagination"]["has_next"] is False
        assert report["pagination"]["has_prev"] is True

    def test_pages_do_not_overlap(self, reporting, many_assets) -> None:
        seen = []
        for page in (1, 2, 3):
            report = reporting.build_report(ReportFilters(page=page, limit=10))
            seen.extend(row["asset_id"] for row in report["by_asset"])
        assert len(seen) == len(set(seen)) == 25


def test_reads_are_idempotent(reporting, mixed_events) -> None:
    filters = ReportFilters(playlist_id="lunch")
    assert reporting.build_report(filters) == reporting.build_report(filters)


class TestGlobalStats:

    def test_unfiltered_totals(self, reporting, mixed_events) -> None:
        assert reporting.global_stats() == {
            "total_plays": 7,
            "total_duration": 151,
            "unique_device_count": 3,
            "unique_asset_count": 3,
            "unique_playlist_count": 2,
        }

    def test_empty(self, reporting) -> None:
        stats = reporting.global_stats()
        assert stats["total_plays"] == 0
        assert stats["total_duration"] == 0
        assert stats["unique_device_count"] == 0
