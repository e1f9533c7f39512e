"""Tests for report filter parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from playback_telemetry.services.errors import InvalidFilter
from playback_telemetry.services.report_filters import ReportFilters

pytestmark = pytest.mark.reporting


def test_defaults() -> None:
    filters = ReportFilters.from_query()
    assert filters.page == 1
    assert filters.limit == 100
    assert filters.offset == 0
    assert filters.describe() == {}


@pytest.mark.parametrize(
    ("raw_limit", "expected"),
    [("0", 1), ("-3", 1), ("5000", 1000), ("250", 250), ("abc", 100), (None, 100)],
)
def test_limit_is_clamped(raw_limit, expected: int) -> None:
    assert ReportFilters.from_query(limit=raw_limit).limit == expected


@pytest.mark.parametrize(("raw_page", "expected"), [("0", 1), ("-1", 1), ("4", 4), ("x", 1)])
def test_page_is_at_least_one(raw_page, expected: int) -> None:
    assert ReportFilters.from_query(page=raw_page).page == expected


@pytest.mark.parametrize("raw_limit", ["1", "10", "1000"])
def test_huge_page_keeps_offset_in_sql_integer_range(raw_limit: str) -> None:
    filters = ReportFilters.from_query(page="100000000000000000000", limit=raw_limit)
    assert filters.page > 1
    assert filters.offset + filters.limit <= 2**63 - 1
    next_page = ReportFilters(page=filters.page + 1, limit=filters.limit)
    assert next_page.offset + next_page.limit > 2**63 - 1


def test_offset_uses_page_and_limit() -> None:
    filters = ReportFilters.from_query(page="3", limit="10")
    assert filters.offset == 20


def test_configured_limits() -> None:
    filters = ReportFilters.from_query(limit="80", default_limit=25, max_limit=50)
    assert filters.limit == 50
    assert ReportFilters.from_query(default_limit=25, max_limit=50).limit == 25


def test_dates_and_identifiers() -> None:
    filters = ReportFilters.from_query(
        device_id=" lobby ",
        asset_id="",
        date_from="2026-03-01",
        date_to="2026-03-31T23:59:59Z",
    )
    assert filters.device_id == "lobby"
    assert filters.asset_id is None
    assert filters.date_from == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert filters.date_to == datetime(2026, 3, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert filters.describe() == {
        "device_id": "lobby",
        "date_from": "2026-03-01T00:00:00+00:00",
        "date_to": "2026-03-31T23:59:59+00:00",
    }


@pytest.mark.parametrize("field", ["date_from", "date_to"])
def test_malformed_date_raises(field: str) -> None:
    with pytest.raises(InvalidFilter) as excinfo:
        ReportFilters.from_query(**{field: "last tuesday"})
    assert excinfo.value.to_payload() == {
        "error": f"Invalid {field} format. Use ISO date string."
    }
