"""Report filter parsing shared by the reporting service and the event store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..config_manager import DEFAULT_REPORT_LIMIT, DEFAULT_REPORT_PAGE, MAX_REPORT_LIMIT
from .errors import InvalidFilter
from .playback_validator import parse_timestamp

#: Largest OFFSET plus LIMIT a 64-bit SQL integer can carry.
MAX_SQL_ROW_OFFSET = 2**63 - 1


def _clean_identifier(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _coerce_int(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _clamp_page(page: int, limit: int) -> int:
    last_addressable = (MAX_SQL_ROW_OFFSET - limit) // limit + 1
    return min(max(1, page), last_addressable)


def _parse_bound(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidFilter(f"Invalid {name} format. Use ISO date string.")
    return parsed


@dataclass(frozen=True)
class ReportFilters:
    """Filter predicate and pagination window for a playback report."""

    device_id: Optional[str] = None
    asset_id: Optional[str] = None
    playlist_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = DEFAULT_REPORT_PAGE
    limit: int = DEFAULT_REPORT_LIMIT

    @classmethod
    def from_query(
        cls,
        *,
        device_id: Optional[str] = None,
        asset_id: Optional[str] = None,
        playlist_id: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: Any = None,
        limit: Any = None,
        default_limit: int = DEFAULT_REPORT_LIMIT,
        max_limit: int = MAX_REPORT_LIMIT,
    ) -> "ReportFilters":
        """Parse raw query values, raising :class:`InvalidFilter` on bad dates.

        ``page`` is capped so that the resulting offset stays within the
        range of a 64-bit SQL integer; such pages are simply empty.
        """

        page_size = min(max_limit, max(1, _coerce_int(limit, default_limit)))
        return cls(
            device_id=_clean_identifier(device_id),
            asset_id=_clean_identifier(asset_id),
            playlist_id=_clean_identifier(playlist_id),
            date_from=_parse_bound(date_from, "date_from"),
            date_to=_parse_bound(date_to, "date_to"),
            page=_clamp_page(_coerce_int(page, DEFAULT_REPORT_PAGE), page_size),
            limit=page_size,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def describe(self) -> Dict[str, Any]:
        """Return the applied filters, omitting unset ones."""

        applied: Dict[str, Any] = {}
        for name in ("device_id", "asset_id", "playlist_id"):
            value = getattr(self, name)
            if value is not None:
                applied[name] = value
        if self.date_from is not None:
            applied["date_from"] = self.date_from.isoformat()
        if self.date_to is not None:
            applied["date_to"] = self.date_to.isoformat()
        return applied


#: Filter selecting every stored event.
UNFILTERED = ReportFilters()

__all__ = ["ReportFilters", "UNFILTERED"]
