"""Validation and normalisation of incoming playback event records.

Every check is evaluated independently so callers receive the complete list
of violations for a record, not just the first one. The module performs no
I/O and keeps no state; it is safe to call from any thread.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

#: Maximum accepted gap, in whole seconds, between the reported duration and
#: the elapsed time between ``start_time`` and ``end_time``.
DURATION_TOLERANCE_SECONDS = 1

IDENTIFIER_FIELDS: Tuple[str, ...] = ("device_id", "asset_id", "playlist_id")
TIMESTAMP_FIELDS: Tuple[str, ...] = ("start_time", "end_time")

# Field names emitted by the Android player, in lookup order.
_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "device_id": ("deviceId",),
    "asset_id": ("assetId",),
    "playlist_id": ("playlistId",),
    "start_time": ("played_at", "startTime"),
    "end_time": ("ended_at", "endTime"),
}


@dataclass(frozen=True)
class PlaybackEventRecord:
    """A validated playback event ready to be persisted."""

    device_id: str
    asset_id: str
    playlist_id: str
    start_time: datetime
    end_time: datetime
    duration: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "asset_id": self.asset_id,
            "playlist_id": self.playlist_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class ValidationSuccess:
    index: Optional[int]
    event: PlaybackEventRecord

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class ValidationFailure:
    index: Optional[int]
    errors: Tuple[str, ...]

    @property
    def is_valid(self) -> bool:
        return False

    def as_detail(self) -> Dict[str, Any]:
        return {"index": self.index, "errors": list(self.errors)}


ValidationResult = Union[ValidationSuccess, ValidationFailure]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 value into an aware UTC datetime.

    Naive values are interpreted as UTC. Returns ``None`` when ``value`` is
    not a string or datetime, or cannot be parsed.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        normalized = value.strip()
        if not normalized:
            return None
        if normalized[-1] in "Zz":
            normalized = f"{normalized[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_field_names(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``record`` with player-specific aliases resolved."""

    normalized = dict(record)
    for canonical, aliases in _FIELD_ALIASES.items():
        if normalized.get(canonical) is not None:
            continue
        for alias in aliases:
            if record.get(alias) is not None:
                normalized[canonical] = record[alias]
                break
    return normalized


def _check_identifier(record: Mapping[str, Any], field: str, errors: List[str]) -> Optional[str]:
    value = record.get(field)
    if isinstance(value, str) and value.strip():
        return value.strip()
    errors.append(f"{field} is required and must be a non-empty string")
    return None


def _check_duration(record: Mapping[str, Any], errors: List[str]) -> Optional[float]:
    value = record.get("duration")
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        errors.append("duration is required and must be a number")
        return None
    if value < 0:
        errors.append("duration must be greater than or equal to 0")
        return None
    return float(value)


def _check_timestamp(record: Mapping[str, Any], field: str, errors: List[str]) -> Optional[datetime]:
    value = record.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        errors.append(f"{field} is required")
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        errors.append(f"{field} must be a valid ISO-8601 date-time")
    return parsed


def validate_playback_event(record: Any, index: Optional[int] = None) -> ValidationResult:
    """Validate one candidate record and return a tagged result."""

    if not isinstance(record, Mapping):
        return ValidationFailure(index=index, errors=("record must be a JSON object",))

    candidate = normalize_field_names(record)
    errors: List[str] = []

    identifiers = {field: _check_identifier(candidate, field, errors) for field in IDENTIFIER_FIELDS}
    duration = _check_duration(candidate, errors)
    start_time = _check_timestamp(candidate, "start_time", errors)
    end_time = _check_timestamp(candidate, "end_time", errors)

    if start_time is not None and end_time is not None:
        if end_time <= start_time:
            errors.append("end_time must be after start_time")
        if duration is not None:
            elapsed = math.floor((end_time - start_time).total_seconds())
            if abs(duration - elapsed) > DURATION_TOLERANCE_SECONDS:
                errors.append(
                    f"duration ({duration:g}s) does not match end_time - start_time "
                    f"({elapsed}s) within {DURATION_TOLERANCE_SECONDS}s tolerance"
                )

    if errors:
        return ValidationFailure(index=index, errors=tuple(errors))

    return ValidationSuccess(
        index=index,
        event=PlaybackEventRecord(
            device_id=identifiers["device_id"],
            asset_id=identifiers["asset_id"],
            playlist_id=identifiers["playlist_id"],
            start_time=start_time,
            end_time=end_time,
            duration=math.floor(duration),
        ),
    )


def validate_batch(records: List[Any]) -> Tuple[List[PlaybackEventRecord], List[ValidationFailure]]:
    """Validate ``records`` in order, splitting accepted events from failures."""

    accepted: List[PlaybackEventRecord] = []
    failures: List[ValidationFailure] = []
    for position, record in enumerate(records):
        result = validate_playback_event(record, index=position)
        if isinstance(result, ValidationSuccess):
            accepted.append(result.event)
        else:
            failures.append(result)
    return accepted, failures


__all__ = [
    "DURATION_TOLERANCE_SECONDS",
    "PlaybackEventRecord",
    "ValidationFailure",
    "ValidationResult",
    "ValidationSuccess",
    "normalize_field_names",
    "parse_timestamp",
    "validate_batch",
    "validate_playback_event",
]
