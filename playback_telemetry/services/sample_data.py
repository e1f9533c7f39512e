"""Random but valid playback events for smoke-testing a deployment."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

SAMPLE_DEVICE_IDS = (
    "lobby-display-001",
    "conference-room-a",
    "reception-screen",
    "cafeteria-tv-01",
    "elevator-display",
)
SAMPLE_ASSET_IDS = (
    "welcome-video.mp4",
    "company-promo.mp4",
    "product-showcase.mp4",
    "announcement-banner.jpg",
    "safety-guidelines.mp4",
    "holiday-message.mp4",
)
SAMPLE_PLAYLIST_IDS = (
    "morning-playlist",
    "afternoon-content",
    "corporate-announcements",
    "lobby-rotation",
    "break-room-mix",
)

MIN_SAMPLE_COUNT = 1
MAX_SAMPLE_COUNT = 20
DEFAULT_SAMPLE_COUNT = 5


def clamp_sample_count(count: Optional[int]) -> int:
    if count is None:
        return DEFAULT_SAMPLE_COUNT
    return min(MAX_SAMPLE_COUNT, max(MIN_SAMPLE_COUNT, count))


def generate_sample_events(
    count: int,
    *,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """Build ``count`` ingestion payloads played within the last 24 hours."""

    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    events: List[Dict[str, Any]] = []
    for _ in range(count):
        duration = rng.randint(10, 70)
        start_time = now - timedelta(milliseconds=rng.randrange(86_400_000))
        end_time = start_time + timedelta(seconds=duration)
        events.append(
            {
                "device_id": rng.choice(SAMPLE_DEVICE_IDS),
                "asset_id": rng.choice(SAMPLE_ASSET_IDS),
                "playlist_id": rng.choice(SAMPLE_PLAYLIST_IDS),
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
                "duration": duration,
            }
        )
    return events


__all__ = ["clamp_sample_count", "generate_sample_events"]
