"""Playback event model: one proof-of-play record per row."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from ..base import Base


class PlaybackEventModel(Base):
    """Append-only record of one asset playing on one device.

    ``device_id``, ``asset_id`` and ``playlist_id`` are free-text references;
    no foreign keys are declared so events outlive renamed or deleted parents.
    """

    __tablename__ = "playback_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    device_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    asset_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    playlist_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_playback_duration_non_negative"),
        CheckConstraint("end_time > start_time", name="ck_playback_end_after_start"),
        Index("idx_playback_device_start", "device_id", text("start_time DESC")),
        Index("idx_playback_asset_start", "asset_id", text("start_time DESC")),
        Index("idx_playback_playlist_start", "playlist_id", text("start_time DESC")),
        Index("idx_playback_start_end", text("start_time DESC"), text("end_time DESC")),
    )
