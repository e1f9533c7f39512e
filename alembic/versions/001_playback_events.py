"""Playback events: proof-of-play records reported by display devices.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "playback_events",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("device_id", sa.Text, nullable=False),
        sa.Column("asset_id", sa.Text, nullable=False),
        sa.Column("playlist_id", sa.Text, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("duration >= 0", name="ck_playback_duration_non_negative"),
        sa.CheckConstraint("end_time > start_time", name="ck_playback_end_after_start"),
    )
    op.create_index("ix_playback_events_device_id", "playback_events", ["device_id"])
    op.create_index("ix_playback_events_asset_id", "playback_events", ["asset_id"])
    op.create_index("ix_playback_events_playlist_id", "playback_events", ["playlist_id"])
    op.create_index("ix_playback_events_start_time", "playback_events", ["start_time"])
    op.create_index(
        "idx_playback_device_start", "playback_events", ["device_id", sa.text("start_time DESC")]
    )
    op.create_index(
        "idx_playback_asset_start", "playback_events", ["asset_id", sa.text("start_time DESC")]
    )
    op.create_index(
        "idx_playback_playlist_start", "playback_events", ["playlist_id", sa.text("start_time DESC")]
    )
    op.create_index(
        "idx_playback_start_end",
        "playback_events",
        [sa.text("start_time DESC"), sa.text("end_time DESC")],
    )


def downgrade() -> None:
    op.drop_table("playback_events")
