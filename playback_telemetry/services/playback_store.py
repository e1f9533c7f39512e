"""SQLAlchemy-backed storage for playback events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from sqlalchemy import ColumnElement, delete, distinct, func, select
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from ..database.engine import get_db_session
from ..database.models.playback import PlaybackEventModel
from .playback_validator import PlaybackEventRecord
from .report_filters import ReportFilters

logger = logging.getLogger(__name__)

#: Grouping dimensions supported by :meth:`PlaybackEventStore.breakdown`.
DIMENSIONS = ("asset_id", "device_id", "playlist_id")

# Storage errors that reject a single row without indicating an outage.
_ROW_REJECTIONS = (IntegrityError, DataError)


@dataclass(frozen=True)
class BulkInsertResult:
    inserted: int
    failed: int


def _column(dimension: str):
    if dimension not in DIMENSIONS:
        raise ValueError(f"Unsupported breakdown dimension '{dimension}'")
    return getattr(PlaybackEventModel, dimension)


def filter_conditions(filters: ReportFilters) -> List[ColumnElement[bool]]:
    """Translate ``filters`` into SQL conditions combined with AND."""

    conditions: List[ColumnElement[bool]] = []
    if filters.device_id is not None:
        conditions.append(PlaybackEventModel.device_id == filters.device_id)
    if filters.asset_id is not None:
        conditions.append(PlaybackEventModel.asset_id == filters.asset_id)
    if filters.playlist_id is not None:
        conditions.append(PlaybackEventModel.playlist_id == filters.playlist_id)
    if filters.date_from is not None:
        conditions.append(PlaybackEventModel.start_time >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(PlaybackEventModel.start_time <= filters.date_to)
    return conditions


def _to_model(record: PlaybackEventRecord, created_at: datetime) -> PlaybackEventModel:
    return PlaybackEventModel(**record.as_dict(), created_at=created_at)


class PlaybackEventStore:
    """Append-only access to the ``playback_events`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_many(self, records: Sequence[PlaybackEventRecord]) -> BulkInsertResult:
        """Persist ``records`` without letting one rejected row block the rest.

        The whole batch is first written in a single transaction. When the
        storage layer rejects it, every record is retried in its own
        transaction and rejected rows are counted instead of raised.

        A connection-level failure during the first attempt propagates, since
        nothing was written. Once the per-row retries have started, such a
        failure stops them and the unwritten remainder is counted as
        failed so the caller still learns how many rows were stored.
        """

        if not records:
            return BulkInsertResult(inserted=0, failed=0)

        created_at = datetime.now(timezone.utc)
        try:
            with get_db_session() as session:
                session.add_all([_to_model(record, created_at) for record in records])
            return BulkInsertResult(inserted=len(records), failed=0)
        except _ROW_REJECTIONS as exc:
            logger.warning(
                "Bulk insert of %d playback events rejected; retrying row by row",
                len(records),
                extra={"event": "playback_store.bulk_insert.rejected", "error": str(exc.orig)},
            )

        inserted = 0
        failed = 0
        for position, record in enumerate(records):
            try:
                with get_db_session() as session:
                    session.add(_to_model(record, created_at))
            except _ROW_REJECTIONS as exc:
                failed += 1
                logger.warning(
                    "Playback event %d rejected by storage",
                    position,
                    extra={"event": "playback_store.insert.rejected", "error": str(exc.orig)},
                )
            except SQLAlchemyError:
                remaining = len(records) - position
                failed += remaining
                logger.error(
                    "Storage failed after %d of %d playback events; %d not written",
                    inserted,
                    len(records),
                    remaining,
                    exc_info=True,
                    extra={"event": "playback_store.insert.aborted", "status": "error"},
                )
                break
            else:
                inserted += 1
        return BulkInsertResult(inserted=inserted, failed=failed)

    def delete_all(self) -> int:
        """Remove every stored event. Administrative use only."""

        with get_db_session() as session:
            result = session.execute(delete(PlaybackEventModel))
            deleted = result.rowcount or 0
        logger.warning(
            "Deleted %d playback events",
            deleted,
            extra={"event": "playback_store.delete_all"},
        )
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def summary(self, filters: ReportFilters) -> Dict[str, Any]:
        """Return totals, distinct counts and the observed start_time range."""

        model = PlaybackEventModel
        statement = select(
            func.count(model.id).label("total_plays"),
            func.coalesce(func.sum(model.duration), 0).label("total_duration"),
            func.count(distinct(model.device_id)).label("unique_devices"),
            func.count(distinct(model.asset_id)).label("unique_assets"),
            func.count(distinct(model.playlist_id)).label("unique_playlists"),
            func.min(model.start_time).label("min_date"),
            func.max(model.start_time).label("max_date"),
        ).where(*filter_conditions(filters))

        with get_db_session() as session:
            row = session.execute(statement).one()
        return dict(row._mapping)

    def breakdown(
        self,
        dimension: str,
        filters: ReportFilters,
        *,
        limit: int,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Group matching events by ``dimension``, busiest groups first.

        Device rows also count distinct assets; playlist rows count distinct
        assets and devices. Ties are ordered by the group key so pages stay
        stable between requests.
        """

        model = PlaybackEventModel
        key = _column(dimension)
        play_count = func.count(model.id).label("play_count")
        columns = [
            key.label(dimension),
            play_count,
            func.coalesce(func.sum(model.duration), 0).label("total_duration"),
            func.min(model.start_time).label("first_played"),
            func.max(model.start_time).label("last_played"),
        ]
        if dimension in ("device_id", "playlist_id"):
            columns.append(func.count(distinct(model.asset_id)).label("unique_assets"))
        if dimension == "playlist_id":
            columns.append(func.count(distinct(model.device_id)).label("unique_devices"))

        statement = (
            select(*columns)
            .where(*filter_conditions(filters))
            .group_by(key)
            .order_by(play_count.desc(), key.asc())
            .limit(limit)
            .offset(offset)
        )
        with get_db_session() as session:
            rows = session.execute(statement).all()
        return [dict(row._mapping) for row in rows]

    def count_groups(self, dimension: str, filters: ReportFilters) -> int:
        """Return how many distinct ``dimension`` values match ``filters``."""

        statement = select(func.count(distinct(_column(dimension)))).where(
            *filter_conditions(filters)
        )
        with get_db_session() as session:
            return int(session.execute(statement).scalar_one() or 0)

    def count(self) -> int:
        with get_db_session() as session:
            return int(session.execute(select(func.count(PlaybackEventModel.id))).scalar_one())

    def recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Return the most recently ingested events, newest first."""

        statement = (
            select(PlaybackEventModel)
            .order_by(PlaybackEventModel.created_at.desc(), PlaybackEventModel.id.desc())
            .limit(limit)
        )
        with get_db_session() as session:
            models = session.execute(statement).scalars().all()
            return [
                {
                    "id": model.id,
                    "device_id": model.device_id,
                    "asset_id": model.asset_id,
                    "playlist_id": model.playlist_id,
                    "start_time": model.start_time,
                    "end_time": model.end_time,
                    "duration": model.duration,
                    "created_at": model.created_at,
                }
                for model in models
            ]


__all__ = ["BulkInsertResult", "DIMENSIONS", "PlaybackEventStore", "filter_conditions"]
