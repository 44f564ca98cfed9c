"""Ordered playlist membership repository.

Order values are assigned and rewritten with single SQL statements so the
``(playlist_id, sort_order)`` unique constraint, not application code,
decides which of two racing writers wins.
"""

from datetime import UTC, datetime

from sqlalchemy import case, delete, func, insert, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tunelink.config import get_logger
from tunelink.domain.entities import PlaylistEntry
from tunelink.infrastructure.persistence.database.db_connection import transaction
from tunelink.infrastructure.persistence.database.db_models import DBPlaylistEntry
from tunelink.infrastructure.persistence.repositories.playlist.mapper import (
    PlaylistEntryMapper,
)
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


class PlaylistEntryRepository:
    """Repository for playlist membership entries and their order values."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.mapper = PlaylistEntryMapper()

    def _select_entries(self, playlist_id: int):
        return select(DBPlaylistEntry).where(DBPlaylistEntry.playlist_id == playlist_id)

    @db_operation("has_entry")
    async def has_entry(self, playlist_id: int, track_id: int) -> bool:
        stmt = select(DBPlaylistEntry.id).where(
            DBPlaylistEntry.playlist_id == playlist_id,
            DBPlaylistEntry.track_id == track_id,
        )
        return (await self.session.scalar(stmt.limit(1))) is not None

    @db_operation("append_entry")
    async def append_entry(self, playlist_id: int, track_id: int) -> PlaylistEntry:
        """Insert the track at ``max(order) + 1`` (1 when empty) in one statement.

        The next order value is computed inside the INSERT itself:

            INSERT INTO playlist_entries (...)
            SELECT :playlist_id, :track_id, COALESCE(MAX(sort_order), 0) + 1, ...
            FROM playlist_entries WHERE playlist_id = :playlist_id

        Raises IntegrityError if the membership exists or a concurrent writer
        took the same order value; the savepoint leaves nothing behind.
        """
        now = datetime.now(UTC)
        next_order = (
            select(func.coalesce(func.max(DBPlaylistEntry.sort_order), 0) + 1)
            .where(DBPlaylistEntry.playlist_id == playlist_id)
            .scalar_subquery()
        )
        columns = [
            "playlist_id",
            "track_id",
            "sort_order",
            "added_at",
            "created_at",
            "updated_at",
        ]
        source = select(
            literal(playlist_id),
            literal(track_id),
            next_order,
            literal(now, DBPlaylistEntry.added_at.type),
            literal(now, DBPlaylistEntry.created_at.type),
            literal(now, DBPlaylistEntry.updated_at.type),
        )
        stmt = insert(DBPlaylistEntry).from_select(
            columns, source, include_defaults=False
        )

        async with transaction(self.session):
            await self.session.execute(stmt)

        db_entry = await self.session.scalar(
            self._select_entries(playlist_id)
            .where(DBPlaylistEntry.track_id == track_id)
            .execution_options(populate_existing=True)
        )
        if db_entry is None:
            raise RuntimeError(
                f"Entry for track {track_id} missing right after insert into playlist {playlist_id}"
            )
        return await self.mapper.to_domain(db_entry)

    @db_operation("remove_entry")
    async def remove_entry(self, playlist_id: int, track_id: int) -> int:
        stmt = (
            delete(DBPlaylistEntry)
            .where(
                DBPlaylistEntry.playlist_id == playlist_id,
                DBPlaylistEntry.track_id == track_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    @db_operation("get_entries")
    async def get_entries(
        self, playlist_id: int, include_tracks: bool = True
    ) -> list[PlaylistEntry]:
        """Entries ascending by order value."""
        stmt = self._select_entries(playlist_id).order_by(
            DBPlaylistEntry.sort_order.asc()
        )
        if include_tracks:
            stmt = stmt.options(selectinload(DBPlaylistEntry.track))
        stmt = stmt.execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return await self.mapper.map_collection(list(result.scalars().all()))

    @db_operation("apply_orders")
    async def apply_orders(self, playlist_id: int, orders: dict[int, int]) -> int:
        """Set new order values for the given member tracks.

        Two UPDATEs inside one savepoint: first every named entry is parked
        on a unique negative placeholder (its negated row id), then the
        final values are written. Swapping two entries therefore never
        passes through a state with duplicate order values. Track IDs that
        are not members are ignored.
        """
        if not orders:
            return 0

        track_ids = list(orders)
        named = (
            DBPlaylistEntry.playlist_id == playlist_id,
            DBPlaylistEntry.track_id.in_(track_ids),
        )
        now = datetime.now(UTC)

        async with transaction(self.session):
            await self.session.execute(
                update(DBPlaylistEntry)
                .where(*named)
                .values(sort_order=-DBPlaylistEntry.id)
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(
                update(DBPlaylistEntry)
                .where(*named)
                .values(
                    sort_order=case(
                        *(
                            (DBPlaylistEntry.track_id == track_id, order)
                            for track_id, order in orders.items()
                        ),
                        else_=DBPlaylistEntry.sort_order,
                    ),
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )

        logger.debug(
            f"Reordered {result.rowcount} entries", playlist_id=playlist_id
        )
        return result.rowcount
