"""Core playlist repository implementation."""

from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from tunelink.config import get_logger
from tunelink.domain.entities import Playlist
from tunelink.infrastructure.persistence.database.db_models import DBPlaylist
from tunelink.infrastructure.persistence.repositories.base_repo import (
    BaseRepository,
    filter_active,
)
from tunelink.infrastructure.persistence.repositories.playlist.mapper import (
    PlaylistMapper,
)
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

# Create module logger
logger = get_logger(__name__)


class PlaylistRepository(BaseRepository[DBPlaylist, Playlist]):
    """Repository for playlist metadata."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session and mapper."""
        super().__init__(
            session=session,
            model_class=DBPlaylist,
            mapper=PlaylistMapper(),
        )

    @db_operation("get_playlist")
    async def get_playlist(
        self, playlist_id: int, for_update: bool = False
    ) -> Playlist | None:
        """Get an active playlist.

        With ``for_update`` the row is locked until the transaction ends
        (``SELECT ... FOR UPDATE``), which serialises membership writers on
        the same playlist. SQLite has no row locks; there the transaction
        already holds the database write lock.
        """
        stmt = self.select_by_id(playlist_id)
        if for_update:
            stmt = stmt.with_for_update()

        db_playlist = await self._execute_query_one(stmt)
        if db_playlist is None:
            return None
        return await self.mapper.to_domain(db_playlist)

    @db_operation("create_playlist")
    async def create_playlist(self, playlist: Playlist) -> Playlist:
        created = await self.create(playlist)
        logger.info(
            f"Created playlist '{created.name}'",
            playlist_id=created.id,
            owner_id=created.owner_id,
        )
        return created

    @db_operation("update_playlist")
    async def update_playlist(
        self, playlist_id: int, **changes: Any
    ) -> Playlist | None:
        """Overwrite the given columns of an active playlist.

        Returns the updated playlist, or None if it is missing or deleted.
        """
        if changes:
            result = await self.session.execute(
                update(DBPlaylist)
                .where(DBPlaylist.id == playlist_id, filter_active(DBPlaylist))
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
            logger.debug(
                f"Updated playlist columns {sorted(changes)}", playlist_id=playlist_id
            )

        db_playlist = await self._execute_query_one(
            self.select_by_id(playlist_id).execution_options(populate_existing=True)
        )
        return None if db_playlist is None else await self.mapper.to_domain(db_playlist)

    @db_operation("soft_delete_playlist")
    async def soft_delete_playlist(self, playlist_id: int) -> int:
        return await self.soft_delete(playlist_id)

    @db_operation("list_visible_playlists")
    async def list_visible_playlists(self, viewer_id: int | None) -> list[Playlist]:
        """Public playlists plus the viewer's own, newest first."""
        visibility = DBPlaylist.is_public == True  # noqa: E712
        if viewer_id is not None:
            visibility = or_(visibility, DBPlaylist.owner_id == viewer_id)

        return await self.find_by(
            [visibility],
            order_by=("created_at", False),
        )
