"""Core track repository implementation."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tunelink.config import get_logger
from tunelink.domain.entities import Track
from tunelink.infrastructure.persistence.database.db_connection import transaction
from tunelink.infrastructure.persistence.database.db_models import DBTrack
from tunelink.infrastructure.persistence.repositories.base_repo import BaseRepository
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)
from tunelink.infrastructure.persistence.repositories.track.mapper import TrackMapper

logger = get_logger(__name__)


class TrackRepository(BaseRepository[DBTrack, Track]):
    """Repository for track operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model_class=DBTrack, mapper=TrackMapper())

    @db_operation("get_track")
    async def get_track(self, track_id: int) -> Track | None:
        return await self.find_one_by_id(track_id)

    @db_operation("find_by_external_id")
    async def find_by_external_id(self, external_id: str) -> Track | None:
        """Find the local track mapped to an external catalog ID.

        Soft-deactivated tracks still own their external ID, so they are
        returned too. Importing such an ID therefore resolves to the
        deactivated track, which playlists then reject as not found; the
        catalog entry is never re-created under a new local ID.
        """
        stmt = select(DBTrack).where(DBTrack.external_id == external_id)
        db_track = await self._execute_query_one(stmt)
        if db_track is None:
            return None
        return await self.mapper.to_domain(db_track)

    @db_operation("create_track")
    async def create_track(self, track: Track) -> Track:
        """Insert a track inside its own savepoint.

        An IntegrityError (external ID already taken) rolls back only the
        savepoint, so the caller's transaction stays usable.
        """
        async with transaction(self.session):
            db_track = self.mapper.to_db(track)
            self.session.add(db_track)
            await self.session.flush()

        logger.debug(
            "Created track", track_id=db_track.id, external_id=track.external_id
        )
        return await self.mapper.to_domain(db_track)
