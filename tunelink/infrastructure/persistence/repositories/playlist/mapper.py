"""Playlist repository mappers for domain-persistence conversions."""

from typing import override

from attrs import define

from tunelink.domain.entities import Playlist, PlaylistEntry, ensure_utc
from tunelink.infrastructure.persistence.database.db_models import (
    DBPlaylist,
    DBPlaylistEntry,
)
from tunelink.infrastructure.persistence.repositories.base_repo import BaseModelMapper
from tunelink.infrastructure.persistence.repositories.track.mapper import TrackMapper


@define(frozen=True, slots=True)
class PlaylistMapper(BaseModelMapper[DBPlaylist, Playlist]):
    """Bidirectional mapper between playlist rows and domain playlists.

    Entries are never loaded with the playlist; membership goes through
    the entry repository so ordering is always applied by the database.
    """

    @staticmethod
    @override
    async def to_domain(db_model: DBPlaylist) -> Playlist:
        return Playlist(
            id=db_model.id,
            owner_id=db_model.owner_id,
            name=db_model.name,
            description=db_model.description,
            is_public=db_model.is_public,
            created_at=ensure_utc(db_model.created_at),
        )

    @staticmethod
    @override
    def to_db(domain_model: Playlist) -> DBPlaylist:
        return DBPlaylist(
            owner_id=domain_model.owner_id,
            name=domain_model.name,
            description=domain_model.description,
            is_public=domain_model.is_public,
        )


@define(frozen=True, slots=True)
class PlaylistEntryMapper(BaseModelMapper[DBPlaylistEntry, PlaylistEntry]):
    """Maps membership rows, including the track when it was eager-loaded."""

    @staticmethod
    @override
    async def to_domain(db_model: DBPlaylistEntry) -> PlaylistEntry:
        # Only touch the relationship if it is already loaded; lazy loads are not allowed here
        track = None
        if "track" in db_model.__dict__ and db_model.track is not None:
            track = await TrackMapper.to_domain(db_model.track)

        return PlaylistEntry(
            id=db_model.id,
            playlist_id=db_model.playlist_id,
            track_id=db_model.track_id,
            order=db_model.sort_order,
            added_at=ensure_utc(db_model.added_at),
            track=track,
        )
