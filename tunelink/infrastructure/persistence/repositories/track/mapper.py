"""Track mappers for converting between domain and database models."""

from typing import override

from attrs import define

from tunelink.domain.entities import Track
from tunelink.infrastructure.persistence.database.db_models import DBTrack
from tunelink.infrastructure.persistence.repositories.base_repo import BaseModelMapper


@define(frozen=True, slots=True)
class TrackMapper(BaseModelMapper[DBTrack, Track]):
    """Bidirectional mapper between DB and domain models for Track."""

    @staticmethod
    @override
    async def to_domain(db_model: DBTrack) -> Track:
        return Track(
            id=db_model.id,
            title=db_model.title,
            artist=db_model.artist,
            album=db_model.album,
            duration_seconds=db_model.duration_seconds,
            release_date=db_model.release_date,
            artwork_url=db_model.artwork_url,
            preview_url=db_model.preview_url,
            external_url=db_model.external_url,
            popularity=db_model.popularity,
            external_id=db_model.external_id,
        )

    @staticmethod
    @override
    def to_db(domain_model: Track) -> DBTrack:
        return DBTrack(
            title=domain_model.title,
            artist=domain_model.artist,
            album=domain_model.album,
            duration_seconds=domain_model.duration_seconds,
            release_date=domain_model.release_date,
            artwork_url=domain_model.artwork_url,
            preview_url=domain_model.preview_url,
            external_url=domain_model.external_url,
            popularity=domain_model.popularity,
            external_id=domain_model.external_id,
        )
