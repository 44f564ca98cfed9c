"""Track identity resolution service.

Maps external catalog tracks onto local track records. A local track is
created at most once per external ID, no matter how many callers import the
same external track concurrently.
"""

from sqlalchemy.exc import IntegrityError

from tunelink.config import get_logger
from tunelink.domain.entities import ExternalTrack, Track, parse_release_date
from tunelink.domain.exceptions import ConflictError
from tunelink.domain.repositories.interfaces import (
    TrackIdentityServiceProtocol,
    TrackRepositoryProtocol,
)

logger = get_logger(__name__)


def track_from_external(external_track: ExternalTrack) -> Track:
    """Map catalog fields onto a new local track.

    Artists are joined into one display string, duration goes from
    milliseconds to whole seconds and the release date keeps whatever
    precision the catalog reported.
    """
    duration_seconds = (
        external_track.duration_ms // 1000
        if external_track.duration_ms is not None
        else None
    )
    return Track(
        title=external_track.title,
        artist=", ".join(external_track.artists),
        album=external_track.album,
        duration_seconds=duration_seconds,
        release_date=parse_release_date(external_track.release_date),
        artwork_url=external_track.artwork_url or None,
        preview_url=external_track.preview_url or None,
        external_url=external_track.external_url or None,
        popularity=external_track.popularity,
        external_id=external_track.external_id,
    )


class TrackIdentityResolver(TrackIdentityServiceProtocol):
    """Resolves external catalog tracks to local tracks.

    Existing tracks are returned unchanged; reimporting never updates them.
    The unique constraint on ``tracks.external_id`` is the only guard against
    duplicates: a losing racer's insert fails inside its savepoint and the
    winner's row is read back instead.
    """

    def __init__(self, track_repo: TrackRepositoryProtocol) -> None:
        """Initialize with the track repository of the current unit of work."""
        self.track_repo = track_repo

    async def resolve(self, external_track: ExternalTrack) -> Track:
        external_id = external_track.external_id

        with logger.contextualize(operation="resolve_track", external_id=external_id):
            existing = await self.track_repo.find_by_external_id(external_id)
            if existing is not None:
                logger.debug(f"External track already resolved to {existing.id}")
                return existing

            try:
                created = await self.track_repo.create_track(
                    track_from_external(external_track)
                )
            except IntegrityError as e:
                # Another writer inserted the same external ID first
                winner = await self.track_repo.find_by_external_id(external_id)
                if winner is None:
                    raise ConflictError(
                        f"Track for external ID {external_id} could not be created or found"
                    ) from e
                logger.info(f"Lost import race; using existing track {winner.id}")
                return winner

            logger.info(f"Imported external track as {created.id}")
            return created
