"""Import a track from the external catalog straight into a playlist."""

from attrs import define, field, validators

from tunelink.config import get_logger
from tunelink.domain.entities import PlaylistEntry
from tunelink.domain.repositories import ExternalCatalogProtocol, UnitOfWorkProtocol

from .manage_playlist_tracks import append_track, load_owned_playlist

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class ImportExternalTrackCommand:
    """Command for adding an external catalog track to a playlist."""

    playlist_id: int
    external_track_id: str = field(validator=validators.min_len(1))
    owner_id: int


@define(slots=True)
class ImportExternalTrackUseCase:
    """Resolve an external track to a local one, then append it to a playlist.

    Ownership is checked in a short read transaction first, so callers who
    may not write to the playlist never reach the catalog. The catalog is
    then queried with no transaction open. Resolution and the append share
    one transaction, which checks ownership again under the row lock: if the
    append fails a freshly created track is rolled back with it.
    """

    catalog: ExternalCatalogProtocol

    async def execute(
        self, command: ImportExternalTrackCommand, uow: UnitOfWorkProtocol
    ) -> PlaylistEntry:
        with logger.contextualize(
            operation="import_external_track",
            playlist_id=command.playlist_id,
            external_id=command.external_track_id,
        ):
            async with uow:
                await load_owned_playlist(
                    uow, command.playlist_id, command.owner_id, lock=False
                )

            external_track = await self.catalog.get_track(command.external_track_id)

            async with uow:
                track = await uow.get_track_identity_service().resolve(external_track)
                if track.id is None:
                    raise RuntimeError(
                        f"Resolved track for {command.external_track_id} has no ID"
                    )
                return await append_track(
                    uow, command.playlist_id, track.id, command.owner_id
                )
