"""Playlist use cases: ordered, deduplicated track membership.

Every mutating operation loads the playlist row with ``FOR UPDATE`` before
touching its entries, so concurrent writers on one playlist are serialised
by the database. Order values are assigned by a single INSERT ... SELECT and
protected by a unique constraint; a writer that still loses a race retries a
bounded number of times before surfacing a ConflictError.
"""

from attrs import define, field, validators
from sqlalchemy.exc import IntegrityError

from tunelink.config import get_logger, settings
from tunelink.domain.entities import Playlist, PlaylistEntry, TrackOrder
from tunelink.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)
from tunelink.domain.repositories import UnitOfWorkProtocol

logger = get_logger(__name__)


# -------------------------------------------------------------------------
# COMMANDS
# -------------------------------------------------------------------------


@define(frozen=True, slots=True)
class AddTrackCommand:
    """Command for appending an existing local track to a playlist."""

    playlist_id: int
    track_id: int
    owner_id: int


@define(frozen=True, slots=True)
class RemoveTrackCommand:
    playlist_id: int
    track_id: int
    owner_id: int


@define(frozen=True, slots=True)
class ReorderTracksCommand:
    """Command for assigning new order values to some or all playlist tracks.

    The payload itself must be consistent: at least one item, each track
    named once, each order value used once, no negative order values.
    """

    playlist_id: int
    owner_id: int
    orders: tuple[TrackOrder, ...] = field(converter=tuple)

    def __attrs_post_init__(self) -> None:
        if not self.orders:
            raise InvalidOperationError("Reorder payload is empty")

        track_ids = [item.track_id for item in self.orders]
        if len(set(track_ids)) != len(track_ids):
            raise InvalidOperationError("Reorder payload names a track more than once")

        values = [item.order for item in self.orders]
        if len(set(values)) != len(values):
            raise InvalidOperationError("Reorder payload repeats an order value")

        if any(value < 0 for value in values):
            raise InvalidOperationError("Order values must not be negative")


@define(frozen=True, slots=True)
class ListPlaylistTracksCommand:
    """Command for listing a playlist's entries in display order.

    Anonymous viewers (``viewer_id=None``) can only see public playlists.
    """

    playlist_id: int
    viewer_id: int | None = None


@define(frozen=True, slots=True)
class CreatePlaylistCommand:
    owner_id: int
    name: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    description: str | None = None
    is_public: bool = False


@define(frozen=True, slots=True)
class UpdatePlaylistCommand:
    """Command for changing playlist details. Fields left as None are kept."""

    playlist_id: int
    owner_id: int
    name: str | None = field(
        default=None,
        validator=validators.optional(
            [validators.instance_of(str), validators.min_len(1)]
        ),
    )
    description: str | None = None
    is_public: bool | None = None

    def changes(self) -> dict[str, object]:
        fields = {
            "name": self.name,
            "description": self.description,
            "is_public": self.is_public,
        }
        return {key: value for key, value in fields.items() if value is not None}


@define(frozen=True, slots=True)
class DeletePlaylistCommand:
    playlist_id: int
    owner_id: int


@define(frozen=True, slots=True)
class ListVisiblePlaylistsCommand:
    viewer_id: int | None = None


# -------------------------------------------------------------------------
# SHARED STEPS
# -------------------------------------------------------------------------


async def load_owned_playlist(
    uow: UnitOfWorkProtocol, playlist_id: int, owner_id: int, lock: bool = True
) -> Playlist:
    """Load an active playlist and check ownership.

    With ``lock`` the row stays locked until the transaction ends.
    """
    playlist = await uow.get_playlist_repository().get_playlist(
        playlist_id, for_update=lock
    )
    if playlist is None:
        raise NotFoundError(f"Playlist {playlist_id} not found")
    if not playlist.is_owned_by(owner_id):
        raise ForbiddenError(f"Account {owner_id} does not own playlist {playlist_id}")
    return playlist


async def append_track(
    uow: UnitOfWorkProtocol, playlist_id: int, track_id: int, owner_id: int
) -> PlaylistEntry:
    """Append a track to an owned playlist inside the caller's transaction.

    Shared by AddTrackUseCase and ImportExternalTrackUseCase.
    """
    await load_owned_playlist(uow, playlist_id, owner_id)

    if await uow.get_track_repository().get_track(track_id) is None:
        raise NotFoundError(f"Track {track_id} not found")

    entries = uow.get_playlist_entry_repository()
    if await entries.has_entry(playlist_id, track_id):
        raise ConflictError(f"Track {track_id} is already in playlist {playlist_id}")

    retries = settings.consistency.write_conflict_retries
    last_error: IntegrityError | None = None
    for attempt in range(1, retries + 1):
        try:
            entry = await entries.append_entry(playlist_id, track_id)
        except IntegrityError as e:
            if await entries.has_entry(playlist_id, track_id):
                raise ConflictError(
                    f"Track {track_id} is already in playlist {playlist_id}"
                ) from e
            # Another writer took the same order value; recompute and try again
            logger.warning(f"Order value conflict, attempt {attempt}/{retries}")
            last_error = e
            continue

        logger.info(f"Added track at order {entry.order}")
        return entry

    raise ConflictError(
        f"Could not add track {track_id} to playlist {playlist_id} after {retries} attempts"
    ) from last_error


# -------------------------------------------------------------------------
# USE CASES
# -------------------------------------------------------------------------


@define(slots=True)
class AddTrackUseCase:
    """Append a local track at the end of a playlist."""

    async def execute(
        self, command: AddTrackCommand, uow: UnitOfWorkProtocol
    ) -> PlaylistEntry:
        with logger.contextualize(
            operation="add_track",
            playlist_id=command.playlist_id,
            track_id=command.track_id,
        ):
            async with uow:
                return await append_track(
                    uow, command.playlist_id, command.track_id, command.owner_id
                )


@define(slots=True)
class RemoveTrackUseCase:
    """Remove a track from a playlist; remaining order values are kept as-is."""

    async def execute(
        self, command: RemoveTrackCommand, uow: UnitOfWorkProtocol
    ) -> bool:
        with logger.contextualize(
            operation="remove_track",
            playlist_id=command.playlist_id,
            track_id=command.track_id,
        ):
            async with uow:
                await load_owned_playlist(uow, command.playlist_id, command.owner_id)
                removed = await uow.get_playlist_entry_repository().remove_entry(
                    command.playlist_id, command.track_id
                )
                logger.info(f"Removed {removed} entries")
                return removed > 0


@define(slots=True)
class ReorderTracksUseCase:
    """Apply caller-supplied order values to playlist entries.

    Tracks that are not in the playlist are ignored. Entries not named keep
    their order values, and a new value may not collide with one of them.
    """

    async def execute(
        self, command: ReorderTracksCommand, uow: UnitOfWorkProtocol
    ) -> list[PlaylistEntry]:
        with logger.contextualize(
            operation="reorder_tracks",
            playlist_id=command.playlist_id,
            item_count=len(command.orders),
        ):
            async with uow:
                await load_owned_playlist(uow, command.playlist_id, command.owner_id)

                entries_repo = uow.get_playlist_entry_repository()
                current = {
                    entry.track_id: entry.order
                    for entry in await entries_repo.get_entries(
                        command.playlist_id, include_tracks=False
                    )
                }

                requested = {
                    item.track_id: item.order
                    for item in command.orders
                    if item.track_id in current
                }
                if not requested:
                    logger.info("No playlist members named; nothing to reorder")
                    return await entries_repo.get_entries(command.playlist_id)

                untouched = {
                    order
                    for track_id, order in current.items()
                    if track_id not in requested
                }
                if clashes := sorted(set(requested.values()) & untouched):
                    raise InvalidOperationError(
                        f"Order values {clashes} are already used by other tracks"
                    )

                try:
                    await entries_repo.apply_orders(command.playlist_id, requested)
                except IntegrityError as e:
                    raise ConflictError(
                        "Playlist changed while reordering; order values collided"
                    ) from e

                return await entries_repo.get_entries(command.playlist_id)


@define(slots=True)
class ListPlaylistTracksUseCase:
    """Entries of a visible playlist in ascending order, each with its track."""

    async def execute(
        self, command: ListPlaylistTracksCommand, uow: UnitOfWorkProtocol
    ) -> list[PlaylistEntry]:
        async with uow:
            playlist = await uow.get_playlist_repository().get_playlist(
                command.playlist_id
            )
            if playlist is None:
                raise NotFoundError(f"Playlist {command.playlist_id} not found")
            if not playlist.is_visible_to(command.viewer_id):
                raise ForbiddenError(f"Playlist {command.playlist_id} is private")

            return await uow.get_playlist_entry_repository().get_entries(
                command.playlist_id
            )


@define(slots=True)
class CreatePlaylistUseCase:
    async def execute(
        self, command: CreatePlaylistCommand, uow: UnitOfWorkProtocol
    ) -> Playlist:
        with logger.contextualize(operation="create_playlist", owner_id=command.owner_id):
            async with uow:
                owner = await uow.get_account_repository().get_account(command.owner_id)
                if owner is None or not owner.is_active:
                    raise NotFoundError(f"Account {command.owner_id} not found")

                return await uow.get_playlist_repository().create_playlist(
                    Playlist(
                        owner_id=command.owner_id,
                        name=command.name,
                        description=command.description,
                        is_public=command.is_public,
                    )
                )


@define(slots=True)
class UpdatePlaylistUseCase:
    """Rename a playlist, change its description or flip its visibility.

    Making a playlist private hides its tracks from everyone but the owner
    and stops it counting towards friend recommendations.
    """

    async def execute(
        self, command: UpdatePlaylistCommand, uow: UnitOfWorkProtocol
    ) -> Playlist:
        with logger.contextualize(
            operation="update_playlist", playlist_id=command.playlist_id
        ):
            async with uow:
                playlist = await load_owned_playlist(
                    uow, command.playlist_id, command.owner_id
                )
                changes = command.changes()
                if not changes:
                    return playlist

                updated = await uow.get_playlist_repository().update_playlist(
                    command.playlist_id, **changes
                )
                if updated is None:
                    raise NotFoundError(f"Playlist {command.playlist_id} not found")
                logger.info(f"Playlist updated: {sorted(changes)}")
                return updated


@define(slots=True)
class DeletePlaylistUseCase:
    """Soft-delete a playlist. Its entries become unreachable with it."""

    async def execute(
        self, command: DeletePlaylistCommand, uow: UnitOfWorkProtocol
    ) -> None:
        with logger.contextualize(
            operation="delete_playlist", playlist_id=command.playlist_id
        ):
            async with uow:
                await load_owned_playlist(uow, command.playlist_id, command.owner_id)
                await uow.get_playlist_repository().soft_delete_playlist(
                    command.playlist_id
                )
                logger.info("Playlist deleted")


@define(slots=True)
class ListVisiblePlaylistsUseCase:
    async def execute(
        self, command: ListVisiblePlaylistsCommand, uow: UnitOfWorkProtocol
    ) -> list[Playlist]:
        async with uow:
            return await uow.get_playlist_repository().list_visible_playlists(
                command.viewer_id
            )
