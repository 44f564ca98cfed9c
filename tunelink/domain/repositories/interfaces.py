"""Domain repository interfaces following Clean Architecture principles.

These interfaces define the contracts for data access without depending on
infrastructure implementations, following the dependency inversion principle.
"""

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Protocol, Self

if TYPE_CHECKING:
    from tunelink.domain.entities import (
        Account,
        ExternalTrack,
        Playlist,
        PlaylistEntry,
        Track,
    )


class AccountRepositoryProtocol(Protocol):
    """Account lookup collaborator."""

    def get_account(self, account_id: int) -> Awaitable["Account | None"]:
        """Get an account (active or not) by ID, or None if it does not exist."""
        ...

    def create_account(
        self, username: str, display_name: str | None = None, is_active: bool = True
    ) -> Awaitable["Account"]:
        """Create an account."""
        ...

    def get_accounts(self, account_ids: list[int]) -> Awaitable[dict[int, "Account"]]:
        """Batch lookup keyed by ID; missing accounts are absent from the result."""
        ...

    def get_public_playlist_counts(
        self, account_ids: list[int]
    ) -> Awaitable[dict[int, int]]:
        """Count public, non-deleted playlists per account.

        Accounts without public playlists are present with a count of 0.
        """
        ...

    def find_recommendation_candidates(
        self, owner_id: int, limit: int
    ) -> Awaitable[list["Account"]]:
        """Find active accounts that are neither the owner nor already friends
        and own at least one public playlist, newest first."""
        ...


class FriendshipRepositoryProtocol(Protocol):
    """Repository interface for symmetric friendship edges."""

    def edge_exists(self, owner_id: int, friend_id: int) -> Awaitable[bool]:
        """Check whether the directed edge owner -> friend exists."""
        ...

    def add_edge_pair(self, owner_id: int, friend_id: int) -> Awaitable[None]:
        """Insert both directed edges atomically.

        Raises the store's integrity error if either edge already exists;
        in that case neither edge is written.
        """
        ...

    def remove_edge_pair(self, owner_id: int, friend_id: int) -> Awaitable[int]:
        """Delete both directed edges, returning the number of rows removed."""
        ...

    def list_friend_ids(self, owner_id: int) -> Awaitable[list[int]]:
        """List friend IDs in edge creation order."""
        ...


class PlaylistRepositoryProtocol(Protocol):
    """Repository interface for playlist persistence operations."""

    def get_playlist(
        self, playlist_id: int, for_update: bool = False
    ) -> Awaitable["Playlist | None"]:
        """Get an active playlist, optionally locking its row for the transaction."""
        ...

    def create_playlist(self, playlist: "Playlist") -> Awaitable["Playlist"]:
        """Save a new playlist."""
        ...

    def update_playlist(
        self, playlist_id: int, **changes: object
    ) -> Awaitable["Playlist | None"]:
        """Overwrite columns of an active playlist; None if it is missing or deleted."""
        ...

    def soft_delete_playlist(self, playlist_id: int) -> Awaitable[int]:
        """Mark a playlist deleted."""
        ...

    def list_visible_playlists(
        self, viewer_id: int | None
    ) -> Awaitable[list["Playlist"]]:
        """List active playlists that are public or owned by the viewer."""
        ...


class PlaylistEntryRepositoryProtocol(Protocol):
    """Repository interface for ordered playlist membership."""

    def has_entry(self, playlist_id: int, track_id: int) -> Awaitable[bool]:
        """Check whether the track is a member of the playlist."""
        ...

    def append_entry(
        self, playlist_id: int, track_id: int
    ) -> Awaitable["PlaylistEntry"]:
        """Insert an entry after the current maximum order in one statement.

        Raises the store's integrity error when the membership or the
        computed order value already exists; nothing is written in that case.
        """
        ...

    def remove_entry(self, playlist_id: int, track_id: int) -> Awaitable[int]:
        """Delete an entry, returning the number of rows removed."""
        ...

    def get_entries(
        self, playlist_id: int, include_tracks: bool = True
    ) -> Awaitable[list["PlaylistEntry"]]:
        """List entries ascending by order."""
        ...

    def apply_orders(
        self, playlist_id: int, orders: dict[int, int]
    ) -> Awaitable[int]:
        """Set new order values for the given track IDs, returning rows updated."""
        ...


class TrackRepositoryProtocol(Protocol):
    """Repository interface for track persistence operations."""

    def get_track(self, track_id: int) -> Awaitable["Track | None"]:
        """Get an active track by ID."""
        ...

    def find_by_external_id(self, external_id: str) -> Awaitable["Track | None"]:
        """Find the local track mapped to an external catalog ID."""
        ...

    def create_track(self, track: "Track") -> Awaitable["Track"]:
        """Insert a track inside its own savepoint.

        Raises the store's integrity error if the external ID is taken.
        """
        ...


class TrackIdentityServiceProtocol(Protocol):
    """Service interface for external track identity resolution."""

    def resolve(self, external_track: "ExternalTrack") -> Awaitable["Track"]:
        """Return the local track for an external track, creating it at most once."""
        ...


class ExternalCatalogProtocol(Protocol):
    """External catalog client collaborator."""

    def get_track(self, external_id: str) -> Awaitable["ExternalTrack"]:
        """Fetch one track description by its external ID."""
        ...


class UnitOfWorkProtocol(Protocol):
    """Unit of Work interface for transaction boundary management.

    All repositories handed out by one unit of work share its transaction.
    """

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Commit on success, rollback on exception."""
        ...

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def get_account_repository(self) -> AccountRepositoryProtocol:
        """Get account repository."""
        ...

    def get_friendship_repository(self) -> FriendshipRepositoryProtocol:
        """Get friendship repository."""
        ...

    def get_playlist_repository(self) -> PlaylistRepositoryProtocol:
        """Get playlist repository."""
        ...

    def get_playlist_entry_repository(self) -> PlaylistEntryRepositoryProtocol:
        """Get playlist entry repository."""
        ...

    def get_track_repository(self) -> TrackRepositoryProtocol:
        """Get track repository."""
        ...

    def get_track_identity_service(self) -> TrackIdentityServiceProtocol:
        """Get track identity resolver bound to this transaction."""
        ...
