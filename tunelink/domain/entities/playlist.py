"""Playlist-related domain entities.

Pure playlist representations and related value objects with zero external dependencies.
"""

from datetime import datetime

from attrs import define, field, validators

from .track import Track


@define(frozen=True, slots=True)
class Playlist:
    """A playlist owned by exactly one account.

    Soft-deleted playlists are never returned by repositories; every
    operation on one behaves as if it did not exist.
    """

    owner_id: int
    name: str = field(validator=validators.instance_of(str))
    description: str | None = None
    is_public: bool = False
    created_at: datetime | None = None
    id: int | None = None

    def is_owned_by(self, account_id: int | None) -> bool:
        """Check whether the given account owns this playlist."""
        return account_id is not None and self.owner_id == account_id

    def is_visible_to(self, viewer_id: int | None) -> bool:
        """Public playlists are visible to everyone, private ones to the owner."""
        return self.is_public or self.is_owned_by(viewer_id)


@define(frozen=True, slots=True)
class PlaylistEntry:
    """Membership of one track in one playlist with its display order.

    Order values are unique within a playlist and may have gaps.
    """

    playlist_id: int
    track_id: int
    order: int
    added_at: datetime | None = None
    track: Track | None = None
    id: int | None = None


@define(frozen=True, slots=True)
class TrackOrder:
    """Requested order value for one track in a reorder operation."""

    track_id: int = field(validator=validators.instance_of(int))
    order: int = field(validator=validators.instance_of(int))
