"""Account and friendship domain entities."""

from datetime import datetime

from attrs import define, field, validators


@define(frozen=True, slots=True)
class Account:
    """An account as seen by the relationship graph.

    Account management is owned elsewhere; this core only reads accounts
    and annotates them with their public playlist count.
    """

    username: str = field(validator=validators.instance_of(str))
    display_name: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    public_playlist_count: int = 0
    id: int | None = None


@define(frozen=True, slots=True)
class FriendshipStatus:
    """Relationship between a viewer and another account."""

    is_friend: bool
    can_add_friend: bool


@define(frozen=True, slots=True)
class Friendship:
    """One directed friendship edge. Always stored with its reverse edge."""

    owner_id: int
    friend_id: int
    created_at: datetime | None = None
    id: int | None = None
