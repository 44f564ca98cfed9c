"""Repository layer for database operations with SQLAlchemy 2.0."""

# Re-export core components
from tunelink.infrastructure.persistence.repositories.account import (
    AccountMapper,
    AccountRepository,
)
from tunelink.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
    ModelMapper,
    filter_active,
)
from tunelink.infrastructure.persistence.repositories.friendship import (
    FriendshipRepository,
)
from tunelink.infrastructure.persistence.repositories.playlist import (
    PlaylistEntryMapper,
    PlaylistEntryRepository,
    PlaylistMapper,
    PlaylistRepository,
)
from tunelink.infrastructure.persistence.repositories.repo_decorator import db_operation
from tunelink.infrastructure.persistence.repositories.track import (
    TrackMapper,
    TrackRepository,
)

# Define public API
__all__ = [
    "AccountMapper",
    "AccountRepository",
    "BaseModelMapper",
    "BaseRepository",
    "FriendshipRepository",
    "ModelMapper",
    "PlaylistEntryMapper",
    "PlaylistEntryRepository",
    "PlaylistMapper",
    "PlaylistRepository",
    "TrackMapper",
    "TrackRepository",
    "db_operation",
    "filter_active",
]
