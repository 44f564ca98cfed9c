"""Domain repository interfaces following Clean Architecture principles.

These interfaces define the contracts for data access without depending on
infrastructure implementations, following the dependency inversion principle.
"""

from .interfaces import (
    AccountRepositoryProtocol,
    ExternalCatalogProtocol,
    FriendshipRepositoryProtocol,
    PlaylistEntryRepositoryProtocol,
    PlaylistRepositoryProtocol,
    TrackIdentityServiceProtocol,
    TrackRepositoryProtocol,
    UnitOfWorkProtocol,
)

__all__ = [
    "AccountRepositoryProtocol",
    "ExternalCatalogProtocol",
    "FriendshipRepositoryProtocol",
    "PlaylistEntryRepositoryProtocol",
    "PlaylistRepositoryProtocol",
    "TrackIdentityServiceProtocol",
    "TrackRepositoryProtocol",
    "UnitOfWorkProtocol",
]
