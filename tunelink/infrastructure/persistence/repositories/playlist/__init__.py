"""Playlist repositories package.

Playlist metadata and ordered membership are separate repositories so use
cases depend only on the protocol they need.
"""

from tunelink.infrastructure.persistence.repositories.playlist.core import (
    PlaylistRepository,
)
from tunelink.infrastructure.persistence.repositories.playlist.entries import (
    PlaylistEntryRepository,
)
from tunelink.infrastructure.persistence.repositories.playlist.mapper import (
    PlaylistEntryMapper,
    PlaylistMapper,
)

__all__ = [
    "PlaylistEntryMapper",
    "PlaylistEntryRepository",
    "PlaylistMapper",
    "PlaylistRepository",
]
