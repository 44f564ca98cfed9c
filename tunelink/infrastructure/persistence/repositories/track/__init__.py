"""Track repositories package."""

from tunelink.infrastructure.persistence.repositories.track.core import TrackRepository
from tunelink.infrastructure.persistence.repositories.track.mapper import TrackMapper

__all__ = [
    "TrackMapper",
    "TrackRepository",
]
