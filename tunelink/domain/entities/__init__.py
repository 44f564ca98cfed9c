"""Core domain entities representing social music concepts."""

# Account and relationship entities
from .account import Account, Friendship, FriendshipStatus

# Playlist-related entities
from .playlist import Playlist, PlaylistEntry, TrackOrder

# Shared utilities
from .shared import ensure_utc, parse_release_date

# Track-related entities
from .track import ExternalTrack, Track

__all__ = [
    # Account entities
    "Account",
    "Friendship",
    "FriendshipStatus",
    # Track entities
    "ExternalTrack",
    "Track",
    # Playlist entities
    "Playlist",
    "PlaylistEntry",
    "TrackOrder",
    # Shared utilities
    "ensure_utc",
    "parse_release_date",
]
