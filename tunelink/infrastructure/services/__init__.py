"""Infrastructure services backed by repositories."""

from tunelink.infrastructure.services.track_identity_resolver import (
    TrackIdentityResolver,
    track_from_external,
)

__all__ = ["TrackIdentityResolver", "track_from_external"]
