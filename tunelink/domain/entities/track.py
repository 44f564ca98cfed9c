"""Track-related domain entities.

Pure track representations with zero infrastructure dependencies.
"""

from datetime import date

import attrs
from attrs import define, field, validators


@define(frozen=True, slots=True)
class Track:
    """Immutable catalog track owned by this system.

    A track may carry an external catalog identifier; when present it is
    unique across all local tracks.
    """

    title: str = field(validator=validators.instance_of(str))
    artist: str = field(validator=validators.instance_of(str))
    album: str | None = field(default=None)
    duration_seconds: int | None = field(default=None)
    release_date: date | None = field(default=None)
    artwork_url: str | None = field(default=None)
    preview_url: str | None = field(default=None)
    external_url: str | None = field(default=None)
    popularity: int | None = field(default=None)
    external_id: str | None = field(default=None)

    # The internal database ID
    id: int | None = field(default=None)

    def with_id(self, db_id: int) -> "Track":
        """Set the internal database ID for this track."""
        if not isinstance(db_id, int) or db_id <= 0:
            raise ValueError(
                f"Invalid database ID: {db_id}. Must be a positive integer.",
            )
        return attrs.evolve(self, id=db_id)


@define(frozen=True, slots=True)
class ExternalTrack:
    """Track description as fetched from the external catalog.

    Field shapes follow the catalog: a list of artist names and a duration
    in milliseconds. Release date is kept as the catalog's raw string.
    """

    external_id: str = field(validator=validators.min_len(1))
    title: str = field(validator=validators.instance_of(str))
    artists: list[str] = field(
        factory=list,
        validator=validators.deep_iterable(
            member_validator=validators.instance_of(str),
        ),
    )
    album: str | None = None
    duration_ms: int | None = None
    release_date: str | None = None
    artwork_url: str | None = None
    preview_url: str | None = None
    external_url: str | None = None
    popularity: int | None = None
