"""Domain exceptions raised by use cases and caught at the boundary layer.

Only exceptions that cross layers live here. The boundary (CLI, HTTP handlers)
maps each class to a transport-appropriate response.
"""


class TunelinkError(Exception):
    """Base class for all domain errors."""


class NotFoundError(TunelinkError):
    """A referenced account, playlist or track does not exist."""


class ForbiddenError(TunelinkError):
    """The caller is not the owning or authorized party."""


class ConflictError(TunelinkError):
    """A uniqueness invariant would be violated (duplicate membership, lost race)."""


class AlreadyExistsError(ConflictError):
    """The friendship edge being created already exists."""


class InvalidOperationError(TunelinkError):
    """The request is well-formed but not allowed (self-friendship, bad reorder)."""


class UnavailableError(TunelinkError):
    """The record store or the external catalog failed."""
