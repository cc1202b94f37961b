"""Error taxonomy shared by the backend and the device core."""

from __future__ import annotations


class SafeCircleError(Exception):
    """Base class for all safecircle errors."""


class ValidationError(SafeCircleError):
    """A required field is missing or malformed. Nothing was written."""


class UpstreamProviderError(SafeCircleError):
    """Payment or location provider was unreachable or returned an error."""


class PersistenceError(SafeCircleError):
    """A local or remote store write failed."""


class NotFoundError(SafeCircleError):
    """The addressed record does not exist."""


class ConflictError(SafeCircleError):
    """The write would break a uniqueness rule."""
