"""Domain errors raised by the service layer.

Routers translate these into HTTP responses (see lms.api.errors); the
services themselves know nothing about HTTP.
"""

from __future__ import annotations


class LmsError(Exception):
    """Base class for expected, request-scoped failures."""


class ValidationError(LmsError, ValueError):
    """Malformed input: missing fields, out-of-range values, bad quiz shape."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(LmsError):
    pass


class AccessDenied(LmsError):
    pass


class PreconditionFailed(LmsError):
    """The target exists but is not in a state that allows the operation."""


class AlreadyExists(LmsError):
    pass


class ConcurrentModification(LmsError):
    """Another request updated the record between our read and our write."""
