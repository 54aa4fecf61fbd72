"""Translate service-layer errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from lms.services.errors import (
    AccessDenied,
    AlreadyExists,
    ConcurrentModification,
    LmsError,
    NotFoundError,
    PreconditionFailed,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[LmsError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (PreconditionFailed, status.HTTP_409_CONFLICT),
    (AlreadyExists, status.HTTP_409_CONFLICT),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
)


def to_http_exception(exc: LmsError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error"
    )
