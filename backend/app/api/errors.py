"""Translate booking errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from app.core.errors import (
    AmbiguousMatchError,
    AuthRequiredError,
    BackendTimeoutError,
    BookingValidationError,
    PartialWriteError,
)


def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, AuthRequiredError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, AmbiguousMatchError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "candidates": exc.codes},
        )
    if isinstance(exc, PartialWriteError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": "Some reservation details could not be saved",
                "errors": exc.errors,
                "written": exc.written,
            },
        )
    if isinstance(exc, BackendTimeoutError):
        return HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)
        )
    if isinstance(exc, LookupError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (BookingValidationError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected error"
    )
