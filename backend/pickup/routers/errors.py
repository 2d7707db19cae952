"""
Translation of domain errors to HTTP responses, shared by every router.
Add new error kinds to STATUS_BY_ERROR instead of mapping them per route.
"""
from __future__ import annotations

from fastapi import HTTPException, status

from ..domain.errors import (
    BookingError,
    BookingsClosedError,
    CapacityExceededError,
    DuplicatePhoneError,
    EventPastError,
    ForbiddenError,
    InvalidEventConfigError,
    InvalidOrganisationError,
    InvalidSlotError,
    NotFoundError,
    SlugTakenError,
)
from ..utils.ids import parse_identifier

STATUS_BY_ERROR: dict[type[BookingError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    BookingsClosedError: status.HTTP_403_FORBIDDEN,
    EventPastError: status.HTTP_403_FORBIDDEN,
    InvalidSlotError: status.HTTP_400_BAD_REQUEST,
    DuplicatePhoneError: status.HTTP_409_CONFLICT,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    InvalidEventConfigError: status.HTTP_400_BAD_REQUEST,
    InvalidOrganisationError: status.HTTP_400_BAD_REQUEST,
    SlugTakenError: status.HTTP_409_CONFLICT,
}


def to_http(exc: BookingError) -> HTTPException:
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail={"code": exc.code, "message": exc.message})


def internal_error(message: str = "Unexpected error. Please try again.") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "internal_error", "message": message},
    )


def parse_id(raw: str, *, label: str) -> int:
    try:
        return parse_identifier(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_id", "message": f"Invalid {label}."},
        )
