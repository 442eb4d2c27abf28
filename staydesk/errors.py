"""Booking error taxonomy and backend error translation.

Pure booking code raises :class:`BookingError` subclasses; the service layer
turns them into ``HTTPException`` with the carried status code.
"""

from fastapi import HTTPException, status


class BookingError(Exception):
    """Base class for recoverable booking-flow errors shown to the user."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationFailed(BookingError):
    """Required input missing or malformed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class DateConflict(BookingError):
    """The requested stay overlaps an active booking for the same room."""

    status_code = status.HTTP_409_CONFLICT


class PromotionNotEligible(BookingError):
    """The selected promotion cannot be applied to this stay."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidTransition(BookingError):
    """The booking is not in a state that allows the requested step."""

    status_code = status.HTTP_409_CONFLICT


GENERIC_BACKEND_ERROR = "Something went wrong while saving. Please try again."

# Ordered (substring, message) pairs matched case-insensitively against the
# driver error text. PostgreSQL and SQLite spellings are both listed.
_KNOWN_BACKEND_ERRORS: list[tuple[str, str]] = [
    ("permission denied", "You do not have permission to perform this action."),
    ("row-level security", "You do not have permission to perform this action."),
    ("violates foreign key constraint", "A referenced record no longer exists."),
    ("foreign key constraint failed", "A referenced record no longer exists."),
    ("duplicate key", "This record already exists."),
    ("unique constraint failed", "This record already exists."),
]


def friendly_backend_error(error: BaseException | str) -> str:
    """Translate a database/backend error into a user-facing message."""
    text = str(error).lower()
    for needle, message in _KNOWN_BACKEND_ERRORS:
        if needle in text:
            return message
    return GENERIC_BACKEND_ERROR
