"""
Booking error taxonomy and its mapping onto HTTP responses.
"""
from fastapi import HTTPException, status


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflicts=None):
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class StoreUnavailableError(BookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def booking_error_to_http(exc: BookingError) -> HTTPException:
    """
    Map a domain error into an HTTPException.
    Store failures never leak driver details to the caller.
    """
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(status_code=exc.status_code, detail="Database error")
    return HTTPException(status_code=exc.status_code, detail=exc.message)
