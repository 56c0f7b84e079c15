"""
Error taxonomy for the booking engine.

Every expected business outcome is a subclass of ``BookingEngineError`` and
carries the HTTP status the routers translate it into. ``InternalInvariantViolation``
signals a bug (the ledger and the booking set diverged) and is surfaced as a
server fault.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class BookingEngineError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# NotFound
class NotFoundError(BookingEngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"

class JourneyNotFoundError(NotFoundError):
    default_message = "Journey not found"

class BookingNotFoundError(NotFoundError):
    default_message = "Booking not found"

class UserNotFoundError(NotFoundError):
    default_message = "User not found"



# Forbidden
class ForbiddenError(BookingEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not enough permissions"


# Conflict
class ConflictError(BookingEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict with current state"

class DuplicateBookingError(ConflictError):
    default_message = "You already have a booking for this journey"

class EmailAlreadyRegisteredError(ConflictError):
    default_message = "Email already registered"


# InvalidInput
class InvalidInputError(BookingEngineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"

class JourneyInPastError(InvalidInputError):
    default_message = "Journey has already departed"

class OutsidePickupRadiusError(InvalidInputError):
    default_message = "Pickup point is outside the allowed radius"

class InvalidCoordinateError(InvalidInputError):
    default_message = "Invalid coordinate"

class NotADriverError(InvalidInputError):
    default_message = "User is not a driver"


class InsufficientCapacityError(BookingEngineError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, available: int, message: Optional[str] = None):
        self.available = available
        super().__init__(message or f"Only {available} seats available")


class InternalInvariantViolation(BookingEngineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal invariant violated"


def to_http_exception(error: BookingEngineError) -> HTTPException:
    """Translate a booking engine error into the response the caller sees"""
    if isinstance(error, InternalInvariantViolation):
        logger.error("Invariant violation reached the API layer: %s", error.message)
        return HTTPException(
            status_code=error.status_code,
            detail="Internal server error"
        )
    return HTTPException(status_code=error.status_code, detail=error.message)
