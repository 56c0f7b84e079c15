"""
Booking Module

Seat reservations on scheduled journeys.

Key Components:
- ledger.py: per-journey capacity ledger (atomic reserve/release of seats)
- booking_service.py: booking lifecycle (create, cancel, administrative edits)
- router.py: FastAPI endpoints for travellers
- schemas.py: Pydantic models for booking requests and responses
"""

from .router import router
from .ledger import CapacityLedger
from .booking_service import BookingService
from .schemas import (
    CreateBookingRequest, AdminBookingUpdateRequest, BookingResponse, BookingInfo,
    PassengerPickupInfo, JourneyPassengersResponse
)

__all__ = [
    "router",
    "CapacityLedger",
    "BookingService",
    "CreateBookingRequest",
    "AdminBookingUpdateRequest",
    "BookingResponse",
    "BookingInfo",
    "PassengerPickupInfo",
    "JourneyPassengersResponse"
]
