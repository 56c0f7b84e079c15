import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from bustravel.auth.dependencies import require_capability
from bustravel.auth.roles import Capability
from bustravel.bookings.booking_service import BookingService
from bustravel.bookings.schemas import BookingResponse, CreateBookingRequest, MessageResponse
from bustravel.cities.geofence import GeoPoint
from bustravel.clock import Clock, ensure_utc, get_clock
from bustravel.database import get_db
from bustravel.exceptions import BookingEngineError, to_http_exception
from bustravel.models import Booking, BookingStatus, User

router = APIRouter()


def booking_response(booking: Booking) -> BookingResponse:
    journey = booking.journey
    return BookingResponse(
        id=booking.id,
        journey_id=journey.id,
        origin_city=journey.origin_city.name,
        destination_city=journey.destination_city.name,
        departure_time=ensure_utc(journey.departure_time),
        seats=booking.seats,
        pickup_lat=booking.pickup_lat,
        pickup_lng=booking.pickup_lng,
        status=booking.status,
        created_at=ensure_utc(booking.created_at) if booking.created_at else None,
        cancelled_at=ensure_utc(booking.cancelled_at) if booking.cancelled_at else None
    )

# Traveller booking endpoints
@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: CreateBookingRequest,
    current_user: User = Depends(require_capability(Capability.BOOK)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Book seats on a journey"""
    booking_service = BookingService(db, clock=clock)

    try:
        booking = booking_service.create_booking(
            user=current_user,
            journey_id=request.journey_id,
            seats=request.seats,
            pickup=GeoPoint(request.pickup_lat, request.pickup_lng)
        )
    except BookingEngineError as e:
        raise to_http_exception(e)

    return booking_response(booking)

@router.get("/", response_model=List[BookingResponse])
def my_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    current_user: User = Depends(require_capability(Capability.LIST_OWN_BOOKINGS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List the current traveller's bookings"""
    bookings = BookingService(db, clock=clock).list_user_bookings(current_user, status=booking_status)
    return [booking_response(booking) for booking in bookings]

@router.delete("/{booking_id}", response_model=MessageResponse)
def cancel_booking(
    booking_id: uuid.UUID,
    current_user: User = Depends(require_capability(Capability.CANCEL_BOOKING)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Cancel one of the current traveller's bookings"""
    booking_service = BookingService(db, clock=clock)

    try:
        booking_service.cancel_booking(current_user, booking_id)
    except BookingEngineError as e:
        raise to_http_exception(e)

    return MessageResponse(message="Booking cancelled")
