import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from bustravel.auth.dependencies import require_capability
from bustravel.auth.roles import Capability
from bustravel.bookings.booking_service import BookingService
from bustravel.bookings.schemas import JourneyPassengersResponse, PassengerPickupInfo
from bustravel.clock import Clock, ensure_utc, get_clock
from bustravel.database import get_db
from bustravel.exceptions import BookingEngineError, to_http_exception
from bustravel.journeys.schemas import AvailableJourneyResponse, DriverJourneyResponse
from bustravel.journeys.service import JourneyService
from bustravel.models import User

router = APIRouter()
driver_router = APIRouter()


def passengers_response(viewer: User, journey_id: uuid.UUID, db: Session, clock: Clock) -> JourneyPassengersResponse:
    """Shared by the driver and admin passenger views"""
    try:
        journey, bookings = BookingService(db, clock=clock).journey_passengers(viewer, journey_id)
    except BookingEngineError as e:
        raise to_http_exception(e)

    return JourneyPassengersResponse(
        journey_id=journey.id,
        origin_city=journey.origin_city.name,
        destination_city=journey.destination_city.name,
        departure_time=ensure_utc(journey.departure_time),
        passengers=[
            PassengerPickupInfo(
                booking_id=booking.id,
                passenger_name=booking.user.name,
                seats=booking.seats,
                pickup_lat=booking.pickup_lat,
                pickup_lng=booking.pickup_lng
            )
            for booking in bookings
        ]
    )

# Public journey endpoints
@router.get("/", response_model=List[AvailableJourneyResponse])
def list_journeys(
    with_seats_only: bool = Query(False, description="Hide fully booked journeys"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List upcoming journeys available for booking"""
    journeys = JourneyService(db, clock=clock).list_upcoming(with_seats_only=with_seats_only)
    return [AvailableJourneyResponse.from_journey(journey) for journey in journeys]

@router.get("/{journey_id}", response_model=AvailableJourneyResponse)
def get_journey(
    journey_id: uuid.UUID,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Get journey details"""
    try:
        journey = JourneyService(db, clock=clock).get_journey(journey_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return AvailableJourneyResponse.from_journey(journey)

# Driver endpoints
@driver_router.get("/journeys", response_model=List[DriverJourneyResponse])
def my_journeys(
    current_user: User = Depends(require_capability(Capability.VIEW_ASSIGNED_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List journeys assigned to the logged-in driver"""
    journeys = JourneyService(db, clock=clock).driver_journeys(current_user)
    return [DriverJourneyResponse.from_journey(journey) for journey in journeys]

@driver_router.get("/journeys/{journey_id}/passengers", response_model=JourneyPassengersResponse)
def journey_passengers(
    journey_id: uuid.UUID,
    current_user: User = Depends(require_capability(Capability.VIEW_ASSIGNED_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Passenger pickup points for one of the driver's journeys"""
    return passengers_response(current_user, journey_id, db, clock)
