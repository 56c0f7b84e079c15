import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from bustravel.admin.admin_service import AdminManagementService
from bustravel.admin.schemas import (
    CascadeResult, CreateDriverRequest, DriverResponse, RoleUpdateRequest, UserSummary
)
from bustravel.auth.dependencies import require_capability
from bustravel.auth.roles import Capability
from bustravel.bookings.booking_service import BookingService
from bustravel.bookings.router import booking_response
from bustravel.bookings.schemas import (
    AdminBookingUpdateRequest, BookingInfo, BookingResponse, JourneyPassengersResponse
)
from bustravel.cities.geofence import GeoPoint
from bustravel.clock import Clock, ensure_utc, get_clock
from bustravel.database import get_db
from bustravel.exceptions import BookingEngineError, InvalidInputError, to_http_exception
from bustravel.journeys.router import passengers_response
from bustravel.journeys.schemas import (
    AssignDriverRequest, CreateJourneyRequest, JourneyResponse, UpdateJourneyRequest
)
from bustravel.models import BookingStatus, User, UserRole

router = APIRouter()

# ============ Journey Management ============

@router.get("/journeys", response_model=List[JourneyResponse])
def list_journeys(
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List all journeys with booked seats and drivers"""
    journeys = AdminManagementService(db, clock=clock).list_journeys(admin)
    return [JourneyResponse.from_journey(journey) for journey in journeys]

@router.post("/journeys", response_model=JourneyResponse, status_code=status.HTTP_201_CREATED)
def create_journey(
    request: CreateJourneyRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Create a new journey"""
    try:
        journey = AdminManagementService(db, clock=clock).create_journey(admin, request)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return JourneyResponse.from_journey(journey)

@router.put("/journeys/{journey_id}", response_model=JourneyResponse)
def update_journey(
    journey_id: uuid.UUID,
    request: UpdateJourneyRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Update a journey"""
    try:
        journey = AdminManagementService(db, clock=clock).update_journey(admin, journey_id, request)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return JourneyResponse.from_journey(journey)

@router.delete("/journeys/{journey_id}", response_model=CascadeResult)
def delete_journey(
    journey_id: uuid.UUID,
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Delete a journey and all of its bookings"""
    try:
        removed = AdminManagementService(db, clock=clock).delete_journey(admin, journey_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return CascadeResult(message="Journey deleted", bookings_removed=removed)

@router.post("/journeys/{journey_id}/assign-driver", response_model=JourneyResponse)
def assign_driver(
    journey_id: uuid.UUID,
    request: AssignDriverRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Assign a driver to a journey"""
    try:
        journey = AdminManagementService(db, clock=clock).assign_driver(admin, journey_id, request.driver_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return JourneyResponse.from_journey(journey)

@router.delete("/journeys/{journey_id}/driver", response_model=JourneyResponse)
def unassign_driver(
    journey_id: uuid.UUID,
    admin: User = Depends(require_capability(Capability.MANAGE_JOURNEYS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Remove the driver from a journey"""
    try:
        journey = AdminManagementService(db, clock=clock).unassign_driver(admin, journey_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return JourneyResponse.from_journey(journey)

@router.get("/journeys/{journey_id}/passengers", response_model=JourneyPassengersResponse)
def journey_passengers(
    journey_id: uuid.UUID,
    admin: User = Depends(require_capability(Capability.VIEW_PASSENGER_PICKUPS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Passenger pickup points for any journey"""
    return passengers_response(admin, journey_id, db, clock)

# ============ Driver Management ============

@router.get("/drivers", response_model=List[DriverResponse])
def list_drivers(
    admin: User = Depends(require_capability(Capability.MANAGE_DRIVERS)),
    db: Session = Depends(get_db)
):
    """List all drivers"""
    return AdminManagementService(db).list_drivers(admin)

@router.post("/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
def create_driver(
    request: CreateDriverRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_DRIVERS)),
    db: Session = Depends(get_db)
):
    """Create a new driver account"""
    try:
        return AdminManagementService(db).create_driver(
            admin, email=request.email, name=request.name, password=request.password
        )
    except BookingEngineError as e:
        raise to_http_exception(e)

@router.delete("/drivers/{driver_id}", response_model=CascadeResult)
def delete_driver(
    driver_id: uuid.UUID,
    admin: User = Depends(require_capability(Capability.MANAGE_DRIVERS)),
    db: Session = Depends(get_db)
):
    """Delete a driver account, unassigning them from their journeys"""
    try:
        unassigned, removed = AdminManagementService(db).delete_driver(admin, driver_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return CascadeResult(message="Driver deleted", journeys_unassigned=unassigned, bookings_removed=removed)

# ============ User Management ============

@router.get("/users", response_model=List[UserSummary])
def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    admin: User = Depends(require_capability(Capability.MANAGE_USERS)),
    db: Session = Depends(get_db)
):
    """List user accounts"""
    return AdminManagementService(db).list_users(admin, role=role)

@router.put("/users/{user_id}/role", response_model=CascadeResult)
def change_user_role(
    user_id: uuid.UUID,
    request: RoleUpdateRequest,
    admin: User = Depends(require_capability(Capability.MANAGE_USERS)),
    db: Session = Depends(get_db)
):
    """Change a user's role; leaving driver or traveller cascades"""
    try:
        user, unassigned, removed = AdminManagementService(db).change_user_role(admin, user_id, request.role)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return CascadeResult(
        message=f"Role set to {user.role.value}",
        journeys_unassigned=unassigned,
        bookings_removed=removed
    )

@router.delete("/users/{user_id}", response_model=CascadeResult)
def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_capability(Capability.MANAGE_USERS)),
    db: Session = Depends(get_db)
):
    """Delete a user account with its bookings and driver assignments"""
    try:
        unassigned, removed = AdminManagementService(db).delete_user(admin, user_id)
    except BookingEngineError as e:
        raise to_http_exception(e)
    return CascadeResult(message="User deleted", journeys_unassigned=unassigned, bookings_removed=removed)

# ============ Bookings ============

@router.get("/bookings", response_model=List[BookingInfo])
def list_all_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    journey_id: Optional[uuid.UUID] = Query(None, description="Filter by journey"),
    admin: User = Depends(require_capability(Capability.VIEW_ALL_BOOKINGS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List all bookings"""
    bookings = BookingService(db, clock=clock).list_all_bookings(admin, status=booking_status, journey_id=journey_id)
    return [
        BookingInfo(
            id=booking.id,
            journey_id=booking.journey_id,
            user_id=booking.user_id,
            user_name=booking.user.name,
            user_email=booking.user.email,
            seats=booking.seats,
            pickup_lat=booking.pickup_lat,
            pickup_lng=booking.pickup_lng,
            status=booking.status,
            created_at=ensure_utc(booking.created_at) if booking.created_at else None
        )
        for booking in bookings
    ]

@router.put("/bookings/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: uuid.UUID,
    request: AdminBookingUpdateRequest,
    admin: User = Depends(require_capability(Capability.OVERRIDE_BOOKINGS)),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Edit a booking without capacity or pickup radius checks"""
    pickup = None
    try:
        if (request.pickup_lat is None) != (request.pickup_lng is None):
            raise InvalidInputError("pickup_lat and pickup_lng must be given together")
        if request.pickup_lat is not None:
            pickup = GeoPoint(request.pickup_lat, request.pickup_lng)

        booking = BookingService(db, clock=clock).admin_update_booking(
            admin, booking_id, seats=request.seats, pickup=pickup
        )
    except BookingEngineError as e:
        raise to_http_exception(e)

    return booking_response(booking)
