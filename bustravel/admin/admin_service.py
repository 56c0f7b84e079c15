import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from bustravel.admin.cascade import CascadeCoordinator
from bustravel.auth.roles import Capability, ensure_capability
from bustravel.auth.service import UserService
from bustravel.bookings.ledger import CapacityLedger
from bustravel.cities.service import CityService
from bustravel.clock import Clock, ensure_utc, utcnow
from bustravel.database import transaction
from bustravel.exceptions import (
    ForbiddenError, InvalidInputError, JourneyInPastError, JourneyNotFoundError,
    NotADriverError, UserNotFoundError
)
from bustravel.journeys.schemas import CreateJourneyRequest, UpdateJourneyRequest
from bustravel.journeys.service import JourneyService
from bustravel.models import Journey, User, UserRole

logger = logging.getLogger(__name__)


class AdminManagementService:
    """Service for administrative management operations"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.ledger = CapacityLedger(db)
        self.cascade = CascadeCoordinator(db, self.ledger)
        self.journeys = JourneyService(db, clock=clock)

    # Journey Management
    def list_journeys(self, admin: User) -> List[Journey]:
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)
        return self.journeys.list_all()

    def create_journey(self, admin: User, request: CreateJourneyRequest) -> Journey:
        """Create a new journey"""
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)

        self._validate_route(request.origin_city_id, request.destination_city_id)
        departure_time = self._validate_departure(request.departure_time)

        journey = Journey(
            origin_city_id=request.origin_city_id,
            destination_city_id=request.destination_city_id,
            departure_time=departure_time,
            total_seats=request.total_seats,
            reserved_seats=0
        )
        with transaction(self.db):
            self.db.add(journey)

        logger.info("Journey %s created by admin %s", journey.id, admin.id)
        return self.journeys.get_journey(journey.id)

    def update_journey(self, admin: User, journey_id: uuid.UUID, request: UpdateJourneyRequest) -> Journey:
        """Update a journey; lowering capacity below the reserved seats is an override"""
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)
        journey = self._get_journey(journey_id)

        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        origin_id = update_data.get("origin_city_id", journey.origin_city_id)
        destination_id = update_data.get("destination_city_id", journey.destination_city_id)
        if "origin_city_id" in update_data or "destination_city_id" in update_data:
            self._validate_route(origin_id, destination_id)
        if "departure_time" in update_data:
            update_data["departure_time"] = self._validate_departure(update_data["departure_time"])

        with self.cascade.unit_of_work([journey.id]):
            for field, value in update_data.items():
                setattr(journey, field, value)

        journey = self.journeys.get_journey(journey_id)
        if journey.reserved_seats > journey.total_seats:
            logger.warning(
                "Journey %s capacity lowered to %s with %s seats reserved",
                journey.id, journey.total_seats, journey.reserved_seats
            )
        return journey

    def delete_journey(self, admin: User, journey_id: uuid.UUID) -> int:
        """Delete a journey together with all of its bookings"""
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)
        journey = self._get_journey(journey_id)

        with self.cascade.unit_of_work([journey_id]):
            removed = self.cascade.on_journey_deleted(journey_id)
            self.db.delete(journey)

        # Only once the deletion is committed; a rolled back delete keeps its lock
        self.ledger.discard(journey_id)
        return removed

    def assign_driver(self, admin: User, journey_id: uuid.UUID, driver_id: uuid.UUID) -> Journey:
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)
        with self.cascade.user_guard(driver_id):
            with self.cascade.unit_of_work():
                self.cascade.assign_driver(journey_id, driver_id)
        return self.journeys.get_journey(journey_id)

    def unassign_driver(self, admin: User, journey_id: uuid.UUID) -> Journey:
        ensure_capability(admin.role, Capability.MANAGE_JOURNEYS)
        with self.cascade.unit_of_work():
            self.cascade.on_driver_unassigned(journey_id)
        return self.journeys.get_journey(journey_id)

    # Driver Management
    def list_drivers(self, admin: User) -> List[User]:
        ensure_capability(admin.role, Capability.MANAGE_DRIVERS)
        return UserService.list_users(self.db, role=UserRole.DRIVER)

    def create_driver(self, admin: User, email: str, name: str, password: str) -> User:
        """Create a driver account"""
        ensure_capability(admin.role, Capability.MANAGE_DRIVERS)
        return UserService.create_user(self.db, email=email, name=name, password=password, role=UserRole.DRIVER)

    def delete_driver(self, admin: User, driver_id: uuid.UUID) -> Tuple[int, int]:
        ensure_capability(admin.role, Capability.MANAGE_DRIVERS)
        self._get_user(driver_id, "Driver not found")
        return self._delete_user(driver_id, drivers_only=True)

    # User Management
    def list_users(self, admin: User, role: Optional[UserRole] = None) -> List[User]:
        ensure_capability(admin.role, Capability.MANAGE_USERS)
        return UserService.list_users(self.db, role=role)

    def change_user_role(self, admin: User, user_id: uuid.UUID, new_role: UserRole) -> Tuple[User, int, int]:
        """Change a user's role and apply the cascades for the role being left.

        Returns (user, journeys unassigned, bookings removed).
        """
        ensure_capability(admin.role, Capability.MANAGE_USERS)
        if user_id == admin.id and new_role != UserRole.ADMIN:
            raise ForbiddenError("Administrators cannot change their own role")

        unassigned = removed = 0
        with self.cascade.user_unit_of_work(user_id, active_only=True) as user:
            old_role = user.role
            if old_role == UserRole.DRIVER and new_role != UserRole.DRIVER:
                unassigned = self.cascade.on_role_changed_away_from_driver(user.id)
            if old_role == UserRole.TRAVELLER and new_role != UserRole.TRAVELLER:
                removed = self.cascade.on_role_changed_away_from_traveller(user.id)
            user.role = new_role

        if old_role != new_role:
            logger.info("User %s role changed from %s to %s by admin %s", user_id, old_role.value, new_role.value, admin.id)
        return user, unassigned, removed

    def delete_user(self, admin: User, user_id: uuid.UUID) -> Tuple[int, int]:
        ensure_capability(admin.role, Capability.MANAGE_USERS)
        if user_id == admin.id:
            raise ForbiddenError("Administrators cannot delete their own account")
        return self._delete_user(user_id)

    def _delete_user(self, user_id: uuid.UUID, drivers_only: bool = False) -> Tuple[int, int]:
        with self.cascade.user_unit_of_work(user_id) as user:
            if drivers_only and user.role != UserRole.DRIVER:
                raise NotADriverError()
            unassigned, removed = self.cascade.on_user_deleted(user_id)
            self.db.delete(user)

        logger.info("User %s deleted (%s journeys unassigned, %s bookings removed)", user_id, unassigned, removed)
        return unassigned, removed

    def _get_journey(self, journey_id: uuid.UUID) -> Journey:
        journey = self.db.query(Journey).filter(Journey.id == journey_id).first()
        if journey is None:
            raise JourneyNotFoundError()
        return journey

    def _get_user(self, user_id: uuid.UUID, message: str = "User not found") -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UserNotFoundError(message)
        return user

    def _validate_route(self, origin_city_id: int, destination_city_id: int) -> None:
        if CityService.get_city_by_id(self.db, origin_city_id) is None:
            raise InvalidInputError("Invalid origin city")
        if CityService.get_city_by_id(self.db, destination_city_id) is None:
            raise InvalidInputError("Invalid destination city")
        if origin_city_id == destination_city_id:
            raise InvalidInputError("Origin and destination must be different")

    def _validate_departure(self, departure_time):
        departure_time = ensure_utc(departure_time)
        if departure_time <= self.clock():
            raise JourneyInPastError("Departure time must be in the future")
        return departure_time
