import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bustravel.auth.roles import Capability, ensure_capability
from bustravel.bookings.ledger import CapacityLedger
from bustravel.cities.geofence import GeoPoint, validate_point
from bustravel.cities.service import CityService
from bustravel.clock import Clock, ensure_utc, utcnow
from bustravel.database import transaction
from bustravel.exceptions import (
    BookingNotFoundError, ConflictError, DuplicateBookingError, ForbiddenError,
    InvalidInputError, JourneyInPastError, JourneyNotFoundError, OutsidePickupRadiusError, UserNotFoundError
)
from bustravel.locks import LockRegistry, user_locks
from bustravel.models import Booking, BookingStatus, Journey, User, UserRole

logger = logging.getLogger(__name__)


class BookingService:
    """Service for the booking lifecycle: Active -> Cancelled | Deleted"""

    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        ledger: Optional[CapacityLedger] = None,
        users: LockRegistry = user_locks
    ):
        self.db = db
        self.clock = clock
        self.ledger = ledger or CapacityLedger(db)
        self.users = users

    def create_booking(self, user: User, journey_id: uuid.UUID, seats: int, pickup: GeoPoint) -> Booking:
        """Book seats on a journey for a traveller.

        Checks run in a fixed order so the caller gets the most precise error:
        journey exists, journey not departed, no active booking already held,
        pickup inside the origin city's radius, then seat capacity. The
        duplicate check, the ledger reservation and the insert commit together
        while the user's lock and the journey's ledger guard are held, so a
        concurrent role change or account deletion either sees the booking or
        runs before it and makes it fail.
        """
        ensure_capability(user.role, Capability.BOOK)
        if seats < 1:
            raise InvalidInputError("Must book at least 1 seat")

        user_id = user.id
        journey = self._get_journey(journey_id)
        self._ensure_not_departed(journey, "Cannot book past journeys")

        with self.users.hold(user_id), self.ledger.guard(journey.id):
            try:
                with transaction(self.db):
                    # The caller's copy may predate a role change or deletion
                    self._lock_booker(user_id)

                    if self._active_booking(user_id, journey.id) is not None:
                        raise DuplicateBookingError()

                    origin = journey.origin_city
                    if not CityService.accepts_pickup(origin, pickup):
                        raise OutsidePickupRadiusError(
                            f"Pickup point must be within {origin.pickup_radius_km} km of {origin.name} city center"
                        )

                    self.ledger.reserve(journey.id, seats)

                    booking = Booking(
                        journey_id=journey.id,
                        user_id=user_id,
                        seats=seats,
                        pickup_lat=pickup.lat,
                        pickup_lng=pickup.lng,
                        status=BookingStatus.ACTIVE,
                        created_at=self.clock()
                    )
                    self.db.add(booking)
            except IntegrityError as e:
                # Another process inserted the same active booking first
                if self._active_booking(user_id, journey.id) is not None:
                    raise DuplicateBookingError() from e
                raise

        logger.info("Booking %s created: %s seats on journey %s for user %s", booking.id, seats, journey.id, user_id)
        return booking

    def cancel_booking(self, user: User, booking_id: uuid.UUID) -> Booking:
        """Cancel the requester's own booking and give its seats back"""
        ensure_capability(user.role, Capability.CANCEL_BOOKING)

        booking = self._get_booking(booking_id)
        if booking.user_id != user.id:
            raise ForbiddenError("You can only cancel your own bookings")
        if booking.status != BookingStatus.ACTIVE:
            raise ConflictError("Booking is already cancelled")
        self._ensure_not_departed(booking.journey, "Cannot cancel bookings for past journeys")

        with self.ledger.guard(booking.journey_id):
            # Re-read under the guard; a concurrent cancel or cascade may have won
            booking = self._get_booking(booking_id, refresh=True)
            if booking.status != BookingStatus.ACTIVE:
                raise ConflictError("Booking is already cancelled")

            with transaction(self.db):
                self.ledger.release(booking.journey_id, booking.seats)
                booking.status = BookingStatus.CANCELLED
                booking.cancelled_at = self.clock()

        logger.info("Booking %s cancelled by user %s", booking.id, user.id)
        return booking

    def admin_update_booking(
        self,
        admin: User,
        booking_id: uuid.UUID,
        seats: Optional[int] = None,
        pickup: Optional[GeoPoint] = None
    ) -> Booking:
        """Administrative edit of seats and/or pickup point.

        Neither the pickup radius nor the journey's capacity is enforced, but the
        ledger still follows the new seat count (release the old count, then
        reserve the new one with overbooking allowed).
        """
        ensure_capability(admin.role, Capability.OVERRIDE_BOOKINGS)
        if seats is not None and seats < 1:
            raise InvalidInputError("Must book at least 1 seat")
        if pickup is not None:
            pickup = validate_point(pickup)

        booking = self._get_booking(booking_id)
        with self.ledger.guard(booking.journey_id):
            booking = self._get_booking(booking_id, refresh=True)
            if booking.status != BookingStatus.ACTIVE:
                raise ConflictError("Only active bookings can be updated")

            with transaction(self.db):
                if seats is not None and seats != booking.seats:
                    self.ledger.release(booking.journey_id, booking.seats)
                    self.ledger.reserve(booking.journey_id, seats, allow_overbook=True)
                    booking.seats = seats
                if pickup is not None:
                    booking.pickup_lat = pickup.lat
                    booking.pickup_lng = pickup.lng

            journey = booking.journey
            if journey.reserved_seats > journey.total_seats:
                logger.warning(
                    "Journey %s overbooked by admin %s: %s of %s seats reserved",
                    journey.id, admin.id, journey.reserved_seats, journey.total_seats
                )

        logger.info("Booking %s updated by admin %s", booking.id, admin.id)
        return booking

    def list_user_bookings(self, user: User, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Get the user's bookings, newest first"""
        ensure_capability(user.role, Capability.LIST_OWN_BOOKINGS)
        query = self._booking_query().filter(Booking.user_id == user.id)
        if status is not None:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc()).all()

    def list_all_bookings(
        self,
        admin: User,
        status: Optional[BookingStatus] = None,
        journey_id: Optional[uuid.UUID] = None
    ) -> List[Booking]:
        ensure_capability(admin.role, Capability.VIEW_ALL_BOOKINGS)
        query = self._booking_query().options(joinedload(Booking.user))
        if status is not None:
            query = query.filter(Booking.status == status)
        if journey_id is not None:
            query = query.filter(Booking.journey_id == journey_id)
        return query.order_by(Booking.created_at.desc()).all()

    def journey_passengers(self, viewer: User, journey_id: uuid.UUID) -> Tuple[Journey, List[Booking]]:
        """Active bookings with pickup points; drivers only see their own journeys"""
        ensure_capability(viewer.role, Capability.VIEW_PASSENGER_PICKUPS)
        journey = self._get_journey(journey_id)
        if viewer.role == UserRole.DRIVER and journey.driver_id != viewer.id:
            raise ForbiddenError("You are not assigned to this journey")

        bookings = self.db.query(Booking).options(
            joinedload(Booking.user)
        ).filter(
            Booking.journey_id == journey_id,
            Booking.status == BookingStatus.ACTIVE
        ).order_by(Booking.created_at).all()
        return journey, bookings

    def _booking_query(self):
        return self.db.query(Booking).options(
            joinedload(Booking.journey).joinedload(Journey.origin_city),
            joinedload(Booking.journey).joinedload(Journey.destination_city)
        )

    def _get_journey(self, journey_id: uuid.UUID) -> Journey:
        journey = self.db.query(Journey).filter(Journey.id == journey_id).first()
        if journey is None:
            raise JourneyNotFoundError()
        return journey

    def _get_booking(self, booking_id: uuid.UUID, refresh: bool = False) -> Booking:
        query = self.db.query(Booking).filter(Booking.id == booking_id)
        if refresh:
            query = query.populate_existing()
        booking = query.first()
        if booking is None:
            raise BookingNotFoundError()
        return booking

    def _active_booking(self, user_id: uuid.UUID, journey_id: uuid.UUID) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.user_id == user_id,
            Booking.journey_id == journey_id,
            Booking.status == BookingStatus.ACTIVE
        ).first()

    def _lock_booker(self, user_id: uuid.UUID) -> User:
        """Re-read the booking user under a row lock and check they may still book"""
        user = self.db.query(User).filter(User.id == user_id).with_for_update().populate_existing().first()
        if user is None:
            raise UserNotFoundError()
        ensure_capability(user.role, Capability.BOOK)
        return user

    def _ensure_not_departed(self, journey: Journey, message: str) -> None:
        if ensure_utc(journey.departure_time) <= self.clock():
            raise JourneyInPastError(message)
