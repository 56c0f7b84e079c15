"""
Cascade coordinator.

Follow-on changes applied when journeys, drivers or users are mutated or
removed. The ``on_*`` primitives never commit: callers run them inside
``unit_of_work``, which holds the ledger guards of every journey whose seats
may move and commits the triggering mutation together with its cascades (or
rolls all of it back). Cascades keyed on a user run inside
``user_unit_of_work``, which first takes the user's lock so that no booking
by that user can commit while the affected journeys are being collected.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import ContextManager, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from bustravel.bookings.ledger import CapacityLedger
from bustravel.database import transaction
from bustravel.exceptions import JourneyNotFoundError, NotADriverError, UserNotFoundError
from bustravel.locks import LockRegistry, user_locks
from bustravel.models import Booking, BookingStatus, Journey, User, UserRole

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    def __init__(self, db: Session, ledger: Optional[CapacityLedger] = None, users: LockRegistry = user_locks):
        self.db = db
        self.ledger = ledger or CapacityLedger(db)
        self.users = users

    @contextmanager
    def unit_of_work(self, journey_ids: Iterable[uuid.UUID] = ()) -> Iterator[Session]:
        """Guard the given journeys and commit everything done inside as one transaction"""
        with self.ledger.guard(*journey_ids):
            with transaction(self.db):
                yield self.db

    def user_guard(self, user_id: uuid.UUID) -> ContextManager[None]:
        return self.users.hold(user_id)

    @contextmanager
    def user_unit_of_work(self, user_id: uuid.UUID, active_only: bool = False) -> Iterator[User]:
        """Unit of work for a cascade on one user.

        Holds the user's lock, then guards every journey the user has bookings
        on and yields the user re-read under a row lock. Raises
        UserNotFoundError if the account is already gone.
        """
        with self.user_guard(user_id):
            journey_ids = self.journeys_booked_by(user_id, active_only=active_only)
            with self.unit_of_work(journey_ids):
                yield self.lock_user(user_id)

    def lock_user(self, user_id: uuid.UUID, message: str = "User not found") -> User:
        user = self.db.query(User).filter(User.id == user_id).with_for_update().populate_existing().first()
        if user is None:
            raise UserNotFoundError(message)
        return user

    def journeys_booked_by(self, user_id: uuid.UUID, active_only: bool = False) -> List[uuid.UUID]:
        """Journeys on which the user holds bookings (the guards a user cascade needs)"""
        query = self.db.query(Booking.journey_id).filter(Booking.user_id == user_id)
        if active_only:
            query = query.filter(Booking.status == BookingStatus.ACTIVE)
        return [row.journey_id for row in query.distinct().all()]

    def on_journey_deleted(self, journey_id: uuid.UUID) -> int:
        """Delete every booking of the journey.

        The journey's lock stays registered; the caller discards it once the
        deletion has committed.
        """
        bookings = self.db.query(Booking).filter(Booking.journey_id == journey_id).all()
        for booking in bookings:
            self.db.delete(booking)
        self.db.flush()

        logger.info("Journey %s deleted: removed %s bookings", journey_id, len(bookings))
        return len(bookings)

    def on_driver_unassigned(self, journey_id: uuid.UUID) -> None:
        journey = self.db.query(Journey).filter(Journey.id == journey_id).first()
        if journey is None:
            raise JourneyNotFoundError()
        journey.driver_id = None
        self.db.flush()
        logger.info("Driver unassigned from journey %s", journey_id)

    def on_role_changed_away_from_driver(self, user_id: uuid.UUID) -> int:
        """Clear the driver reference on every journey the user was driving"""
        updated = self.db.query(Journey).filter(Journey.driver_id == user_id).update(
            {Journey.driver_id: None},
            synchronize_session="fetch"
        )
        if updated:
            logger.info("Unassigned user %s from %s journeys", user_id, updated)
        return updated

    def on_role_changed_away_from_traveller(self, user_id: uuid.UUID) -> int:
        """Delete the user's active bookings and release their seats"""
        bookings = self.db.query(Booking).filter(
            Booking.user_id == user_id,
            Booking.status == BookingStatus.ACTIVE
        ).all()
        self._delete_bookings(bookings)
        if bookings:
            logger.info("Removed %s active bookings of user %s", len(bookings), user_id)
        return len(bookings)

    def on_user_deleted(self, user_id: uuid.UUID) -> Tuple[int, int]:
        """Both cascades regardless of current role, plus the cancelled booking history.

        Returns (journeys unassigned, active bookings removed).
        """
        unassigned = self.on_role_changed_away_from_driver(user_id)
        removed = self.on_role_changed_away_from_traveller(user_id)

        history = self.db.query(Booking).filter(Booking.user_id == user_id).all()
        self._delete_bookings(history)
        return unassigned, removed

    def assign_driver(self, journey_id: uuid.UUID, driver_id: uuid.UUID) -> Journey:
        # Callers hold user_guard(driver_id); the row lock covers other processes
        driver = self.lock_user(driver_id, "Driver not found")
        if driver.role != UserRole.DRIVER:
            raise NotADriverError()

        journey = self.db.query(Journey).filter(Journey.id == journey_id).first()
        if journey is None:
            raise JourneyNotFoundError()

        journey.driver_id = driver.id
        self.db.flush()
        logger.info("Driver %s assigned to journey %s", driver.id, journey.id)
        return journey

    def _delete_bookings(self, bookings: List[Booking]) -> None:
        for booking in bookings:
            if booking.status == BookingStatus.ACTIVE:
                self.ledger.release(booking.journey_id, booking.seats)
            self.db.delete(booking)
        self.db.flush()
