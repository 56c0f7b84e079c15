"""
Capacity ledger: the per-journey count of reserved seats.

The ledger entry lives on the journey row (``Journey.reserved_seats``). Every
mutation is a single conditional UPDATE, so a reservation can only succeed if
the seats still fit at the moment the row is written. On top of that, units of
work that touch a journey's ledger entry hold that journey's lock from the
first check until commit, so check-then-insert sequences in this process are
serialised per journey. Locks are keyed per journey; different journeys never
contend.
"""

import logging
import uuid
from typing import ContextManager

from sqlalchemy.orm import Session

from bustravel.exceptions import (
    InsufficientCapacityError, InternalInvariantViolation, InvalidInputError, JourneyNotFoundError
)
from bustravel.locks import LockRegistry, journey_locks
from bustravel.models import Journey

logger = logging.getLogger(__name__)


class CapacityLedger:
    """Reserve and release seats against a journey's total capacity"""

    def __init__(self, db: Session, locks: LockRegistry = journey_locks):
        self.db = db
        self.locks = locks

    def guard(self, *journey_ids: uuid.UUID) -> ContextManager[None]:
        """Hold the locks of the given journeys, taken in a stable order"""
        return self.locks.hold(*journey_ids)

    def reserve(self, journey_id: uuid.UUID, seats: int, allow_overbook: bool = False) -> None:
        """Add seats to the journey's ledger entry.

        Without ``allow_overbook`` the increment only happens when
        ``reserved_seats + seats <= total_seats``; otherwise
        InsufficientCapacityError is raised and nothing changes.
        """
        if seats < 1:
            raise InvalidInputError("Must book at least 1 seat")

        query = self.db.query(Journey).filter(Journey.id == journey_id)
        if not allow_overbook:
            query = query.filter(Journey.reserved_seats + seats <= Journey.total_seats)

        updated = query.update(
            {Journey.reserved_seats: Journey.reserved_seats + seats},
            synchronize_session="fetch"
        )
        if updated:
            return

        row = self.db.query(Journey.total_seats, Journey.reserved_seats).filter(Journey.id == journey_id).first()
        if row is None:
            raise JourneyNotFoundError()
        raise InsufficientCapacityError(available=max(row.total_seats - row.reserved_seats, 0))

    def release(self, journey_id: uuid.UUID, seats: int) -> None:
        """Return seats to the journey; the entry never drops below zero"""
        if seats < 1:
            raise InternalInvariantViolation(f"Attempted to release {seats} seats on journey {journey_id}")

        updated = self.db.query(Journey).filter(
            Journey.id == journey_id,
            Journey.reserved_seats >= seats
        ).update(
            {Journey.reserved_seats: Journey.reserved_seats - seats},
            synchronize_session="fetch"
        )
        if updated:
            return

        reserved = self.db.query(Journey.reserved_seats).filter(Journey.id == journey_id).scalar()
        logger.error(
            "Capacity ledger underflow: releasing %s seats on journey %s with %s reserved",
            seats, journey_id, reserved
        )
        raise InternalInvariantViolation(
            f"Cannot release {seats} seats on journey {journey_id}: {reserved} reserved"
        )

    def current_reserved(self, journey_id: uuid.UUID) -> int:
        reserved = self.db.query(Journey.reserved_seats).filter(Journey.id == journey_id).scalar()
        if reserved is None:
            raise JourneyNotFoundError()
        return reserved

    @staticmethod
    def available_seats(journey: Journey) -> int:
        """Seats still open for normal booking; 0 when overbooked"""
        return max(journey.total_seats - (journey.reserved_seats or 0), 0)

    def discard(self, journey_id: uuid.UUID) -> None:
        """Forget a deleted journey's lock"""
        self.locks.discard(journey_id)
