import uuid
from sqlalchemy.orm import Session, joinedload
from typing import List

from bustravel.auth.roles import Capability, ensure_capability
from bustravel.clock import Clock, utcnow
from bustravel.exceptions import JourneyNotFoundError
from bustravel.models import Journey, User

class JourneyService:
    """Read side of journeys: listings for travellers, drivers and admins"""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def _query(self):
        return self.db.query(Journey).options(
            joinedload(Journey.origin_city),
            joinedload(Journey.destination_city),
            joinedload(Journey.driver)
        )

    def get_journey(self, journey_id: uuid.UUID) -> Journey:
        journey = self._query().filter(Journey.id == journey_id).first()
        if journey is None:
            raise JourneyNotFoundError()
        return journey

    def list_upcoming(self, with_seats_only: bool = False) -> List[Journey]:
        """Journeys that have not departed yet, soonest first"""
        query = self._query().filter(Journey.departure_time > self.clock())
        if with_seats_only:
            query = query.filter(Journey.reserved_seats < Journey.total_seats)
        return query.order_by(Journey.departure_time).all()

    def list_all(self) -> List[Journey]:
        return self._query().order_by(Journey.departure_time).all()

    def driver_journeys(self, driver: User) -> List[Journey]:
        """Journeys assigned to the driver"""
        ensure_capability(driver.role, Capability.VIEW_ASSIGNED_JOURNEYS)
        return self._query().filter(Journey.driver_id == driver.id).order_by(Journey.departure_time).all()
