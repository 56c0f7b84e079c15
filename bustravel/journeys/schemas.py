import uuid
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from bustravel.bookings.ledger import CapacityLedger
from bustravel.cities.schemas import CityInfo
from bustravel.clock import ensure_utc
from bustravel.models import Journey

# Request Models
class CreateJourneyRequest(BaseModel):
    origin_city_id: int
    destination_city_id: int
    departure_time: datetime
    total_seats: int = Field(..., ge=1)

class UpdateJourneyRequest(BaseModel):
    origin_city_id: Optional[int] = None
    destination_city_id: Optional[int] = None
    departure_time: Optional[datetime] = None
    total_seats: Optional[int] = Field(None, ge=1)

class AssignDriverRequest(BaseModel):
    driver_id: uuid.UUID

# Response Models
class DriverInfo(BaseModel):
    id: uuid.UUID
    name: str
    email: str

    class Config:
        from_attributes = True

class AvailableJourneyResponse(BaseModel):
    """Journey as listed to travellers"""
    id: uuid.UUID
    origin_city: CityInfo
    destination_city: CityInfo
    departure_time: datetime
    available_seats: int
    has_driver: bool

    @classmethod
    def from_journey(cls, journey: Journey) -> "AvailableJourneyResponse":
        return cls(
            id=journey.id,
            origin_city=CityInfo.model_validate(journey.origin_city),
            destination_city=CityInfo.model_validate(journey.destination_city),
            departure_time=ensure_utc(journey.departure_time),
            available_seats=CapacityLedger.available_seats(journey),
            has_driver=journey.driver_id is not None
        )

class JourneyResponse(BaseModel):
    """Journey as listed to administrators"""
    id: uuid.UUID
    origin_city: str
    destination_city: str
    departure_time: datetime
    total_seats: int
    booked_seats: int
    available_seats: int
    driver: Optional[DriverInfo] = None

    @classmethod
    def from_journey(cls, journey: Journey) -> "JourneyResponse":
        return cls(
            id=journey.id,
            origin_city=journey.origin_city.name,
            destination_city=journey.destination_city.name,
            departure_time=ensure_utc(journey.departure_time),
            total_seats=journey.total_seats,
            booked_seats=journey.reserved_seats,
            available_seats=CapacityLedger.available_seats(journey),
            driver=DriverInfo.model_validate(journey.driver) if journey.driver else None
        )

class DriverJourneyResponse(BaseModel):
    id: uuid.UUID
    origin_city: str
    destination_city: str
    departure_time: datetime
    total_seats: int
    booked_seats: int

    @classmethod
    def from_journey(cls, journey: Journey) -> "DriverJourneyResponse":
        return cls(
            id=journey.id,
            origin_city=journey.origin_city.name,
            destination_city=journey.destination_city.name,
            departure_time=ensure_utc(journey.departure_time),
            total_seats=journey.total_seats,
            booked_seats=journey.reserved_seats
        )
