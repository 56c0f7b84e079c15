import uuid
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from bustravel.models import BookingStatus

# Booking Request Models
class CreateBookingRequest(BaseModel):
    """Request to book seats on a journey"""
    journey_id: uuid.UUID
    seats: int = Field(..., ge=1, description="Number of seats to reserve")
    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)

class AdminBookingUpdateRequest(BaseModel):
    """Administrative booking edit; capacity and pickup radius are not enforced"""
    seats: Optional[int] = Field(None, ge=1)
    pickup_lat: Optional[float] = Field(None, ge=-90, le=90)
    pickup_lng: Optional[float] = Field(None, ge=-180, le=180)

# Booking Response Models
class BookingResponse(BaseModel):
    """Traveller's view of a booking"""
    id: uuid.UUID
    journey_id: uuid.UUID
    origin_city: str
    destination_city: str
    departure_time: datetime
    seats: int
    pickup_lat: float
    pickup_lng: float
    status: BookingStatus
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

class BookingInfo(BaseModel):
    """Administrator's view of a booking"""
    id: uuid.UUID
    journey_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    user_email: str
    seats: int
    pickup_lat: float
    pickup_lng: float
    status: BookingStatus
    created_at: Optional[datetime] = None

class PassengerPickupInfo(BaseModel):
    booking_id: uuid.UUID
    passenger_name: str
    seats: int
    pickup_lat: float
    pickup_lng: float

class JourneyPassengersResponse(BaseModel):
    journey_id: uuid.UUID
    origin_city: str
    destination_city: str
    departure_time: datetime
    passengers: List[PassengerPickupInfo]

class MessageResponse(BaseModel):
    message: str
