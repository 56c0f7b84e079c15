import uuid
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, Uuid, CheckConstraint, Index, text
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bustravel.database import Base


class UserRole(str, Enum):
    """Role a user acts under; see bustravel.auth.roles for capabilities"""
    ADMIN = "admin"
    DRIVER = "driver"
    TRAVELLER = "traveller"


class BookingStatus(str, Enum):
    """Booking status enumeration (deleted bookings leave the table)"""
    ACTIVE = "active"
    CANCELLED = "cancelled"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

# ================================
# Cities (reference data)
# ================================
class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    center_lat = Column(Float, nullable=False)
    center_lng = Column(Float, nullable=False)
    pickup_radius_km = Column(Float, nullable=False)

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role", native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=UserRole.TRAVELLER,
        index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# ================================
# Journeys
# ================================
class Journey(Base):
    __tablename__ = "journeys"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    origin_city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    destination_city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False, index=True)
    total_seats = Column(Integer, nullable=False)
    # Capacity ledger entry: sum of seats held by active bookings
    reserved_seats = Column(Integer, nullable=False, default=0, server_default="0")
    driver_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    origin_city = relationship("City", foreign_keys=[origin_city_id])
    destination_city = relationship("City", foreign_keys=[destination_city_id])
    driver = relationship("User", foreign_keys=[driver_id])

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="check_journey_total_seats_positive"),
        CheckConstraint("reserved_seats >= 0", name="check_journey_reserved_seats_non_negative"),
    )

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    journey_id = Column(Uuid, ForeignKey("journeys.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    seats = Column(Integer, nullable=False)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    status = Column(
        SAEnum(BookingStatus, name="booking_status", native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.ACTIVE,
        index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    cancelled_at = Column(DateTime(timezone=True))

    # Relationships
    journey = relationship("Journey")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("seats > 0", name="check_booking_seats_positive"),
        # One active booking per traveller per journey
        Index(
            "uq_active_booking_user_journey",
            "user_id",
            "journey_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'")
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, journey={self.journey_id}, status={self.status})>"
