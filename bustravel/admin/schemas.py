import uuid
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from bustravel.models import UserRole

class CreateDriverRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=255)

class DriverResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoleUpdateRequest(BaseModel):
    role: UserRole

class CascadeResult(BaseModel):
    """Outcome of a deletion or role change"""
    message: str
    bookings_removed: int = 0
    journeys_unassigned: int = 0
