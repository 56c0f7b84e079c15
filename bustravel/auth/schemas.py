import uuid
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from bustravel.models import UserRole

class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

class UserCreate(UserBase):
    password: str = Field(..., min_length=6)

class User(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
