"""Registration, login and user profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..core.enums import RoleName
from .base import StandardizedModel, StrictRequestModel


class UserCreate(StrictRequestModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)


class UserLogin(StrictRequestModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    """OAuth2 token payload; keeps the standard snake_case keys."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(StandardizedModel):
    id: str
    email: EmailStr
    name: str
    phone: Optional[str] = None
    role: RoleName
    is_active: bool = True
    created_at: Optional[datetime] = None
