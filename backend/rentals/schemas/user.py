# rentals/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from rentals.core.roles import Role


class UserBase(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None
    role: str
    profile_image: Optional[str] = None
    is_verified: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    phone: Optional[str] = None
    # Anything other than guest/host falls back to guest
    role: Optional[str] = Role.GUEST.value


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserRoleUpdate(BaseModel):
    """
    body: { "role": "guest" | "host" | "admin" }
    """
    role: str


class UserOut(UserBase):
    """
    Public-facing user data (e.g. auth token payload).
    """
    pass


class UserSummary(BaseModel):
    id: int
    name: str
    profile_image: Optional[str] = None

    model_config = {"from_attributes": True}


class UserAdminOut(UserBase):
    updated_at: datetime
    properties_count: int = 0
    bookings_count: int = 0
    reviews_count: int = 0
