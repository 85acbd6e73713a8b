# rentals/schemas/booking.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from rentals.schemas.common import RequestModel, to_naive_utc
from rentals.schemas.property import ImageOut
from rentals.schemas.user import UserSummary


class BookingCreate(RequestModel):
    property_id: int
    start_date: datetime
    end_date: datetime
    guest_count: int = Field(ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class BookingStatusUpdate(RequestModel):
    status: Optional[str] = None


class BookingOut(BaseModel):
    id: int
    property_id: int
    guest_id: int
    start_date: datetime
    end_date: datetime
    guest_count: int
    total_price: float
    status: str
    payment_status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BookedProperty(BaseModel):
    id: int
    host_id: int
    title: str
    slug: str
    address: str
    city: str
    country: str
    images: List[ImageOut] = []

    model_config = {"from_attributes": True}

    @field_validator("images")
    @classmethod
    def featured_only(cls, v: List[ImageOut]) -> List[ImageOut]:
        return [img for img in v if img.is_featured][:1]


class GuestInfo(UserSummary):
    email: str


class BookingDetail(BookingOut):
    property: BookedProperty
    guest: Optional[GuestInfo] = None
