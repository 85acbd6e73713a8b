# rentals/schemas/review.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from rentals.schemas.common import RequestModel
from rentals.schemas.user import UserSummary


class ReviewCreate(RequestModel):
    booking_id: int
    property_id: int
    rating: int
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    id: int
    booking_id: int
    property_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}
