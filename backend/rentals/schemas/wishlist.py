# rentals/schemas/wishlist.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from rentals.schemas.common import RequestModel
from rentals.schemas.property import PropertyCard


class WishlistName(RequestModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Wishlist name is required")
        return v


class WishlistPropertyAdd(RequestModel):
    property_id: int


class WishlistOut(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: datetime
    properties: List[PropertyCard] = []

    model_config = {"from_attributes": True}
