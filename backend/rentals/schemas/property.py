# rentals/schemas/property.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from rentals.core.enums import ListingType, RentalPeriod
from rentals.schemas.common import RequestModel, to_naive_utc
from rentals.schemas.user import UserSummary


class TaxonomyOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_by: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class AmenityOut(TaxonomyOut):
    icon: Optional[str] = None


class TaxonomyCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class ImageOut(BaseModel):
    id: int
    url: str
    is_featured: bool

    model_config = {"from_attributes": True}


class HostInfo(BaseModel):
    id: int
    name: str
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    is_verified: bool = False

    model_config = {"from_attributes": True}


class PropertyBase(BaseModel):
    id: int
    host_id: int
    title: str
    slug: str
    description: str
    price: float
    listing_type: str
    rental_period: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    address: str
    city: str
    state: Optional[str] = None
    country: str
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_available: bool
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None
    category: Optional[TaxonomyOut] = None
    property_type: Optional[TaxonomyOut] = None
    amenities: List[AmenityOut] = []
    location_features: List[TaxonomyOut] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class PropertyCard(BaseModel):
    """Compact listing used inside wishlists and similar-property strips."""
    id: int
    title: str
    slug: str
    price: float
    listing_type: str
    rental_period: Optional[str] = None
    city: str
    country: str
    images: List[ImageOut] = []

    model_config = {"from_attributes": True}

    @field_validator("images")
    @classmethod
    def featured_only(cls, v: List[ImageOut]) -> List[ImageOut]:
        return [img for img in v if img.is_featured][:1]


class PropertyListItem(PropertyBase):
    host: Optional[HostInfo] = None
    featured_image: Optional[ImageOut] = None
    review_count: int = 0
    average_rating: Optional[float] = None


class ReviewInProperty(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class PropertyDetail(PropertyBase):
    host: Optional[HostInfo] = None
    images: List[ImageOut] = []
    reviews: List[ReviewInProperty] = []
    average_rating: Optional[float] = None


class PropertyFields(RequestModel):
    """Fields shared by create and update; None means "not supplied"."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    listing_type: Optional[ListingType] = None
    rental_period: Optional[RentalPeriod] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    area: Optional[float] = Field(default=None, ge=0)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    category_id: Optional[int] = None
    property_type_id: Optional[int] = None
    amenity_ids: Optional[List[int]] = None
    location_feature_ids: Optional[List[int]] = None
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None

    @field_validator("available_from", "available_to")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.available_from and self.available_to and self.available_from > self.available_to:
            raise ValueError("availableFrom must not be after availableTo")
        return self


class PropertyCreate(PropertyFields):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: float = Field(gt=0)
    listing_type: ListingType
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)
    category_id: int
    property_type_id: int

    @model_validator(mode="after")
    def rental_period_for_rentals(self):
        if self.listing_type == ListingType.RENT and self.rental_period is None:
            raise ValueError("Rental period is required for rentals")
        return self


class PropertyUpdate(PropertyFields):
    is_available: Optional[bool] = None
