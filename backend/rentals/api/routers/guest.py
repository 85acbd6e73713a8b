# rentals/api/routers/guest.py
import math
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.api.dependencies import CurrentUser
from rentals.core.enums import ListingType, RentalPeriod
from rentals.db import crud_bookings, crud_properties, crud_reviews, crud_wishlists
from rentals.db.session import get_db
from rentals.schemas.booking import BookingCreate, BookingDetail
from rentals.schemas.common import to_naive_utc
from rentals.schemas.property import (
    HostInfo,
    ImageOut,
    PropertyBase,
    PropertyCard,
    PropertyDetail,
    PropertyListItem,
    ReviewInProperty,
)
from rentals.schemas.review import ReviewCreate, ReviewOut
from rentals.schemas.wishlist import WishlistName, WishlistOut, WishlistPropertyAdd
from rentals.services import bookings as booking_service

router = APIRouter()


def _featured_image(prop) -> Optional[ImageOut]:
    for img in prop.images:
        if img.is_featured:
            return ImageOut.model_validate(img)
    return None


def _listing(prop, ratings: dict) -> dict:
    summary = ratings.get(prop.id, {"count": 0, "average": None})
    return PropertyListItem(
        **PropertyBase.model_validate(prop).model_dump(),
        host=HostInfo.model_validate(prop.host),
        featured_image=_featured_image(prop),
        review_count=summary["count"],
        average_rating=summary["average"],
    ).model_dump()


# ---------------------------
# Browsing
# ---------------------------

@router.get("/properties")
async def list_properties(
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sort: str = "newest",
    category: Optional[int] = None,
    property_type: Optional[int] = Query(None, alias="propertyType"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    bedrooms: Optional[int] = None,
    bathrooms: Optional[int] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    listing_type: Optional[str] = Query(None, alias="listingType"),
    rental_period: Optional[str] = Query(None, alias="rentalPeriod"),
    amenities: Optional[List[int]] = Query(None),
    location_features: Optional[List[int]] = Query(None, alias="locationFeatures"),
):
    """
    Public listings, available properties only.
    """
    filters = {
        "category": category,
        "property_type": property_type,
        "min_price": min_price,
        "max_price": max_price,
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "city": city,
        "country": country,
        # unknown values are ignored rather than rejected
        "listing_type": listing_type if listing_type in {t.value for t in ListingType} else None,
        "rental_period": rental_period if rental_period in {p.value for p in RentalPeriod} else None,
        "amenities": amenities,
        "location_features": location_features,
        "sort": sort,
    }
    items, total = await crud_properties.list_properties(db, filters=filters, page=page, per_page=limit)
    ratings = await crud_reviews.rating_summary(db, [p.id for p in items])

    return {
        "properties": [_listing(p, ratings) for p in items],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/properties/{slug}")
async def get_property_detail(slug: str, db: AsyncSession = Depends(get_db)):
    prop = await crud_properties.get_property_by_slug(db, slug)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    reviews = await crud_reviews.list_reviews_for_property(db, prop.id)
    average = sum(r.rating for r in reviews) / len(reviews) if reviews else None
    similar = await crud_properties.list_similar_properties(db, prop)

    detail = PropertyDetail(
        **PropertyBase.model_validate(prop).model_dump(),
        host=HostInfo.model_validate(prop.host),
        images=[ImageOut.model_validate(img) for img in prop.images],
        reviews=[ReviewInProperty.model_validate(r) for r in reviews],
        average_rating=average,
    )
    return {
        "property": detail.model_dump(),
        "similarProperties": [PropertyCard.model_validate(p).model_dump() for p in similar],
    }


@router.get("/properties/{prop_id}/availability")
async def property_availability(
    prop_id: int,
    db: AsyncSession = Depends(get_db),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
):
    if start_date is None or end_date is None:
        raise HTTPException(status_code=400, detail="Start and end dates are required")

    result = await booking_service.check_availability(
        db, prop_id, to_naive_utc(start_date), to_naive_utc(end_date)
    )
    return result.to_dict()


# ---------------------------
# Bookings
# ---------------------------

@router.post("/bookings", status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.create_booking(
        db,
        guest=current_user,
        property_id=body.property_id,
        start_date=body.start_date,
        end_date=body.end_date,
        guest_count=body.guest_count,
    )
    return {
        "message": "Booking created successfully",
        "booking": BookingDetail.model_validate(booking),
    }


@router.get("/bookings")
async def list_my_bookings(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    status: Optional[str] = None,
):
    bookings = await crud_bookings.list_bookings_for_guest(db, current_user.id, status)
    return {"items": [BookingDetail.model_validate(b) for b in bookings]}


@router.put("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.cancel_booking(db, booking_id=booking_id, user=current_user)
    return {
        "message": f"Booking for {booking.property.title} has been cancelled",
        "booking": BookingDetail.model_validate(booking),
    }


# ---------------------------
# Reviews
# ---------------------------

@router.post("/reviews", status_code=status.HTTP_201_CREATED)
async def add_review(
    body: ReviewCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    review = await booking_service.add_review(
        db,
        user=current_user,
        booking_id=body.booking_id,
        property_id=body.property_id,
        rating=body.rating,
        comment=body.comment,
    )
    return {
        "message": "Review submitted successfully",
        "review": ReviewOut.model_validate(review),
    }


# ---------------------------
# Wishlists
# ---------------------------

async def _own_wishlist(db: AsyncSession, wishlist_id: int, user):
    wishlist = await crud_wishlists.get_wishlist(db, wishlist_id)
    if not wishlist:
        raise HTTPException(status_code=404, detail="Wishlist not found")
    if wishlist.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized to update this wishlist")
    return wishlist


@router.get("/wishlists")
async def list_wishlists(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    wishlists = await crud_wishlists.list_wishlists(db, current_user.id)
    return {
        "items": [
            {**WishlistOut.model_validate(w).model_dump(), "property_count": len(w.properties)}
            for w in wishlists
        ]
    }


@router.post("/wishlists", status_code=status.HTTP_201_CREATED)
async def create_wishlist(
    body: WishlistName,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    if await crud_wishlists.get_wishlist_by_name(db, current_user.id, body.name):
        raise HTTPException(status_code=409, detail="Wishlist with this name already exists")

    wishlist = await crud_wishlists.create_wishlist(db, current_user.id, body.name)
    return {
        "message": "Wishlist created successfully",
        "wishlist": WishlistOut.model_validate(wishlist),
    }


@router.put("/wishlists/{wishlist_id}")
async def rename_wishlist(
    wishlist_id: int,
    body: WishlistName,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    wishlist = await _own_wishlist(db, wishlist_id, current_user)

    if body.name != wishlist.name and await crud_wishlists.get_wishlist_by_name(
        db, current_user.id, body.name
    ):
        raise HTTPException(status_code=409, detail="Wishlist with this name already exists")

    wishlist = await crud_wishlists.rename_wishlist(db, wishlist, body.name)
    return {
        "message": "Wishlist updated successfully",
        "wishlist": WishlistOut.model_validate(wishlist),
    }


@router.delete("/wishlists/{wishlist_id}")
async def delete_wishlist(
    wishlist_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    wishlist = await _own_wishlist(db, wishlist_id, current_user)
    await crud_wishlists.delete_wishlist(db, wishlist)
    return {"message": "Wishlist deleted successfully"}


@router.post("/wishlists/{wishlist_id}/properties")
async def add_to_wishlist(
    wishlist_id: int,
    body: WishlistPropertyAdd,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    wishlist = await _own_wishlist(db, wishlist_id, current_user)

    prop = await crud_properties.get_property(db, body.property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    if any(p.id == prop.id for p in wishlist.properties):
        raise HTTPException(status_code=400, detail="Property is already in wishlist")

    wishlist = await crud_wishlists.add_property(db, wishlist, prop)
    return {
        "message": "Property added to wishlist successfully",
        "wishlist": WishlistOut.model_validate(wishlist),
    }


@router.delete("/wishlists/{wishlist_id}/properties/{property_id}")
async def remove_from_wishlist(
    wishlist_id: int,
    property_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    wishlist = await _own_wishlist(db, wishlist_id, current_user)
    wishlist = await crud_wishlists.remove_property(db, wishlist, property_id)
    return {
        "message": "Property removed from wishlist successfully",
        "wishlist": WishlistOut.model_validate(wishlist),
    }
