# rentals/api/routers/host.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.api.dependencies import HostOrAdmin
from rentals.core.config import get_settings
from rentals.core.enums import ListingType
from rentals.core.roles import can_manage_property, is_admin
from rentals.db import crud_bookings, crud_properties, crud_taxonomy
from rentals.db.models import Amenity, Category, LocationFeature, PropertyType
from rentals.db.session import get_db
from rentals.schemas.booking import BookingDetail, BookingStatusUpdate
from rentals.schemas.property import HostInfo, ImageOut, PropertyBase, PropertyCreate, PropertyUpdate
from rentals.services import bookings as booking_service
from rentals.services import storage

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


async def _managed_property(db: AsyncSession, prop_id: int, user, action: str = "update"):
    prop = await crud_properties.get_property(db, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    if not can_manage_property(user, prop):
        raise HTTPException(status_code=403, detail=f"Not authorized to {action} this property")
    return prop


async def _resolve_taxonomy(db: AsyncSession, data: dict):
    """
    Check category/type ids and turn amenity/location-feature id lists into rows.
    Returns (amenities, location_features); either is None when not supplied.
    """
    if data.get("category_id") is not None:
        if not await crud_taxonomy.get_item(db, Category, data["category_id"]):
            raise HTTPException(status_code=400, detail="Invalid category")
    if data.get("property_type_id") is not None:
        if not await crud_taxonomy.get_item(db, PropertyType, data["property_type_id"]):
            raise HTTPException(status_code=400, detail="Invalid property type")

    amenities = None
    amenity_ids = data.pop("amenity_ids", None)
    if amenity_ids is not None:
        amenities = await crud_taxonomy.get_items(db, Amenity, amenity_ids)
        if len(amenities) != len(set(amenity_ids)):
            raise HTTPException(status_code=400, detail="Invalid amenity")

    features = None
    feature_ids = data.pop("location_feature_ids", None)
    if feature_ids is not None:
        features = await crud_taxonomy.get_items(db, LocationFeature, feature_ids)
        if len(features) != len(set(feature_ids)):
            raise HTTPException(status_code=400, detail="Invalid location feature")

    return amenities, features


def _property_out(prop) -> dict:
    return {
        **PropertyBase.model_validate(prop).model_dump(),
        "images": [ImageOut.model_validate(img).model_dump() for img in prop.images],
    }


# ---------------------------
# Properties
# ---------------------------

@router.get("/properties")
async def host_properties(
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
    host_id: Optional[int] = Query(None, alias="hostId"),
):
    """
    List the caller's properties. Admins may look at another host via ?hostId=.
    """
    target = host_id if is_admin(current_user) and host_id else current_user.id
    items = await crud_properties.list_properties_for_host(db, host_id=target)
    return {"items": [_property_out(p) for p in items]}


@router.get("/properties/{prop_id}")
async def host_property_detail(
    prop_id: int,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    prop = await _managed_property(db, prop_id, current_user, action="view")
    return {**_property_out(prop), "host": HostInfo.model_validate(prop.host).model_dump()}


@router.post("/properties", status_code=201)
async def create_property(
    body: PropertyCreate,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    data = body.model_dump(exclude_none=True)
    amenities, features = await _resolve_taxonomy(db, data)

    if data["listing_type"] == ListingType.SALE.value:
        data.pop("rental_period", None)

    prop = await crud_properties.create_property(
        db,
        host_id=current_user.id,
        amenities=amenities or [],
        location_features=features or [],
        **data,
    )
    logger.info("property %s created by user %s", prop.id, current_user.id)
    return {"message": "Property created successfully", "property": _property_out(prop)}


@router.put("/properties/{prop_id}")
async def update_property(
    prop_id: int,
    body: PropertyUpdate,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    prop = await _managed_property(db, prop_id, current_user)

    data = body.model_dump(exclude_unset=True)
    # these columns are NOT NULL; an explicit null means "leave as is"
    for key in ("title", "description", "price", "listing_type", "address", "city",
                "country", "category_id", "property_type_id", "is_available"):
        if key in data and data[key] is None:
            data.pop(key)

    amenities, features = await _resolve_taxonomy(db, data)

    listing_type = data.get("listing_type", prop.listing_type)
    rental_period = data.get("rental_period", prop.rental_period)
    if listing_type == ListingType.SALE.value:
        data["rental_period"] = None
    elif rental_period is None:
        raise HTTPException(status_code=400, detail="Rental period is required for rentals")

    available_from = data.get("available_from", prop.available_from)
    available_to = data.get("available_to", prop.available_to)
    if available_from and available_to and available_from > available_to:
        raise HTTPException(status_code=400, detail="availableFrom must not be after availableTo")

    prop = await crud_properties.update_property(db, prop, data, amenities, features)
    return {"message": "Property updated successfully", "property": _property_out(prop)}


@router.delete("/properties/{prop_id}")
async def delete_property(
    prop_id: int,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    prop = await _managed_property(db, prop_id, current_user, action="delete")

    if await crud_bookings.count_bookings_for_property(db, prop.id) > 0:
        raise HTTPException(status_code=400, detail="Cannot delete property with existing bookings")

    urls = [img.url for img in prop.images]
    await crud_properties.delete_property(db, prop)
    for url in urls:
        storage.delete_property_image(url)

    logger.info("property %s deleted by user %s", prop_id, current_user.id)
    return {"message": "Property deleted successfully"}


# ---------------------------
# Images
# ---------------------------

@router.post("/properties/{prop_id}/images", status_code=201)
async def upload_images(
    prop_id: int,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
    images: Optional[List[UploadFile]] = File(None),
    is_featured: bool = Form(False, alias="isFeatured"),
):
    """
    Save uploaded images to disk and attach them to the listing. The first
    image a listing ever gets is always featured.
    """
    settings = get_settings()
    await _managed_property(db, prop_id, current_user)

    uploads = [img for img in images or [] if img.filename]
    if not uploads:
        raise HTTPException(status_code=400, detail="No images uploaded")
    if len(uploads) > settings.MAX_IMAGES_PER_UPLOAD:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.MAX_IMAGES_PER_UPLOAD} images per upload",
        )

    current = await crud_properties.count_images(db, prop_id)
    if current + len(uploads) > settings.MAX_IMAGES_PER_PROPERTY:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum of {settings.MAX_IMAGES_PER_PROPERTY} images allowed per property",
        )

    urls = await storage.save_property_images(uploads)
    try:
        created = await crud_properties.add_images(
            db, prop_id, urls, feature_first=is_featured or current == 0
        )
    except Exception:
        await db.rollback()
        for url in urls:
            storage.delete_property_image(url)
        raise
    return {
        "message": "Images uploaded successfully",
        "images": [ImageOut.model_validate(img) for img in created],
    }


@router.delete("/properties/{prop_id}/images/{image_id}")
async def delete_image(
    prop_id: int,
    image_id: int,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    await _managed_property(db, prop_id, current_user)

    image = await crud_properties.get_image(db, prop_id, image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")

    url = image.url
    await crud_properties.delete_image(db, image)
    storage.delete_property_image(url)
    return {"message": "Image deleted successfully"}


@router.put("/properties/{prop_id}/images/{image_id}/featured")
async def set_featured_image(
    prop_id: int,
    image_id: int,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    await _managed_property(db, prop_id, current_user)

    image = await crud_properties.get_image(db, prop_id, image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")

    image = await crud_properties.set_featured_image(db, image)
    return {"message": "Featured image updated successfully", "image": ImageOut.model_validate(image)}


# ---------------------------
# Bookings
# ---------------------------

@router.get("/bookings")
async def host_bookings(
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
    status: Optional[str] = None,
):
    """
    List all bookings for properties owned by the current user.
    """
    bookings = await crud_bookings.list_bookings_for_host(db, host_id=current_user.id, status=status)
    return {"items": [BookingDetail.model_validate(b) for b in bookings]}


@router.put("/bookings/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    current_user: HostOrAdmin,
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.update_booking_status(
        db, booking_id=booking_id, user=current_user, status=body.status
    )
    return {
        "message": f"Booking for {booking.property.title} has been {booking.status}",
        "booking": BookingDetail.model_validate(booking),
    }


@router.get("/dashboard")
async def dashboard(current_user: HostOrAdmin, db: AsyncSession = Depends(get_db)):
    properties_total = await crud_properties.count_properties_for_host(db, current_user.id)
    bookings = await crud_bookings.booking_counts_for_host(db, current_user.id)
    revenue = await crud_bookings.revenue_for_host(db, current_user.id)
    recent = await crud_bookings.list_bookings_for_host(db, host_id=current_user.id, limit=5)

    return {
        "properties": {"total": properties_total},
        "bookings": bookings,
        "revenue": {"total": revenue},
        "recentBookings": [BookingDetail.model_validate(b) for b in recent],
    }
