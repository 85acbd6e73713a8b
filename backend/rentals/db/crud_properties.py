# rentals/db/crud_properties.py
import random
import re
import string
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, and_, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.db.models import Amenity, LocationFeature, Property, PropertyImage

SORT_ORDERS = {
    "price_low": (Property.price.asc(), Property.id.asc()),
    "price_high": (Property.price.desc(), Property.id.desc()),
    "oldest": (Property.created_at.asc(), Property.id.asc()),
    "newest": (Property.created_at.desc(), Property.id.desc()),
}


def slugify(title: str) -> str:
    s = title.lower()
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"[\s-]+", "-", s)
    return s.strip("-") or "property"


async def slug_exists(db: AsyncSession, slug: str) -> bool:
    res = await db.execute(select(Property.id).where(Property.slug == slug))
    return res.first() is not None


async def unique_slug(db: AsyncSession, title: str) -> str:
    """
    Slug from the title; a random 5-char suffix is appended when the plain
    slug is already taken.
    """
    slug = slugify(title)
    while await slug_exists(db, slug):
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=5))
        slug = f"{slugify(title)}-{suffix}"
    return slug


async def list_properties(
    db: AsyncSession,
    filters: dict = None,
    page: int = 1,
    per_page: int = 12,
) -> Tuple[List[Property], int]:
    """
    Public listing: ALWAYS only available properties.
    """
    filters = filters or {}
    stmt = select(Property)

    where_clauses = [Property.is_available.is_(True)]

    if filters.get("category") is not None:
        where_clauses.append(Property.category_id == filters["category"])
    if filters.get("property_type") is not None:
        where_clauses.append(Property.property_type_id == filters["property_type"])
    if filters.get("min_price") is not None:
        where_clauses.append(Property.price >= filters["min_price"])
    if filters.get("max_price") is not None:
        where_clauses.append(Property.price <= filters["max_price"])
    if filters.get("bedrooms") is not None:
        where_clauses.append(Property.bedrooms >= filters["bedrooms"])
    if filters.get("bathrooms") is not None:
        where_clauses.append(Property.bathrooms >= filters["bathrooms"])
    if filters.get("city"):
        where_clauses.append(Property.city.ilike(f"%{filters['city']}%"))
    if filters.get("country"):
        where_clauses.append(Property.country == filters["country"])
    if filters.get("listing_type"):
        where_clauses.append(Property.listing_type == filters["listing_type"])
    if filters.get("rental_period"):
        where_clauses.append(Property.rental_period == filters["rental_period"])
    if filters.get("amenities"):
        where_clauses.append(Property.amenities.any(Amenity.id.in_(filters["amenities"])))
    if filters.get("location_features"):
        where_clauses.append(
            Property.location_features.any(LocationFeature.id.in_(filters["location_features"]))
        )

    stmt = stmt.where(and_(*where_clauses))

    # count total
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total_res = await db.execute(count_stmt)
    total = total_res.scalar_one()

    stmt = stmt.options(selectinload(Property.host))
    stmt = stmt.order_by(*SORT_ORDERS.get(filters.get("sort"), SORT_ORDERS["newest"]))
    offset = (page - 1) * per_page
    stmt = stmt.offset(offset).limit(per_page)
    res = await db.execute(stmt)
    items = list(res.scalars().all())
    return items, int(total)


async def get_property(db: AsyncSession, prop_id: int) -> Optional[Property]:
    res = await db.execute(
        select(Property)
        .options(selectinload(Property.host))
        .where(Property.id == prop_id)
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def get_property_by_slug(db: AsyncSession, slug: str) -> Optional[Property]:
    res = await db.execute(
        select(Property)
        .options(selectinload(Property.host))
        .where(Property.slug == slug)
    )
    return res.scalars().first()


async def list_similar_properties(db: AsyncSession, prop: Property, limit: int = 4) -> List[Property]:
    """Other available listings sharing the category or the property type."""
    stmt = (
        select(Property)
        .where(
            or_(
                Property.category_id == prop.category_id,
                Property.property_type_id == prop.property_type_id,
            )
        )
        .where(Property.id != prop.id)
        .where(Property.is_available.is_(True))
        .order_by(Property.id.desc())
        .limit(limit)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_properties_for_host(db: AsyncSession, host_id: int) -> List[Property]:
    res = await db.execute(
        select(Property)
        .where(Property.host_id == host_id)
        .order_by(Property.created_at.desc(), Property.id.desc())
    )
    return list(res.scalars().all())


async def count_properties_for_host(db: AsyncSession, host_id: int) -> int:
    res = await db.execute(select(func.count(Property.id)).where(Property.host_id == host_id))
    return int(res.scalar_one())


async def create_property(
    db: AsyncSession,
    *,
    amenities: Sequence = (),
    location_features: Sequence = (),
    **kwargs,
) -> Property:
    kwargs["slug"] = await unique_slug(db, kwargs["title"])
    prop = Property(**kwargs)
    prop.amenities = list(amenities)
    prop.location_features = list(location_features)
    db.add(prop)
    await db.commit()
    return await get_property(db, prop.id)


async def update_property(
    db: AsyncSession,
    prop: Property,
    data: Dict[str, Any],
    amenities: Optional[Sequence] = None,
    location_features: Optional[Sequence] = None,
) -> Property:
    for k, v in data.items():
        setattr(prop, k, v)
    if amenities is not None:
        prop.amenities = list(amenities)
    if location_features is not None:
        prop.location_features = list(location_features)
    db.add(prop)
    await db.commit()
    return await get_property(db, prop.id)


async def delete_property(db: AsyncSession, prop: Property):
    await db.delete(prop)
    await db.commit()
    return True


# --- Images ---

async def count_images(db: AsyncSession, property_id: int) -> int:
    res = await db.execute(
        select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property_id)
    )
    return int(res.scalar_one())


async def get_image(db: AsyncSession, property_id: int, image_id: int) -> Optional[PropertyImage]:
    res = await db.execute(
        select(PropertyImage)
        .where(PropertyImage.id == image_id)
        .where(PropertyImage.property_id == property_id)
    )
    return res.scalar_one_or_none()


async def _clear_featured(db: AsyncSession, property_id: int) -> None:
    await db.execute(
        update(PropertyImage)
        .where(PropertyImage.property_id == property_id, PropertyImage.is_featured.is_(True))
        .values(is_featured=False)
    )


async def add_images(
    db: AsyncSession,
    property_id: int,
    urls: Sequence[str],
    feature_first: bool,
) -> List[PropertyImage]:
    """
    Store image records. When ``feature_first`` is set the first new image
    replaces the current featured one.
    """
    if feature_first:
        await _clear_featured(db, property_id)

    images = [
        PropertyImage(property_id=property_id, url=url, is_featured=feature_first and i == 0)
        for i, url in enumerate(urls)
    ]
    db.add_all(images)
    await db.commit()
    for img in images:
        await db.refresh(img)
    return images


async def delete_image(db: AsyncSession, image: PropertyImage) -> None:
    """Delete an image; if it was featured, promote the oldest remaining one."""
    property_id = image.property_id
    was_featured = image.is_featured
    await db.delete(image)
    await db.flush()

    if was_featured:
        res = await db.execute(
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.id.asc())
            .limit(1)
        )
        replacement = res.scalar_one_or_none()
        if replacement:
            replacement.is_featured = True
            db.add(replacement)

    await db.commit()


async def set_featured_image(db: AsyncSession, image: PropertyImage) -> PropertyImage:
    await _clear_featured(db, image.property_id)
    image.is_featured = True
    db.add(image)
    await db.commit()
    await db.refresh(image)
    return image
