# scripts/seed.py
import asyncio
import logging

from rentals.db.base import Base
from rentals.db.session import AsyncSessionLocal, engine
from rentals.db import crud_properties, crud_taxonomy
from rentals.db.crud_users import create_user, get_user_by_email
from rentals.db.models import Amenity, Category, LocationFeature, PropertyType

logger = logging.getLogger("seed")

USERS = [
    ("Admin User", "admin@example.com", "Admin@123", "admin", None),
    ("Host User", "host@example.com", "Host@123", "host", "+1234567890"),
    ("Guest User", "guest@example.com", "Guest@123", "guest", None),
]

CATEGORIES = [
    ("Apartment", "Residential units in a building with multiple units"),
    ("House", "Standalone residential buildings"),
    ("Villa", "Luxury standalone houses with gardens"),
    ("Condo", "Individually owned units in a building with shared amenities"),
    ("Townhouse", "Row houses sharing walls with adjacent properties"),
]

PROPERTY_TYPES = [
    ("Studio", "Single room serving as bedroom, living room and kitchen"),
    ("1 Bedroom", "Property with one separate bedroom"),
    ("2 Bedrooms", "Property with two separate bedrooms"),
    ("3+ Bedrooms", "Property with three or more bedrooms"),
    ("Penthouse", "Luxury apartment on the top floor of a building"),
]

AMENITIES = [
    ("WiFi", "wifi"),
    ("Air Conditioning", "fan"),
    ("Heating", "thermometer"),
    ("Kitchen", "utensils"),
    ("TV", "tv"),
    ("Free Parking", "car"),
    ("Swimming Pool", "swimming-pool"),
    ("Gym", "dumbbell"),
    ("Washer", "washer"),
    ("Dryer", "dryer"),
]

LOCATION_FEATURES = [
    "Beach Access",
    "Mountain View",
    "City Center",
    "Near Public Transport",
    "Quiet Neighborhood",
    "Near Restaurants",
    "Near Shopping",
    "Near Schools",
    "Near Hospital",
    "Near Park",
]


async def _ensure(db, model, name, admin_id, **extra):
    if await crud_taxonomy.name_taken(db, model, name):
        return
    await crud_taxonomy.create_item(db, model, name=name, created_by_id=admin_id, **extra)


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        users = {}
        for name, email, password, role, phone in USERS:
            user = await get_user_by_email(db, email)
            if not user:
                user = await create_user(
                    db, name=name, email=email, password=password,
                    phone=phone, role=role, is_verified=True,
                )
            users[role] = user
        admin_id = users["admin"].id

        for name, description in CATEGORIES:
            await _ensure(db, Category, name, admin_id, description=description)
        for name, description in PROPERTY_TYPES:
            await _ensure(db, PropertyType, name, admin_id, description=description)
        for name, icon in AMENITIES:
            await _ensure(db, Amenity, name, admin_id, icon=icon)
        for name in LOCATION_FEATURES:
            await _ensure(db, LocationFeature, name, admin_id)

        # one sample listing so the guest browse page is not empty
        host = users["host"]
        if await crud_properties.count_properties_for_host(db, host.id) == 0:
            category = (await crud_taxonomy.list_items(db, Category))[0]
            ptype = (await crud_taxonomy.list_items(db, PropertyType))[0]
            wifi = [a for a in await crud_taxonomy.list_items(db, Amenity) if a.name == "WiFi"]
            await crud_properties.create_property(
                db,
                host_id=host.id,
                category_id=category.id,
                property_type_id=ptype.id,
                title="Sunny Studio Near The Park",
                description="Bright studio with a kitchenette, five minutes from the park.",
                price=100,
                listing_type="RENT",
                rental_period="DAY",
                bedrooms=1,
                bathrooms=1,
                address="12 Garden Street",
                city="Springfield",
                country="USA",
                amenities=wifi,
            )

    logger.info("Seed complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
