# rentals/services/bookings.py
"""
Database-backed booking operations built on ``booking_rules``.

Each function runs one request's worth of work on the given session and
commits it. Rule violations surface as ``RentalError`` subclasses.
"""
import asyncio
import logging
import weakref
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.core.config import settings
from rentals.core.enums import BookingStatus
from rentals.core.exceptions import ConflictError, NotFoundError
from rentals.db import crud_bookings, crud_properties, crud_reviews
from rentals.db.models import Booking, Property, Review
from rentals.services import booking_rules
from rentals.services.booking_rules import AvailabilityResult

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.utcnow()


# One lock per property and event loop. SQLite ignores FOR UPDATE, so the
# overlap check and insert are also serialised inside the process.
_locks_by_loop: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[int, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def _property_lock(property_id: int) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    locks = _locks_by_loop.setdefault(loop, {})
    lock = locks.get(property_id)
    if lock is None:
        lock = locks[property_id] = asyncio.Lock()
    return lock


async def check_availability(
    db: AsyncSession,
    property_id: int,
    start_date: datetime,
    end_date: datetime,
) -> AvailabilityResult:
    prop = await crud_properties.get_property(db, property_id)
    if not prop:
        raise NotFoundError("Property not found")

    # Only run the booking query when the cheap checks pass
    result = booking_rules.evaluate_availability(prop, start_date, end_date)
    if not result.available:
        return result

    existing = await crud_bookings.find_conflicting_bookings(db, property_id, start_date, end_date)
    return booking_rules.evaluate_availability(prop, start_date, end_date, existing)


async def create_booking(
    db: AsyncSession,
    *,
    guest,
    property_id: int,
    start_date: datetime,
    end_date: datetime,
    guest_count: int,
    now: Optional[datetime] = None,
) -> Booking:
    now = now or utcnow()

    async with _property_lock(property_id):
        # Start a fresh transaction so the checks below see every booking
        # committed before the lock was granted.
        await db.commit()

        res = await db.execute(
            select(Property).where(Property.id == property_id).with_for_update()
        )
        prop = res.scalar_one_or_none()
        if not prop:
            raise NotFoundError("Property not found")

        try:
            booking_rules.validate_new_booking(prop, guest, start_date, end_date, guest_count, now)

            conflicts = await crud_bookings.find_conflicting_bookings(
                db, prop.id, start_date, end_date, for_update=True
            )
            if conflicts:
                raise ConflictError("Property is already booked for the selected dates")
        except Exception:
            await db.rollback()
            raise

        total_price = booking_rules.compute_total_price(
            prop.price, prop.rental_period, start_date, end_date
        )

        booking = crud_bookings.add_booking(
            db,
            guest_id=guest.id,
            property_id=prop.id,
            start_date=start_date,
            end_date=end_date,
            guest_count=guest_count,
            total_price=total_price,
        )
        await db.commit()

    logger.info(
        "Booking %s created for property %s by user %s (total %s)",
        booking.id,
        prop.id,
        guest.id,
        total_price,
    )
    return await crud_bookings.get_booking(db, booking.id)


async def cancel_booking(
    db: AsyncSession,
    *,
    booking_id: int,
    user,
    now: Optional[datetime] = None,
) -> Booking:
    """Guest-initiated cancellation, subject to the lead-time cutoff."""
    booking = await crud_bookings.get_booking(db, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    booking_rules.ensure_guest_can_cancel(
        booking,
        user,
        now or utcnow(),
        cutoff_hours=settings.CANCELLATION_CUTOFF_HOURS,
    )

    booking = await crud_bookings.set_status(db, booking, BookingStatus.CANCELLED.value)
    logger.info("Booking %s cancelled by guest %s", booking.id, user.id)
    return booking


async def update_booking_status(
    db: AsyncSession,
    *,
    booking_id: int,
    user,
    status: Optional[str],
) -> Booking:
    """Host- or admin-initiated transition."""
    target = booking_rules.validate_host_target(status)

    booking = await crud_bookings.get_booking(db, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    booking_rules.ensure_host_can_set_status(booking, booking.property, user, target)

    previous = booking.status
    booking = await crud_bookings.set_status(db, booking, target)
    logger.info(
        "Booking %s moved from %s to %s by user %s",
        booking.id,
        previous,
        target,
        user.id,
    )
    return booking


async def add_review(
    db: AsyncSession,
    *,
    user,
    booking_id: int,
    property_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    rating = booking_rules.validate_rating(rating)

    booking = await crud_bookings.get_booking(db, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    booking_rules.ensure_review_allowed(booking, user, property_id)

    if await crud_reviews.get_review_for_booking(db, booking_id):
        raise ConflictError("Review already exists for this booking")

    try:
        review = await crud_reviews.create_review(
            db,
            booking_id=booking_id,
            property_id=property_id,
            user_id=user.id,
            rating=rating,
            comment=comment,
        )
    except IntegrityError:
        # Lost a race against another submission for the same booking
        await db.rollback()
        raise ConflictError("Review already exists for this booking")

    logger.info("Review %s added for booking %s", review.id, booking_id)
    return review
