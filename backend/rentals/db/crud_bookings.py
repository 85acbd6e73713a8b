# rentals/db/crud_bookings.py

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.core.enums import ACTIVE_BOOKING_STATUSES, ALL_BOOKING_STATUSES, BookingStatus, PaymentStatus
from rentals.db.models import Booking, Property


def _with_relations(stmt):
    return stmt.options(
        selectinload(Booking.property),
        selectinload(Booking.guest),
    )


async def get_booking(db: AsyncSession, booking_id: int) -> Optional[Booking]:
    stmt = _with_relations(select(Booking).where(Booking.id == booking_id)).execution_options(
        populate_existing=True
    )
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def find_conflicting_bookings(
    db: AsyncSession,
    property_id: int,
    start_date: datetime,
    end_date: datetime,
    for_update: bool = False,
) -> List[Booking]:
    """
    Active bookings of the property whose range touches [start_date, end_date].
    Bounds are inclusive on both sides. ``for_update`` makes it a locking read,
    which on MySQL also sees rows committed after the transaction began.
    """
    stmt = (
        select(Booking)
        .where(Booking.property_id == property_id)
        .where(Booking.status.in_(ACTIVE_BOOKING_STATUSES))
        .where(Booking.start_date <= end_date)
        .where(Booking.end_date >= start_date)
        .order_by(Booking.start_date.asc())
    )
    if for_update:
        stmt = stmt.with_for_update()
    res = await db.execute(stmt)
    return list(res.scalars().all())


def add_booking(
    db: AsyncSession,
    *,
    guest_id: int,
    property_id: int,
    start_date: datetime,
    end_date: datetime,
    guest_count: int,
    total_price: Decimal,
) -> Booking:
    """
    Stage a new pending booking. Does NOT commit: the caller holds the
    property lock and owns the transaction.
    """
    booking = Booking(
        guest_id=guest_id,
        property_id=property_id,
        start_date=start_date,
        end_date=end_date,
        guest_count=guest_count,
        total_price=total_price,
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.UNPAID.value,
    )
    db.add(booking)
    return booking


async def set_status(db: AsyncSession, booking: Booking, status: str) -> Booking:
    booking.status = status
    db.add(booking)
    await db.commit()
    return await get_booking(db, booking.id)


async def list_bookings_for_guest(
    db: AsyncSession,
    guest_id: int,
    status: Optional[str] = None,
) -> List[Booking]:
    stmt = _with_relations(select(Booking).where(Booking.guest_id == guest_id))
    if status in ALL_BOOKING_STATUSES:
        stmt = stmt.where(Booking.status == status)
    res = await db.execute(stmt.order_by(Booking.created_at.desc(), Booking.id.desc()))
    return list(res.scalars().all())


async def list_bookings_for_host(
    db: AsyncSession,
    host_id: int,
    status: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Booking]:
    """
    All bookings for properties owned by host_id
    """
    stmt = _with_relations(
        select(Booking)
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
    )
    if status in ALL_BOOKING_STATUSES:
        stmt = stmt.where(Booking.status == status)
    stmt = stmt.order_by(Booking.created_at.desc(), Booking.id.desc())
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def count_bookings_for_property(db: AsyncSession, property_id: int) -> int:
    res = await db.execute(
        select(func.count(Booking.id)).where(Booking.property_id == property_id)
    )
    return int(res.scalar_one())


async def booking_counts_for_host(db: AsyncSession, host_id: int) -> Dict[str, int]:
    stmt = (
        select(Booking.status, func.count(Booking.id))
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .group_by(Booking.status)
    )
    res = await db.execute(stmt)

    counts = {"total": 0}
    counts.update({s: 0 for s in ALL_BOOKING_STATUSES})
    for status, count in res.all():
        counts[status] = int(count)
        counts["total"] += int(count)
    return counts


async def revenue_for_host(db: AsyncSession, host_id: int) -> float:
    """Sum of total_price over confirmed and completed bookings."""
    stmt = (
        select(func.coalesce(func.sum(Booking.total_price), 0))
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .where(
            Booking.status.in_(
                (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
            )
        )
    )
    res = await db.execute(stmt)
    return float(res.scalar_one() or 0)
