# rentals/db/crud_reviews.py

from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentals.db.models import Review


async def get_review_for_booking(db: AsyncSession, booking_id: int) -> Optional[Review]:
    res = await db.execute(select(Review).where(Review.booking_id == booking_id))
    return res.scalar_one_or_none()


async def get_review(db: AsyncSession, review_id: int) -> Optional[Review]:
    res = await db.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.id == review_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def create_review(
    db: AsyncSession,
    *,
    booking_id: int,
    property_id: int,
    user_id: int,
    rating: int,
    comment: Optional[str],
) -> Review:
    review = Review(
        booking_id=booking_id,
        property_id=property_id,
        user_id=user_id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    await db.commit()
    return await get_review(db, review.id)


async def list_reviews_for_property(db: AsyncSession, property_id: int) -> List[Review]:
    res = await db.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.property_id == property_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return list(res.scalars().all())


async def rating_summary(
    db: AsyncSession,
    property_ids: Iterable[int],
) -> Dict[int, Dict[str, object]]:
    """
    {property_id: {"count": n, "average": avg or None}} for the given ids.
    Properties without reviews get count 0 and average None.
    """
    ids = list(property_ids)
    summary: Dict[int, Dict[str, object]] = {
        pid: {"count": 0, "average": None} for pid in ids
    }
    if not ids:
        return summary

    stmt = (
        select(Review.property_id, func.count(Review.id), func.avg(Review.rating))
        .where(Review.property_id.in_(ids))
        .group_by(Review.property_id)
    )
    res = await db.execute(stmt)
    for property_id, count, average in res.all():
        summary[property_id] = {
            "count": int(count),
            "average": float(average) if average is not None else None,
        }
    return summary
