# rentals/db/crud_users.py

from typing import Dict, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.core.roles import Role
from rentals.core.security import get_password_hash
from rentals.db.models import Booking, Property, Review, User, UserRefreshToken


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(select(User).order_by(User.id.desc()))
    return list(res.scalars().all())


async def activity_counts(db: AsyncSession) -> Dict[int, Dict[str, int]]:
    """{user_id: {"properties": n, "bookings": n, "reviews": n}} for users with any activity."""
    counts: Dict[int, Dict[str, int]] = {}
    for key, column in (
        ("properties", Property.host_id),
        ("bookings", Booking.guest_id),
        ("reviews", Review.user_id),
    ):
        res = await db.execute(select(column, func.count()).group_by(column))
        for user_id, count in res.all():
            counts.setdefault(user_id, {"properties": 0, "bookings": 0, "reviews": 0})
            counts[user_id][key] = int(count)
    return counts


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
    role: str = Role.GUEST.value,
    is_verified: bool = False,
) -> User:
    """
    Create a user with hashed password.
    """
    user = User(
        name=name,
        email=email,
        phone=phone,
        hashed_password=get_password_hash(password),
        role=role,
        is_verified=is_verified,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_user_role(db: AsyncSession, user_id: int, role: str) -> Optional[User]:
    user = await get_user(db, user_id)
    if not user:
        return None

    user.role = role
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def save_refresh_token(db: AsyncSession, user_id: int, token: str) -> None:
    """
    Store a new refresh token for the user.
    Simple strategy: revoke existing, then insert new.
    """
    await db.execute(
        update(UserRefreshToken)
        .where(UserRefreshToken.user_id == user_id, UserRefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )

    db.add(UserRefreshToken(user_id=user_id, token=token))
    await db.commit()


async def is_refresh_token_active(db: AsyncSession, token: str) -> bool:
    res = await db.execute(
        select(UserRefreshToken.id).where(
            UserRefreshToken.token == token,
            UserRefreshToken.revoked == False,  # noqa: E712
        )
    )
    return res.first() is not None


async def revoke_refresh_token(db: AsyncSession, token: str) -> None:
    """
    Mark a single refresh token as revoked.
    """
    await db.execute(
        update(UserRefreshToken)
        .where(UserRefreshToken.token == token, UserRefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )
    await db.commit()
