# rentals/db/crud_wishlists.py

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.db.models import Property, Wishlist


async def list_wishlists(db: AsyncSession, user_id: int) -> List[Wishlist]:
    res = await db.execute(
        select(Wishlist).where(Wishlist.user_id == user_id).order_by(Wishlist.id.asc())
    )
    return list(res.scalars().all())


async def get_wishlist(db: AsyncSession, wishlist_id: int) -> Optional[Wishlist]:
    res = await db.execute(
        select(Wishlist)
        .where(Wishlist.id == wishlist_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def get_wishlist_by_name(db: AsyncSession, user_id: int, name: str) -> Optional[Wishlist]:
    res = await db.execute(
        select(Wishlist).where(Wishlist.user_id == user_id, Wishlist.name == name)
    )
    return res.scalar_one_or_none()


async def create_wishlist(db: AsyncSession, user_id: int, name: str) -> Wishlist:
    wishlist = Wishlist(user_id=user_id, name=name)
    wishlist.properties = []
    db.add(wishlist)
    await db.commit()
    return await get_wishlist(db, wishlist.id)


async def rename_wishlist(db: AsyncSession, wishlist: Wishlist, name: str) -> Wishlist:
    wishlist.name = name
    db.add(wishlist)
    await db.commit()
    return await get_wishlist(db, wishlist.id)


async def delete_wishlist(db: AsyncSession, wishlist: Wishlist) -> None:
    await db.delete(wishlist)
    await db.commit()


async def add_property(db: AsyncSession, wishlist: Wishlist, prop: Property) -> Wishlist:
    wishlist.properties.append(prop)
    await db.commit()
    return await get_wishlist(db, wishlist.id)


async def remove_property(db: AsyncSession, wishlist: Wishlist, property_id: int) -> Wishlist:
    wishlist.properties = [p for p in wishlist.properties if p.id != property_id]
    await db.commit()
    return await get_wishlist(db, wishlist.id)
