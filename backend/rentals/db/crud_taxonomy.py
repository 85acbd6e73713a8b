# rentals/db/crud_taxonomy.py
"""
CRUD shared by the admin-managed lookup tables (categories, property types,
amenities, location features). Every function takes the model class first.
"""
from typing import List, Optional, Sequence, Type

from sqlalchemy import delete, select, func, Table
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.db.base import Base
from rentals.db.models import Property


async def list_items(db: AsyncSession, model: Type[Base]) -> List[Base]:
    res = await db.execute(select(model).order_by(model.name.asc()))
    return list(res.scalars().all())


async def get_item(db: AsyncSession, model: Type[Base], item_id: int) -> Optional[Base]:
    res = await db.execute(select(model).where(model.id == item_id))
    return res.scalar_one_or_none()


async def get_items(db: AsyncSession, model: Type[Base], ids: Sequence[int]) -> List[Base]:
    if not ids:
        return []
    res = await db.execute(select(model).where(model.id.in_(list(ids))))
    return list(res.scalars().all())


async def name_taken(
    db: AsyncSession,
    model: Type[Base],
    name: str,
    exclude_id: Optional[int] = None,
) -> bool:
    stmt = select(model.id).where(model.name == name)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    res = await db.execute(stmt)
    return res.first() is not None


async def create_item(db: AsyncSession, model: Type[Base], **kwargs) -> Base:
    item = model(**kwargs)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def update_item(db: AsyncSession, item: Base, data: dict) -> Base:
    for k, v in data.items():
        setattr(item, k, v)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def delete_item(
    db: AsyncSession,
    item: Base,
    link_table: Optional[Table] = None,
    link_column: Optional[str] = None,
) -> None:
    """
    Delete ``item``. When a link table is given, its rows pointing at the item
    are removed in the same transaction first.
    """
    if link_table is not None:
        await db.execute(delete(link_table).where(link_table.c[link_column] == item.id))
    await db.delete(item)
    await db.commit()


async def count_properties_using(db: AsyncSession, column, item_id: int) -> int:
    """Listings whose foreign key ``column`` (e.g. Property.category_id) points at item_id."""
    res = await db.execute(select(func.count(Property.id)).where(column == item_id))
    return int(res.scalar_one())
