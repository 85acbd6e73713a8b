# rentals/api/routers/admin.py
import logging
from typing import Type

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.api.dependencies import AdminUser, CurrentUser
from rentals.core.roles import Role
from rentals.db import crud_taxonomy, crud_users
from rentals.db.base import Base
from rentals.db.models import (
    Amenity,
    Category,
    LocationFeature,
    Property,
    PropertyType,
    property_amenities,
    property_location_features,
)
from rentals.db.session import get_db
from rentals.schemas.property import AmenityOut, TaxonomyCreate, TaxonomyOut
from rentals.schemas.user import UserAdminOut, UserBase, UserRoleUpdate

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


class TaxonomyRoutes:
    """
    List/create/update/delete endpoints for one admin-managed lookup table.

    A lookup either guards deletion (``in_use_column`` set: refuse while
    listings point at it) or detaches itself from listings first
    (``link_table`` set).
    """

    def __init__(
        self,
        path: str,
        model: Type[Base],
        label: str,
        out_schema=TaxonomyOut,
        in_use_column=None,
        in_use_noun: str = "",
        link_table=None,
        link_column: str = None,
    ):
        self.path = path
        self.model = model
        self.label = label
        self.out_schema = out_schema
        self.in_use_column = in_use_column
        self.in_use_noun = in_use_noun
        self.link_table = link_table
        self.link_column = link_column

    def _data(self, body: TaxonomyCreate) -> dict:
        if not body.name:
            raise HTTPException(status_code=400, detail="Name is required")
        data = {"name": body.name, "description": body.description}
        if hasattr(self.model, "icon"):
            data["icon"] = body.icon
        return data

    async def _get_or_404(self, db: AsyncSession, item_id: int):
        item = await crud_taxonomy.get_item(db, self.model, item_id)
        if not item:
            raise HTTPException(status_code=404, detail=f"{self.label} not found")
        return item

    def register(self, router: APIRouter) -> None:
        async def list_items(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
            items = await crud_taxonomy.list_items(db, self.model)
            return [self.out_schema.model_validate(i) for i in items]

        async def create_item(
            body: TaxonomyCreate,
            current_user: AdminUser,
            db: AsyncSession = Depends(get_db),
        ):
            data = self._data(body)
            if await crud_taxonomy.name_taken(db, self.model, data["name"]):
                raise HTTPException(status_code=409, detail=f"{self.label} already exists")

            item = await crud_taxonomy.create_item(
                db, self.model, created_by_id=current_user.id, **data
            )
            logger.info("%s %s created by admin %s", self.label, item.id, current_user.id)
            return self.out_schema.model_validate(item)

        async def update_item(
            item_id: int,
            body: TaxonomyCreate,
            current_user: AdminUser,
            db: AsyncSession = Depends(get_db),
        ):
            data = self._data(body)
            item = await self._get_or_404(db, item_id)
            if await crud_taxonomy.name_taken(db, self.model, data["name"], exclude_id=item.id):
                raise HTTPException(status_code=409, detail=f"{self.label} name already exists")

            item = await crud_taxonomy.update_item(db, item, data)
            return self.out_schema.model_validate(item)

        async def delete_item(
            item_id: int,
            current_user: AdminUser,
            db: AsyncSession = Depends(get_db),
        ):
            item = await self._get_or_404(db, item_id)

            if self.in_use_column is not None:
                in_use = await crud_taxonomy.count_properties_using(db, self.in_use_column, item.id)
                if in_use > 0:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Cannot delete: {in_use} properties are using this {self.in_use_noun}",
                    )

            await crud_taxonomy.delete_item(db, item, self.link_table, self.link_column)
            logger.info("%s %s deleted by admin %s", self.label, item_id, current_user.id)
            return {"message": f"{self.label} deleted successfully"}

        router.add_api_route(self.path, list_items, methods=["GET"])
        router.add_api_route(self.path, create_item, methods=["POST"], status_code=201)
        router.add_api_route(f"{self.path}/{{item_id}}", update_item, methods=["PUT"])
        router.add_api_route(f"{self.path}/{{item_id}}", delete_item, methods=["DELETE"])


# ---------------------------
# Lookup tables
# ---------------------------

TaxonomyRoutes(
    "/categories", Category, "Category",
    in_use_column=Property.category_id, in_use_noun="category",
).register(router)

TaxonomyRoutes(
    "/property-types", PropertyType, "Property type",
    in_use_column=Property.property_type_id, in_use_noun="type",
).register(router)

TaxonomyRoutes(
    "/amenities", Amenity, "Amenity", out_schema=AmenityOut,
    link_table=property_amenities, link_column="amenity_id",
).register(router)

TaxonomyRoutes(
    "/location-features", LocationFeature, "Location feature",
    link_table=property_location_features, link_column="location_feature_id",
).register(router)


# ---------------------------
# Users
# ---------------------------

@router.get("/users")
async def admin_users(current_user: AdminUser, db: AsyncSession = Depends(get_db)):
    users = await crud_users.list_users(db)
    counts = await crud_users.activity_counts(db)

    items = []
    for u in users:
        c = counts.get(u.id, {})
        items.append(
            UserAdminOut(
                **UserBase.model_validate(u).model_dump(),
                updated_at=u.updated_at,
                properties_count=c.get("properties", 0),
                bookings_count=c.get("bookings", 0),
                reviews_count=c.get("reviews", 0),
            )
        )
    return {"items": items}


@router.put("/users/{user_id}/role")
async def set_role(
    user_id: int,
    body: UserRoleUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    if body.role not in {r.value for r in Role}:
        raise HTTPException(status_code=400, detail="Valid role is required")

    user = await crud_users.update_user_role(db, user_id, body.role)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("admin %s set role of user %s to %s", current_user.id, user.id, user.role)
    return {"message": "User role updated successfully", "user": UserBase.model_validate(user)}
