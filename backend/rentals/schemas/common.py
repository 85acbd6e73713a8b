# rentals/schemas/common.py
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC; convert aware inputs, pass naive ones through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class RequestModel(BaseModel):
    """
    Base for request bodies: accepts both camelCase (propertyId) and
    snake_case (property_id) keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
