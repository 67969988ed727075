# app/adapters/repos/properties.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Property

# Fields an owner may edit; anything else in the payload is ignored.
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "address",
        "city",
        "state",
        "zip_code",
        "price",
        "deposit",
        "application_fee",
        "lease_term",
        "available_date",
        "property_type",
        "pets_allowed",
        "pet_policy",
        "smoking_policy",
        "max_occupants",
        "utilities_included",
        "hoa_rules",
        "status",
    }
)


class PropertyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, property_id: str) -> Property | None:
        q = select(Property).where(Property.id == property_id)
        return (await self.session.execute(q)).scalars().first()

    async def create(self, data: dict[str, Any]) -> Property:
        prop = Property(**data)
        self.session.add(prop)
        await self.session.flush()
        return prop

    async def update(self, property_id: str, data: dict[str, Any]) -> Property | None:
        """
        Apply an owner edit and bump `version`.

        Applications keep their own snapshot columns, so nothing here reaches
        into existing applications.
        """
        prop = await self.get(property_id)
        if prop is None:
            return None

        changed = False
        for field, value in data.items():
            if field not in EDITABLE_FIELDS:
                continue
            if getattr(prop, field) != value:
                setattr(prop, field, value)
                changed = True

        if changed:
            prop.version = (prop.version or 1) + 1
            prop.updated_at = datetime.now(timezone.utc)
            await self.session.flush()
        return prop
