# app/service_layer/demo_seed.py
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.properties import PropertyRepository
from ..adapters.repos.users import UserRepository
from ..models import PropertyStatus, UserRole

DEMO_USERS: tuple[dict[str, Any], ...] = (
    {"id": "demo-landlord", "email": "landlord@choice.example", "full_name": "Dana Landlord", "role": UserRole.landlord},
    {"id": "demo-renter", "email": "renter@choice.example", "full_name": "Riley Renter", "role": UserRole.renter},
    {"id": "demo-admin", "email": "admin@choice.example", "full_name": "Ada Admin", "role": UserRole.admin},
)

DEMO_PROPERTIES: tuple[dict[str, Any], ...] = (
    {
        "id": "demo-property-1",
        "owner_id": "demo-landlord",
        "title": "Sunny 2BR near the park",
        "address": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "price": 1850.0,
        "deposit": 1850.0,
        "application_fee": 45.0,
        "lease_term": "12 months",
        "available_date": "2026-01-01",
        "property_type": "apartment",
        "pets_allowed": True,
        "pet_policy": "Cats and small dogs, $300 pet deposit",
        "smoking_policy": "No smoking",
        "max_occupants": 4,
        "utilities_included": ["water", "trash"],
        "hoa_rules": None,
    },
    {
        "id": "demo-property-2",
        "owner_id": "demo-landlord",
        "title": "Downtown studio",
        "address": "9 Market Ave",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62702",
        "price": 1200.0,
        "deposit": 600.0,
        "application_fee": 35.0,
        "lease_term": "6 months",
        "available_date": "2026-02-15",
        "property_type": "studio",
        "pets_allowed": False,
        "pet_policy": None,
        "smoking_policy": "No smoking",
        "max_occupants": 1,
        "utilities_included": [],
        "hoa_rules": "Quiet hours 10pm-7am",
    },
)


async def seed_demo(session: AsyncSession) -> dict[str, Any]:
    """
    Idempotent demo seed:
    - creates the demo landlord/renter/admin users
    - creates two listings owned by the landlord
    - safe to run multiple times (existing rows are left alone)
    """
    users = UserRepository(session)
    properties = PropertyRepository(session)
    created_users = 0
    created_properties = 0

    for u in DEMO_USERS:
        if await users.get(u["id"]) is None:
            await users.create(user_id=u["id"], email=u["email"], full_name=u["full_name"], role=u["role"])
            created_users += 1

    for p in DEMO_PROPERTIES:
        if await properties.get(p["id"]) is None:
            await properties.create({**p, "status": PropertyStatus.active})
            created_properties += 1

    return {"users_created": created_users, "properties_created": created_properties}
