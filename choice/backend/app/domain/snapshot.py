# app/domain/snapshot.py
from __future__ import annotations

from typing import Any

from ..models import Property


def _full_address(prop: Property) -> str:
    tail = " ".join(p for p in (prop.state, prop.zip_code) if p)
    parts = [prop.address, prop.city, tail]
    return ", ".join(p.strip() for p in parts if p and p.strip())


def build_property_snapshot(prop: Property) -> dict[str, Any]:
    """
    Application columns that freeze the property's terms as the applicant saw them.
    Written once at insert; later property edits never touch them.
    """
    status = getattr(prop.status, "value", prop.status)
    return {
        "rent_snapshot": prop.price,
        "deposit_snapshot": prop.deposit,
        "application_fee_snapshot": prop.application_fee,
        "lease_term_snapshot": prop.lease_term,
        "available_date_snapshot": prop.available_date,
        "property_title_snapshot": prop.title,
        "property_address_snapshot": _full_address(prop),
        "property_type_snapshot": prop.property_type,
        "policies_snapshot": {
            "pets_allowed": prop.pets_allowed,
            "pet_policy": prop.pet_policy,
            "smoking_policy": prop.smoking_policy,
            "max_occupants": prop.max_occupants,
            "utilities_included": list(prop.utilities_included or []),
            "hoa_rules": prop.hoa_rules,
        },
        "property_version_snapshot": prop.version,
        "property_status_snapshot": status,
    }


SNAPSHOT_FIELDS: tuple[str, ...] = (
    "rent_snapshot",
    "deposit_snapshot",
    "application_fee_snapshot",
    "lease_term_snapshot",
    "available_date_snapshot",
    "property_title_snapshot",
    "property_address_snapshot",
    "property_type_snapshot",
    "policies_snapshot",
    "property_version_snapshot",
    "property_status_snapshot",
)
