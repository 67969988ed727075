# app/entrypoints/api/routers/properties.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..deps import get_property_service, get_requester, require_api_key
from ..errors import unwrap
from ....domain.types import Requester
from ....schemas import PropertyOut
from ....service_layer.properties import PropertyService

router = APIRouter(prefix="/properties", tags=["properties"], dependencies=[Depends(require_api_key)])


@router.get("/{property_id}", response_model=PropertyOut)
async def get_property(
    property_id: str,
    svc: PropertyService = Depends(get_property_service),
) -> PropertyOut:
    prop = await svc.get_property(property_id)
    if prop is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


@router.patch("/{property_id}", response_model=PropertyOut)
async def update_property(
    property_id: str,
    changes: Any = Body(...),
    requester: Requester = Depends(get_requester),
    svc: PropertyService = Depends(get_property_service),
) -> PropertyOut:
    return unwrap(await svc.update_property(property_id, changes, requester))
