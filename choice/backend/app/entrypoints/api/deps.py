# app/entrypoints/api/deps.py
from __future__ import annotations

from fastapi import Header, HTTPException, Request

from ...config import settings
from ...domain.types import Requester
from ...models import UserRole
from ...service_layer.applications import ApplicationService
from ...service_layer.properties import PropertyService


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


def get_requester(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
) -> Requester:
    """
    Identity is established by the auth gateway in front of us; we trust
    its headers and only check they are well formed.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    raw_role = (x_user_role or UserRole.renter.value).strip().lower()
    try:
        role = UserRole(raw_role)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from None

    return Requester(id=x_user_id.strip(), role=role)


def get_application_service(request: Request) -> ApplicationService:
    return request.app.state.application_service


def get_property_service(request: Request) -> PropertyService:
    return request.app.state.property_service
