# app/entrypoints/api/routers/applications.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from ..deps import get_application_service, get_requester, require_api_key
from ..errors import unwrap
from ....domain.types import RejectionInfo, Requester
from ....schemas import ApplicationOut, StatusUpdate
from ....service_layer.applications import ApplicationService

router = APIRouter(prefix="/applications", tags=["applications"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=ApplicationOut, status_code=201)
async def create_application(
    payload: Any = Body(...),
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> ApplicationOut:
    app = unwrap(await svc.create_application(payload, requester.id))
    return ApplicationOut.model_validate(app)


@router.get("/user/{user_id}", response_model=list[ApplicationOut])
async def list_for_user(
    user_id: str,
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> list[ApplicationOut]:
    rows = unwrap(await svc.get_applications_by_user(user_id, requester))
    return [ApplicationOut.model_validate(a) for a in rows]


@router.get("/property/{property_id}", response_model=list[ApplicationOut])
async def list_for_property(
    property_id: str,
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> list[ApplicationOut]:
    rows = unwrap(await svc.get_applications_by_property(property_id, requester))
    return [ApplicationOut.model_validate(a) for a in rows]


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: str,
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> ApplicationOut:
    app = unwrap(await svc.view_application(application_id, requester))
    return ApplicationOut.model_validate(app)


@router.patch("/{application_id}", response_model=ApplicationOut)
async def update_application(
    application_id: str,
    changes: Any = Body(...),
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> ApplicationOut:
    app = unwrap(await svc.update_application(application_id, changes, requester))
    return ApplicationOut.model_validate(app)


@router.patch("/{application_id}/status", response_model=ApplicationOut)
async def update_status(
    application_id: str,
    body: StatusUpdate,
    requester: Requester = Depends(get_requester),
    svc: ApplicationService = Depends(get_application_service),
) -> ApplicationOut:
    rejection = None
    if body.rejection_category or body.rejection_reason or body.rejection_details:
        rejection = RejectionInfo(
            category=body.rejection_category,
            reason=body.rejection_reason,
            details=body.rejection_details,
        )

    app = unwrap(
        await svc.update_application_status(
            application_id,
            body.status,
            requester,
            reason=body.reason,
            rejection=rejection,
            expected_status=body.expected_status,
        )
    )
    return ApplicationOut.model_validate(app)
