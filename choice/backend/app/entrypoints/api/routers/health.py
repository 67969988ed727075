# app/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..deps import require_api_key
from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config(request: Request) -> dict[str, Any]:
    def _redact(v: str | None) -> str | None:
        if not v:
            return v
        if len(v) <= 8:
            return "***"
        return v[:4] + "***" + v[-4:]

    return {
        "ENV": settings.ENV,
        "CHOICE_DB_URL": settings.CHOICE_DB_URL,
        "CREDIT_BUREAU_PROVIDER": settings.CREDIT_BUREAU_PROVIDER,
        "EMAIL_PROVIDER": settings.EMAIL_PROVIDER,
        "EMAIL_API_URL": settings.EMAIL_API_URL,
        "EMAIL_API_KEY": _redact(settings.EMAIL_API_KEY),
        "PROPERTY_CACHE_TTL_S": settings.PROPERTY_CACHE_TTL_S,
        "background_tasks_pending": getattr(request.app.state.scheduler, "pending", None),
    }
