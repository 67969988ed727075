# app/entrypoints/fastapi_app.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ..adapters.cache import TTLCache
from ..adapters.clients.credit_bureau import CreditBureau, build_credit_bureau
from ..adapters.clients.email import EmailSender, build_email_sender
from ..config import settings
from ..db import AsyncSessionLocal, engine as default_engine
from ..logging_config import configure_logging
from ..models import Base
from ..service_layer.applications import ApplicationService
from ..service_layer.notifications import NotificationDispatcher
from ..service_layer.properties import PropertyService
from ..service_layer.tasks import AsyncioTaskScheduler, TaskScheduler
from ..service_layer.unit_of_work import SqlAlchemyUnitOfWork
from .api.errors import register_exception_handlers
from .api.routers import applications, health, properties

log = logging.getLogger("choice.api")


def create_app(
    *,
    engine: AsyncEngine | None = None,
    session_factory: Callable[[], AsyncSession] | None = None,
    credit_bureau: CreditBureau | None = None,
    email_sender: EmailSender | None = None,
    scheduler: TaskScheduler | None = None,
    cache: TTLCache | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """
    Wire collaborators onto app.state. Everything is overridable so tests can
    swap in an in-memory engine, a recording scheduler or a capturing sender.
    """
    if configure_logs:
        configure_logging()

    db_engine = engine or default_engine
    sessions = session_factory or AsyncSessionLocal

    def uow_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(sessions)

    app = FastAPI(title="Choice Properties - Rental Applications")

    # `is None` rather than `or`: an empty TTLCache is falsy
    app.state.scheduler = AsyncioTaskScheduler() if scheduler is None else scheduler
    app.state.cache = TTLCache(ttl_s=settings.PROPERTY_CACHE_TTL_S) if cache is None else cache
    app.state.notifier = NotificationDispatcher(
        uow_factory, build_email_sender() if email_sender is None else email_sender
    )
    app.state.application_service = ApplicationService(
        uow_factory=uow_factory,
        credit_bureau=build_credit_bureau() if credit_bureau is None else credit_bureau,
        scheduler=app.state.scheduler,
        notifier=app.state.notifier,
    )
    app.state.property_service = PropertyService(uow_factory=uow_factory, cache=app.state.cache)

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created in dev.
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        aclose = getattr(app.state.scheduler, "aclose", None)
        if aclose is not None:
            await aclose()

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Attach a request id to every response and log a compact access line."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        log.info(
            "access request_id=%s method=%s path=%s status=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    register_exception_handlers(app)

    # Routers
    app.include_router(health.router)
    app.include_router(applications.router)
    app.include_router(properties.router)

    return app
