# app/service_layer/notifications.py
from __future__ import annotations

import logging
from typing import Any

from ..adapters.clients.email import EmailSender
from ..domain.types import MAX_SCORE
from ..models import NotificationKind
from .email_templates import application_confirmation_email, status_change_email, status_label
from .unit_of_work import UnitOfWorkFactory

log = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    In-app notifications + transactional email for application events.

    Each call opens its own unit of work: these run after the triggering
    request has committed, usually from a background task.
    Missing rows are logged and skipped, not raised.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, email: EmailSender) -> None:
        self.uow_factory = uow_factory
        self.email = email

    async def notify_owner_of_new_application(self, application_id: str) -> None:
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                log.warning("new-application notice skipped: application_id=%s not found", application_id)
                return
            prop = await uow.repos.get_property(app.property_id)
            if prop is None or not prop.owner_id:
                log.info("new-application notice skipped: no owner for property_id=%s", app.property_id)
                return

            applicant = await uow.repos.get_user(app.user_id)
            who = (applicant.full_name if applicant else None) or "A renter"
            await uow.repos.create_notification(
                user_id=prop.owner_id,
                kind=NotificationKind.new_application,
                title="New application received",
                message=f"{who} applied for {prop.title}",
                payload={"application_id": app.id, "property_id": prop.id},
            )

    async def notify_owner_of_scoring_complete(
        self, application_id: str, score: int, max_score: int = MAX_SCORE
    ) -> None:
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                log.warning("scoring notice skipped: application_id=%s not found", application_id)
                return
            prop = await uow.repos.get_property(app.property_id)
            if prop is None or not prop.owner_id:
                return

            await uow.repos.create_notification(
                user_id=prop.owner_id,
                kind=NotificationKind.scoring_complete,
                title="Application scored",
                message=f"Application for {prop.title} scored {score}/{max_score}",
                payload={"application_id": app.id, "score": score, "max_score": max_score},
            )

    async def send_status_change_notification(
        self, application_id: str, status: str, metadata: dict[str, Any] | None = None
    ) -> None:
        meta = dict(metadata or {})

        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                log.warning("status notice skipped: application_id=%s not found", application_id)
                return
            applicant = await uow.repos.get_user(app.user_id)
            title = app.property_title_snapshot

            message = f"Your application for {title or 'the property'} is now {status_label(status).lower()}"
            await uow.repos.create_notification(
                user_id=app.user_id,
                kind=NotificationKind.status_change,
                title="Application status updated",
                message=message,
                payload={"application_id": app.id, "status": status, **meta},
            )

        if applicant is None or not applicant.email:
            return

        await self.email.send_email(
            status_change_email(
                to=applicant.email,
                applicant_name=applicant.full_name,
                property_title=title,
                status=status,
                reason=meta.get("reason"),
                rejection_reason=meta.get("rejection_reason"),
                appealable=bool(meta.get("appealable", False)),
            )
        )

    async def send_application_confirmation(self, application_id: str) -> None:
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                return
            applicant = await uow.repos.get_user(app.user_id)

        if applicant is None or not applicant.email:
            log.info("confirmation email skipped: no email for user_id=%s", app.user_id)
            return

        await self.email.send_email(
            application_confirmation_email(
                to=applicant.email,
                applicant_name=applicant.full_name,
                property_title=app.property_title_snapshot,
            )
        )
