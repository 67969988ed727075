# app/service_layer/applications.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError

from ..adapters.clients.credit_bureau import CreditBureau
from ..domain.errors import (
    ConflictError,
    DuplicateError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from ..domain.policies import Action, authorize
from ..domain.snapshot import build_property_snapshot
from ..domain.transitions import require_transition
from ..domain.types import ApplicationParties, RejectionInfo, Requester, StatusHistoryEntry
from ..models import Application, ApplicationStatus, Property, User
from ..schemas import ApplicationCreate, ApplicationUpdate, first_error_message
from .notifications import NotificationDispatcher
from .scoring import rescore
from .tasks import TaskScheduler
from .unit_of_work import UnitOfWorkFactory

log = logging.getLogger(__name__)

T = TypeVar("T")

DUPLICATE_APPLICATION_MESSAGE = (
    "You have already applied for this property. Please check your existing applications."
)

# editing any of these invalidates the stored score
SCORING_INPUT_FIELDS = frozenset({"employment", "personal_info"})

REVIEW_DECISIONS = frozenset({ApplicationStatus.approved, ApplicationStatus.rejected})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_status(value: Any, field: str = "status") -> ApplicationStatus:
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(str(value).strip())
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise ValidationError(f"{field}: unknown status {value!r}. Expected one of: {allowed}") from None


def _parties(app: Application, prop: Property | None) -> ApplicationParties:
    return ApplicationParties(applicant_id=app.user_id, owner_id=prop.owner_id if prop else None)


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Either data or a typed, user-facing error. Never both."""

    data: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ApplicationService:
    """
    Create / edit / move applications through their lifecycle.

    Domain rules live in app.domain; this class sequences them around a unit
    of work and hands best-effort follow-ups (conversation, email, in-app
    notices) to the scheduler after commit.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        credit_bureau: CreditBureau,
        scheduler: TaskScheduler,
        notifier: NotificationDispatcher,
    ) -> None:
        self.uow_factory = uow_factory
        self.credit_bureau = credit_bureau
        self.scheduler = scheduler
        self.notifier = notifier

    async def _guard(self, op: str, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> ServiceResult[T]:
        try:
            data = await fn(*args, **kwargs)
        except ServiceError as e:
            log.info("%s rejected: %s: %s", op, type(e).__name__, e.message)
            return ServiceResult(error=e)
        return ServiceResult(data=data)

    # -----------------------------
    # Create
    # -----------------------------
    async def create_application(self, payload: Any, applicant_id: str) -> ServiceResult[Application]:
        return await self._guard("create_application", self._create, payload, applicant_id)

    async def _create(self, payload: Any, applicant_id: str) -> Application:
        try:
            body = ApplicationCreate.model_validate(payload if payload is not None else {})
        except PydanticValidationError as exc:
            raise ValidationError(first_error_message(exc)) from None

        now = _utcnow()
        async with self.uow_factory() as uow:
            prop = await uow.repos.get_property(body.property_id)
            if prop is None:
                raise NotFoundError("Property not found")

            if await uow.repos.check_duplicate_application(applicant_id, prop.id):
                raise DuplicateError(DUPLICATE_APPLICATION_MESSAGE)

            first_entry = StatusHistoryEntry(
                status=ApplicationStatus.submitted,
                changed_at=now,
                changed_by=applicant_id,
                reason="Application submitted",
            )
            record = {
                **body.model_dump(exclude={"property_id"}),
                **build_property_snapshot(prop),
                "user_id": applicant_id,
                "property_id": prop.id,
                "status": ApplicationStatus.submitted,
                "status_history": [first_entry.as_dict()],
                "created_at": now,
                "updated_at": now,
            }
            try:
                app = await uow.repos.create_application(record)
            except IntegrityError:
                # lost a race with a concurrent submit for the same property
                raise DuplicateError(DUPLICATE_APPLICATION_MESSAGE) from None

            # the score has to exist by the time anyone reads the application
            await rescore(uow.repos, app, self.credit_bureau)
            applicant = await uow.repos.get_user(applicant_id)
            await uow.commit()

        log.info("application created id=%s property_id=%s user_id=%s score=%s", app.id, prop.id, applicant_id, app.score)
        self._schedule_created(app, prop, applicant)
        return app

    def _schedule_created(self, app: Application, prop: Property, applicant: User | None) -> None:
        if prop.owner_id:
            self.scheduler.schedule(f"conversation:{app.id}", partial(self.bootstrap_conversation, app.id))
        if applicant is not None and applicant.email:
            self.scheduler.schedule(
                f"confirmation-email:{app.id}", partial(self.notifier.send_application_confirmation, app.id)
            )
        self.scheduler.schedule(
            f"owner-notice:{app.id}", partial(self.notifier.notify_owner_of_new_application, app.id)
        )

    async def bootstrap_conversation(self, application_id: str) -> str | None:
        """Open a thread between applicant and owner and link it to the application."""
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                return None
            prop = await uow.repos.get_property(app.property_id)
            if prop is None or not prop.owner_id:
                return None

            conv = await uow.repos.create_conversation(
                {
                    "property_id": prop.id,
                    "application_id": app.id,
                    "subject": f"Application for {prop.title}",
                }
            )
            await uow.repos.add_conversation_participant(conv.id, app.user_id)
            await uow.repos.add_conversation_participant(conv.id, prop.owner_id)
            await uow.repos.update_application(app.id, {"conversation_id": conv.id})

        log.info("conversation %s opened for application_id=%s", conv.id, application_id)
        return conv.id

    # -----------------------------
    # Edit
    # -----------------------------
    async def update_application(
        self, application_id: str, changes: Any, requester: Requester
    ) -> ServiceResult[Application]:
        return await self._guard("update_application", self._update, application_id, changes, requester)

    async def _update(self, application_id: str, changes: Any, requester: Requester) -> Application:
        breakdown = None
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                raise NotFoundError("Application not found")
            prop = await uow.repos.get_property(app.property_id)
            authorize(Action.edit, requester, parties=_parties(app, prop))

            try:
                data = ApplicationUpdate.model_validate(changes if changes is not None else {}).changes()
            except PydanticValidationError as exc:
                raise ValidationError(first_error_message(exc)) from None

            if not data:
                return app

            app = await uow.repos.update_application(app.id, data)
            if SCORING_INPUT_FIELDS & data.keys():
                breakdown = await rescore(uow.repos, app, self.credit_bureau)

        if breakdown is not None:
            self.scheduler.schedule(
                f"scoring-notice:{app.id}",
                partial(
                    self.notifier.notify_owner_of_scoring_complete,
                    app.id,
                    breakdown.total_score,
                    breakdown.max_score,
                ),
            )
        return app

    # -----------------------------
    # Status
    # -----------------------------
    async def update_application_status(
        self,
        application_id: str,
        new_status: Any,
        requester: Requester,
        *,
        reason: str | None = None,
        rejection: RejectionInfo | None = None,
        expected_status: Any = None,
    ) -> ServiceResult[Application]:
        return await self._guard(
            "update_application_status",
            self._update_status,
            application_id,
            new_status,
            requester,
            reason=reason,
            rejection=rejection,
            expected_status=expected_status,
        )

    async def _update_status(
        self,
        application_id: str,
        new_status: Any,
        requester: Requester,
        *,
        reason: str | None,
        rejection: RejectionInfo | None,
        expected_status: Any,
    ) -> Application:
        target = _parse_status(new_status)
        expected = _parse_status(expected_status, "expected_status") if expected_status is not None else None

        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                raise NotFoundError("Application not found")
            prop = await uow.repos.get_property(app.property_id)
            if prop is None:
                raise NotFoundError("Property not found")

            current = app.status
            if expected is not None and expected != current:
                raise ConflictError(
                    f"Application is {current.value}, not {expected.value}. Reload and try again."
                )

            require_transition(current, target)
            authorize(Action.change_status, requester, parties=_parties(app, prop), new_status=target)

            now = _utcnow()
            entry = StatusHistoryEntry(status=target, changed_at=now, changed_by=requester.id, reason=reason)
            data: dict[str, Any] = {
                "status": target,
                "previous_status": current,
                "status_history": [*(app.status_history or []), entry.as_dict()],
            }
            if target == ApplicationStatus.rejected and rejection is not None:
                data["rejection_category"] = rejection.category
                data["rejection_reason"] = rejection.reason
                data["rejection_details"] = rejection.details
            if target in REVIEW_DECISIONS:
                data["reviewed_by"] = requester.id
                data["reviewed_at"] = now

            updated = await uow.repos.update_application_status(app.id, data, expected_status=current)
            if updated is None:
                raise ConflictError("Application was changed by another request. Reload and try again.")

        log.info(
            "application status id=%s %s -> %s by=%s", updated.id, current.value, target.value, requester.id
        )

        metadata: dict[str, Any] = {"previous_status": current.value, "reason": reason}
        if target == ApplicationStatus.rejected and rejection is not None:
            metadata["rejection_category"] = rejection.category
            metadata["rejection_reason"] = rejection.reason
            metadata["appealable"] = rejection.appealable
        self.scheduler.schedule(
            f"status-notice:{updated.id}",
            partial(self.notifier.send_status_change_notification, updated.id, target.value, metadata),
        )
        return updated

    # -----------------------------
    # Reads
    # -----------------------------
    async def get_application_by_id(self, application_id: str) -> Application | None:
        async with self.uow_factory() as uow:
            return await uow.repos.get_application(application_id)

    async def view_application(self, application_id: str, requester: Requester) -> ServiceResult[Application]:
        return await self._guard("view_application", self._view, application_id, requester)

    async def _view(self, application_id: str, requester: Requester) -> Application:
        async with self.uow_factory() as uow:
            app = await uow.repos.get_application(application_id)
            if app is None:
                raise NotFoundError("Application not found")
            prop = await uow.repos.get_property(app.property_id)
            authorize(Action.view, requester, parties=_parties(app, prop))
            return app

    async def get_applications_by_user(
        self, user_id: str, requester: Requester
    ) -> ServiceResult[list[Application]]:
        return await self._guard("get_applications_by_user", self._by_user, user_id, requester)

    async def _by_user(self, user_id: str, requester: Requester) -> list[Application]:
        authorize(Action.list_for_user, requester, target_user_id=user_id)
        async with self.uow_factory() as uow:
            return await uow.repos.find_applications_by_user(user_id)

    async def get_applications_by_property(
        self, property_id: str, requester: Requester
    ) -> ServiceResult[list[Application]]:
        return await self._guard("get_applications_by_property", self._by_property, property_id, requester)

    async def _by_property(self, property_id: str, requester: Requester) -> list[Application]:
        async with self.uow_factory() as uow:
            prop = await uow.repos.get_property(property_id)
            if prop is None:
                raise NotFoundError("Property not found")
            authorize(Action.list_for_property, requester, property_owner_id=prop.owner_id)
            return await uow.repos.find_applications_by_property(property_id)
