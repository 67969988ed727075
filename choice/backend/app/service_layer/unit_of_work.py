# app/service_layer/unit_of_work.py
from __future__ import annotations

from typing import Any, Callable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..db import AsyncSessionLocal
from ..models import Application, ApplicationStatus, Conversation, ConversationParticipant, Notification, NotificationKind, Property, User


class PersistenceGateway(Protocol):
    async def get_property(self, property_id: str) -> Property | None: ...
    async def update_property(self, property_id: str, data: dict[str, Any]) -> Property | None: ...
    async def get_user(self, user_id: str) -> User | None: ...
    async def get_application(self, application_id: str) -> Application | None: ...
    async def create_application(self, data: dict[str, Any]) -> Application: ...
    async def update_application(self, application_id: str, data: dict[str, Any]) -> Application | None: ...
    async def update_application_status(
        self, application_id: str, data: dict[str, Any], *, expected_status: ApplicationStatus
    ) -> Application | None: ...
    async def find_applications_by_user(self, user_id: str) -> list[Application]: ...
    async def find_applications_by_property(self, property_id: str) -> list[Application]: ...
    async def check_duplicate_application(self, user_id: str, property_id: str) -> bool: ...
    async def create_conversation(self, data: dict[str, Any]) -> Conversation: ...
    async def add_conversation_participant(self, conversation_id: str, user_id: str) -> ConversationParticipant: ...
    async def create_notification(
        self,
        *,
        user_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        payload: dict[str, Any] | None = None,
    ) -> Notification: ...


class UnitOfWork(Protocol):
    repos: PersistenceGateway

    async def __aenter__(self) -> "UnitOfWork": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]


class SqlAlchemyUnitOfWork:
    """
    Commits on clean exit, rolls back on exception. Explicit commit() inside the
    block is allowed (e.g. to publish a row before scheduling side effects).
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] = AsyncSessionLocal) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None
        self.repos: SqlAlchemyRepos | None = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self.repos = SqlAlchemyRepos(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc:
                await self.rollback()
            else:
                await self.commit()
        finally:
            if self.session:
                await self.session.close()

    async def commit(self) -> None:
        assert self.session is not None
        await self.session.commit()

    async def rollback(self) -> None:
        assert self.session is not None
        await self.session.rollback()
