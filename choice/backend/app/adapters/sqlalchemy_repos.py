# app/adapters/sqlalchemy_repos.py
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Application, ApplicationStatus, Conversation, ConversationParticipant, Notification, NotificationKind, Property, User
from .repos.applications import ApplicationRepository
from .repos.conversations import ConversationRepository
from .repos.notifications import NotificationRepository
from .repos.properties import PropertyRepository
from .repos.users import UserRepository


class SqlAlchemyRepos:
    """
    One session, every table the application lifecycle touches.
    Flushes only; the unit of work owns commit/rollback.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.applications = ApplicationRepository(session)
        self.properties = PropertyRepository(session)
        self.users = UserRepository(session)
        self.conversations = ConversationRepository(session)
        self.notifications = NotificationRepository(session)

    async def get_property(self, property_id: str) -> Property | None:
        return await self.properties.get(property_id)

    async def update_property(self, property_id: str, data: dict[str, Any]) -> Property | None:
        return await self.properties.update(property_id, data)

    async def get_user(self, user_id: str) -> User | None:
        return await self.users.get(user_id)

    async def get_application(self, application_id: str) -> Application | None:
        return await self.applications.get(application_id)

    async def create_application(self, data: dict[str, Any]) -> Application:
        return await self.applications.create(data)

    async def update_application(self, application_id: str, data: dict[str, Any]) -> Application | None:
        return await self.applications.update(application_id, data)

    async def update_application_status(
        self,
        application_id: str,
        data: dict[str, Any],
        *,
        expected_status: ApplicationStatus,
    ) -> Application | None:
        return await self.applications.update_status(application_id, data, expected_status=expected_status)

    async def find_applications_by_user(self, user_id: str) -> list[Application]:
        return await self.applications.list_by_user(user_id)

    async def find_applications_by_property(self, property_id: str) -> list[Application]:
        return await self.applications.list_by_property(property_id)

    async def check_duplicate_application(self, user_id: str, property_id: str) -> bool:
        return await self.applications.exists_for(user_id=user_id, property_id=property_id)

    async def create_conversation(self, data: dict[str, Any]) -> Conversation:
        return await self.conversations.create(data)

    async def add_conversation_participant(self, conversation_id: str, user_id: str) -> ConversationParticipant:
        return await self.conversations.add_participant(conversation_id, user_id)

    async def create_notification(
        self,
        *,
        user_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        payload: dict[str, Any] | None = None,
    ) -> Notification:
        return await self.notifications.create(
            user_id=user_id, kind=kind, title=title, message=message, payload=payload
        )
