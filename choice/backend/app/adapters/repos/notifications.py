# app/adapters/repos/notifications.py
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Notification, NotificationKind


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        user_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        payload: dict[str, Any] | None = None,
    ) -> Notification:
        n = Notification(user_id=user_id, kind=kind, title=title, message=message, payload=payload or {})
        self.session.add(n)
        await self.session.flush()
        return n

    async def list_for_user(self, user_id: str) -> list[Notification]:
        q = select(Notification).where(Notification.user_id == user_id).order_by(Notification.id.asc())
        return list((await self.session.execute(q)).scalars().all())
