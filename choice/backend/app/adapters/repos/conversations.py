# app/adapters/repos/conversations.py
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Conversation, ConversationParticipant


class ConversationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict[str, Any]) -> Conversation:
        conv = Conversation(**data)
        self.session.add(conv)
        await self.session.flush()
        return conv

    async def add_participant(self, conversation_id: str, user_id: str) -> ConversationParticipant:
        # idempotent: the same user joining twice is a no-op
        q = (
            select(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .where(ConversationParticipant.user_id == user_id)
        )
        existing = (await self.session.execute(q)).scalars().first()
        if existing is not None:
            return existing

        part = ConversationParticipant(conversation_id=conversation_id, user_id=user_id)
        self.session.add(part)
        await self.session.flush()
        return part

    async def list_participants(self, conversation_id: str) -> list[str]:
        q = (
            select(ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .order_by(ConversationParticipant.id.asc())
        )
        return list((await self.session.execute(q)).scalars().all())
