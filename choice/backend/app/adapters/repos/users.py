# app/adapters/repos/users.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import User, UserRole


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str) -> User | None:
        q = select(User).where(User.id == user_id)
        return (await self.session.execute(q)).scalars().first()

    async def create(
        self,
        *,
        email: str | None,
        full_name: str | None = None,
        role: UserRole = UserRole.renter,
        user_id: str | None = None,
    ) -> User:
        user = User(email=email, full_name=full_name, role=role)
        if user_id is not None:
            user.id = user_id
        self.session.add(user)
        await self.session.flush()
        return user
