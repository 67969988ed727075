# app/adapters/repos/applications.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Application, ApplicationStatus


class ApplicationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, application_id: str) -> Application | None:
        q = select(Application).where(Application.id == application_id)
        return (await self.session.execute(q)).scalars().first()

    async def exists_for(self, *, user_id: str, property_id: str) -> bool:
        q = (
            select(Application.id)
            .where(Application.user_id == user_id)
            .where(Application.property_id == property_id)
            .limit(1)
        )
        return (await self.session.execute(q)).scalar_one_or_none() is not None

    async def create(self, data: dict[str, Any]) -> Application:
        """Insert + flush. Raises IntegrityError if (user_id, property_id) already exists."""
        app = Application(**data)
        self.session.add(app)
        await self.session.flush()
        return app

    async def update(self, application_id: str, data: dict[str, Any]) -> Application | None:
        app = await self.get(application_id)
        if app is None:
            return None

        for field, value in data.items():
            setattr(app, field, value)
        app.updated_at = datetime.now(timezone.utc)

        await self.session.flush()
        return app

    async def update_status(
        self,
        application_id: str,
        data: dict[str, Any],
        *,
        expected_status: ApplicationStatus,
    ) -> Application | None:
        """
        Conditional write: only applies if the row is still in `expected_status`.
        Returns None when another writer got there first (or the row is gone).
        """
        values = {**data, "updated_at": datetime.now(timezone.utc)}
        stmt = (
            update(Application)
            .where(Application.id == application_id)
            .where(Application.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        if res.rowcount == 0:
            return None

        q = select(Application).where(Application.id == application_id).execution_options(populate_existing=True)
        return (await self.session.execute(q)).scalars().first()

    async def list_by_user(self, user_id: str) -> list[Application]:
        q = (
            select(Application)
            .where(Application.user_id == user_id)
            .order_by(Application.created_at.desc())
        )
        return list((await self.session.execute(q)).scalars().all())

    async def list_by_property(self, property_id: str) -> list[Application]:
        q = (
            select(Application)
            .where(Application.property_id == property_id)
            .order_by(Application.created_at.desc())
        )
        return list((await self.session.execute(q)).scalars().all())
