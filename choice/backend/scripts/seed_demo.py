from __future__ import annotations

import asyncio
import logging

from app.db import AsyncSessionLocal, engine
from app.logging_config import configure_logging
from app.models import Base
from app.service_layer.demo_seed import seed_demo

log = logging.getLogger("seed_demo")


async def _ensure_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    configure_logging()
    await _ensure_schema()

    async with AsyncSessionLocal() as session:
        result = await seed_demo(session)
        await session.commit()

    log.info("seeded demo data %s", result)
    print(f"Seeded demo data: {result}")


if __name__ == "__main__":
    asyncio.run(main())
