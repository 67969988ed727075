# app/logging_config.py
from __future__ import annotations

import logging

from .config import settings


def configure_logging(level: str | None = None) -> None:
    # Root defaults
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL or "INFO").upper(),
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
    )

    # Quiet the usual offenders
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
