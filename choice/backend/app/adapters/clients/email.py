# app/adapters/clients/email.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ...config import settings
from .http_resilience import ResilientHttpClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


class EmailSender(Protocol):
    async def send_email(self, message: EmailMessage) -> None:
        ...


class LoggingEmailSender:
    """Dev/test sender: nothing leaves the process."""

    async def send_email(self, message: EmailMessage) -> None:
        log.info("email (not sent, EMAIL_PROVIDER=log) to=%s subject=%r", message.to, message.subject)


class HttpEmailSender:
    """
    Transactional-email HTTP API (Resend/Postmark style: POST JSON, bearer key).
    Raises on failure; callers decide whether that matters.
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str | None,
        sender: str,
        http: ResilientHttpClient | None = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.http = http or ResilientHttpClient()

    async def send_email(self, message: EmailMessage) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        await self.http.request(
            "POST",
            self.api_url,
            headers=headers,
            json={
                "from": self.sender,
                "to": [message.to],
                "subject": message.subject,
                "html": message.html,
            },
        )
        log.info("email sent to=%s subject=%r", message.to, message.subject)


def build_email_sender() -> EmailSender:
    provider = (settings.EMAIL_PROVIDER or "").strip().lower()

    if provider == "http":
        if not settings.EMAIL_API_URL:
            raise ValueError("EMAIL_PROVIDER=http requires EMAIL_API_URL")
        return HttpEmailSender(
            api_url=settings.EMAIL_API_URL,
            api_key=settings.EMAIL_API_KEY,
            sender=settings.EMAIL_FROM,
        )
    if provider == "log":
        return LoggingEmailSender()

    raise ValueError(f"Unknown EMAIL_PROVIDER={provider!r}. Use log or http.")
