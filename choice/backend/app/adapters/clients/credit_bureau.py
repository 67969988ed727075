# app/adapters/clients/credit_bureau.py
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ...config import settings

log = logging.getLogger(__name__)

MOCK_BASE_SCORE = 600
MOCK_POINTS_PER_DIGIT = 20
MOCK_DEFAULT_DIGIT = 5


class CreditBureau(Protocol):
    async def fetch_score(self, identifier: str) -> int:
        ...


class MockCreditBureau:
    """
    Stand-in for a real bureau. Deterministic: the score depends only on the
    identifier's last character (a digit d -> 600 + 20*d, anything else counts as 5).
    """

    def __init__(self, delay_s: float = 0.05) -> None:
        self.delay_s = delay_s

    @staticmethod
    def score_for(identifier: str) -> int:
        tail = identifier.strip()[-1:] if identifier else ""
        digit = int(tail) if tail.isdigit() else MOCK_DEFAULT_DIGIT
        return MOCK_BASE_SCORE + digit * MOCK_POINTS_PER_DIGIT

    async def fetch_score(self, identifier: str) -> int:
        # simulated network latency
        await asyncio.sleep(self.delay_s)
        score = self.score_for(identifier)
        log.debug("mock credit lookup score=%s", score)
        return score


def build_credit_bureau() -> CreditBureau:
    provider = (settings.CREDIT_BUREAU_PROVIDER or "").strip().lower()
    if provider == "mock":
        return MockCreditBureau(delay_s=settings.CREDIT_MOCK_DELAY_S)
    raise ValueError(f"Unknown CREDIT_BUREAU_PROVIDER={provider!r}. Supported: mock")
