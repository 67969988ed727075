# app/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ...config import settings

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


@dataclass
class _CircuitState:
    fails: int = 0
    opened_at: float | None = None


class ResilientHttpClient:
    """
    Outbound HTTP with timeouts, retries + exponential backoff, a per-instance
    rate limit and a simple circuit breaker.

    One instance per external provider, so a flaky email API can't trip the
    breaker for anything else.
    """

    def __init__(
        self,
        *,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        backoff_base_s: float | None = None,
        rate_limit_rps: float | None = None,
        circuit_fail_threshold: int | None = None,
        circuit_reset_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_s = settings.HTTP_TIMEOUT_S if timeout_s is None else timeout_s
        self.max_retries = settings.HTTP_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base_s = settings.HTTP_BACKOFF_BASE_S if backoff_base_s is None else backoff_base_s
        self.rate_limit_rps = settings.HTTP_RATE_LIMIT_RPS if rate_limit_rps is None else rate_limit_rps
        self.circuit_fail_threshold = (
            settings.HTTP_CIRCUIT_FAIL_THRESHOLD if circuit_fail_threshold is None else circuit_fail_threshold
        )
        self.circuit_reset_s = settings.HTTP_CIRCUIT_RESET_S if circuit_reset_s is None else circuit_reset_s
        self._transport = transport

        self._circuit = _CircuitState()
        self._rate_lock = asyncio.Lock()
        self._last_ts = 0.0

    def circuit_is_open(self, now: float | None = None) -> bool:
        if self._circuit.opened_at is None:
            return False
        now = time.monotonic() if now is None else now
        return (now - self._circuit.opened_at) < float(self.circuit_reset_s)

    def _on_success(self) -> None:
        self._circuit.fails = 0
        self._circuit.opened_at = None

    def _on_failure(self) -> None:
        self._circuit.fails += 1
        if self._circuit.fails >= int(self.circuit_fail_threshold):
            self._circuit.opened_at = time.monotonic()

    async def _rate_limit(self) -> None:
        rps = float(self.rate_limit_rps)
        if rps <= 0:
            return
        min_gap = 1.0 / rps
        async with self._rate_lock:
            wait = (self._last_ts + min_gap) - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_ts = time.monotonic()

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        if self.circuit_is_open():
            raise httpx.HTTPError(f"circuit_open: refusing external call to {url}")

        await self._rate_limit()

        timeout = httpx.Timeout(float(self.timeout_s))
        last_exc: Exception | None = None
        for attempt in range(int(self.max_retries) + 1):
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                    resp = await client.request(method, url, headers=headers, params=params, json=json)

                if resp.status_code in RETRYABLE_STATUS:
                    raise httpx.HTTPStatusError("retryable_status", request=resp.request, response=resp)

                resp.raise_for_status()
                self._on_success()
                return resp
            except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as e:
                if isinstance(e, httpx.HTTPStatusError) and e.response.status_code not in RETRYABLE_STATUS:
                    # 4xx: our request is wrong, retrying won't help
                    raise
                last_exc = e
                self._on_failure()
                if attempt >= self.max_retries:
                    break
                await asyncio.sleep(min(5.0, self.backoff_base_s * (2**attempt)))

        assert last_exc is not None
        raise last_exc
