# app/adapters/cache.py
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any


class TTLCache:
    """
    Small in-process key/value cache with per-entry TTL and prefix invalidation.

    Created once per app and handed out through app.state; keys look like
    "property:<id>" so an edit can drop "property:<id>" (or "property:" for all).
    """

    def __init__(self, ttl_s: float = 60.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_s = ttl_s
        self._clock = clock
        self._data: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        hit = self._data.get(key)
        if hit is None:
            return None
        expires_at, value = hit
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_s: float | None = None) -> None:
        ttl = self.ttl_s if ttl_s is None else ttl_s
        self._data[key] = (self._clock() + ttl, value)

    def invalidate(self, key: str) -> None:
        self._data.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._data if k.startswith(prefix)]
        for k in doomed:
            del self._data[k]
        return len(doomed)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
