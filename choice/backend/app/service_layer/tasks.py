# app/service_layer/tasks.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

log = logging.getLogger(__name__)

SideEffect = Callable[[], Awaitable[None]]


class TaskScheduler(Protocol):
    def schedule(self, name: str, fn: SideEffect) -> None:
        ...


async def run_side_effect(name: str, fn: SideEffect) -> None:
    """
    Run a best-effort job. Failures are logged and dropped: emails and
    notifications never fail the request that triggered them.
    """
    try:
        await fn()
    except Exception:
        log.exception("side effect failed name=%s", name)


class AsyncioTaskScheduler:
    """
    Fire-and-forget on the running loop.

    Keeps a strong reference to each task until it finishes (the loop only
    holds weak ones) and lets shutdown wait for whatever is still in flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(self, name: str, fn: SideEffect) -> None:
        task = asyncio.create_task(run_side_effect(name, fn), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def aclose(self, timeout: float | None = 10.0) -> None:
        if not self._tasks:
            return
        log.info("draining %d background task(s)", len(self._tasks))
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            log.warning("cancelling background task still running at shutdown name=%s", task.get_name())
            task.cancel()
