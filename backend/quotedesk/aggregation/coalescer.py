from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable


logger = logging.getLogger(__name__)


class RequestCoalescer:
    """Collapse concurrent lookups for the same key into one upstream call.

    A key moves through three states: absent, pending (a task is registered)
    and settled-and-removed. The registration is dropped inside the task
    itself, so by the time any waiter sees the outcome the key is already
    absent and the next caller starts a fresh ``produce``. Settled values are
    never reused; caching is someone else's job.

    Waiters are shielded from the shared task: a waiter that gets cancelled
    stops waiting, but the fetch keeps running for everyone else.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task] = {}

    async def resolve(self, key: str, produce: Callable[[], Awaitable[Any]]) -> Any:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, produce))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task
        else:
            logger.debug("joining in-flight fetch for %s", key)
        return await asyncio.shield(task)

    async def _run(self, key: str, produce: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await produce()
        finally:
            self._inflight.pop(key, None)

    def pending(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks the exception as retrieved when every waiter has gone away.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("in-flight fetch failed: %r", task.exception())
