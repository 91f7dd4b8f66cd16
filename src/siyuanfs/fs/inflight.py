"""InFlight — share one pending remote call among concurrent callers."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlight(Generic[T]):
    """Tracks in-progress lookups by key.

    The first caller for a key starts the work as a task; callers that
    arrive while it is pending await the same task instead of issuing a
    duplicate remote call.  The key is released as soon as the task
    settles, so a later call starts fresh.  Waiters are shielded: a
    cancelled waiter does not cancel the shared task.  A failure reaches
    every waiter.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Task[T]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._settle(key, factory))
            self._pending[key] = task
        else:
            logger.debug("Joining in-flight lookup for %r", key)
        return await asyncio.shield(task)

    async def _settle(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]

    def detach_all(self) -> None:
        """Forget every pending lookup without cancelling it.

        Tasks already running still settle for the callers awaiting them;
        the next call for any key starts a fresh lookup.
        """
        if self._pending:
            logger.debug("Detaching %d in-flight lookup(s)", len(self._pending))
        self._pending.clear()

    def pending_keys(self) -> list[Any]:
        return list(self._pending)
