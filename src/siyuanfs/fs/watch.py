"""ChangeNotifier — buffered, batched change events for watchers.

The remote store cannot push changes, so the only events a host ever
sees are the ones this process caused (writes and deletes through the
facade).  They are buffered and delivered in small batches once the
stream goes quiet for ``flush_delay`` seconds.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from typing import TYPE_CHECKING

from .config import DEFAULT_FLUSH_DELAY
from .utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from siyuanfs.events import FileEvent

    BatchHandler = Callable[[list[FileEvent]], Awaitable[None]]

logger = logging.getLogger(__name__)


class Watch:
    """A registered interest in changes at or below a path."""

    def __init__(
        self,
        notifier: ChangeNotifier,
        path: str,
        handler: BatchHandler,
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> None:
        self._notifier = notifier
        self.path = normalize_path(path)
        self.handler = handler
        self.recursive = recursive
        self.excludes = tuple(excludes)
        self.disposed = False

    def matches(self, path: str) -> bool:
        if any(fnmatch.fnmatch(path, pattern) for pattern in self.excludes):
            return False
        if path == self.path or self.path == "/" and self.recursive:
            return True
        prefix = self.path.rstrip("/") + "/"
        if not path.startswith(prefix):
            return False
        return self.recursive or "/" not in path[len(prefix):]

    def dispose(self) -> None:
        if not self.disposed:
            self.disposed = True
            self._notifier.unwatch(self)

    def __enter__(self) -> Watch:
        return self

    def __exit__(self, *args: object) -> None:
        self.dispose()


class ChangeNotifier:
    """Buffers events and flushes them to matching watchers in batches."""

    def __init__(self, flush_delay: float = DEFAULT_FLUSH_DELAY) -> None:
        self.flush_delay = flush_delay
        self._watches: list[Watch] = []
        self._buffer: list[FileEvent] = []
        self._timer: asyncio.TimerHandle | None = None
        self._flushes: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def watch_count(self) -> int:
        return len(self._watches)

    def watch(
        self,
        path: str,
        handler: BatchHandler,
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> Watch:
        watch = Watch(self, path, handler, recursive=recursive, excludes=excludes)
        self._watches.append(watch)
        return watch

    def unwatch(self, watch: Watch) -> None:
        if watch in self._watches:
            self._watches.remove(watch)

    def push(self, *events: FileEvent) -> None:
        """Buffer *events* and (re)arm the flush timer."""
        self._buffer.extend(events)
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.flush_delay, self._schedule_flush)

    async def handle(self, event: FileEvent) -> None:
        """Event bus entry point; buffers *event* for the next batch."""
        self.push(event)

    def _schedule_flush(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self.flush())
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)

    async def flush(self) -> None:
        """Deliver everything buffered so far."""
        events, self._buffer = self._buffer, []
        if not events:
            return
        for watch in list(self._watches):
            batch = [e for e in events if watch.matches(e.path)]
            if not batch:
                continue
            try:
                await watch.handler(batch)
            except Exception:
                logger.warning(
                    "Watch handler %r failed for %d event(s) under %s",
                    watch.handler,
                    len(batch),
                    watch.path,
                    exc_info=True,
                )

    async def close(self) -> None:
        """Cancel the timer, deliver what is buffered, drop all watches."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._flushes:
            await asyncio.gather(*self._flushes)
        await self.flush()
        self._watches.clear()
