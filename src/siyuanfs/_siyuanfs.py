"""SiyuanFS — synchronous wrapper around SiyuanFSAsync."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from siyuanfs._siyuanfs_async import SiyuanFSAsync
from siyuanfs.fs.permissions import Permission

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from siyuanfs.events import EventBus, FileEvent
    from siyuanfs.fs.config import CacheConfig, ConnectionConfig
    from siyuanfs.fs.mounts import MountConfig
    from siyuanfs.fs.types import DeleteResult, FileInfo, ListResult, WriteResult
    from siyuanfs.fs.watch import Watch

logger = logging.getLogger(__name__)


class SiyuanFS:
    """Synchronous API backed by a private event loop in a background thread.

    All work happens in ``SiyuanFSAsync`` on that loop; each method submits
    a coroutine and blocks for its result, so the class is usable from plain
    sync code and from inside an already-running loop alike.

    Usage::

        with SiyuanFS() as fs:
            fs.mount("personal", ConnectionConfig("http://127.0.0.1:6806", "token"))
            print(fs.read_text("/personal/Work/Plan.sy"))
    """

    def __init__(self) -> None:
        self._closed = False

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        self._async = self._run(self._async_init())

    async def _async_init(self) -> SiyuanFSAsync:
        return SiyuanFSAsync()

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Mount / Unmount
    # ------------------------------------------------------------------

    def mount(
        self,
        name: str,
        config: ConnectionConfig,
        *,
        cache_config: CacheConfig | None = None,
        permission: Permission = Permission.READ_WRITE,
        label: str = "",
        hidden: bool = False,
        **kwargs: Any,
    ) -> None:
        self._run(
            self._async.mount(
                name,
                config,
                cache_config=cache_config,
                permission=permission,
                label=label,
                hidden=hidden,
                **kwargs,
            )
        )

    def unmount(self, name: str) -> None:
        self._run(self._async.unmount(name))

    def mounts(self) -> list[MountConfig]:
        return self._async.mounts()

    def update_config(self, name: str, config: ConnectionConfig) -> None:
        self._run(self._async.update_config(name, config))

    def test_connection(self, target: str | ConnectionConfig, **kwargs: Any) -> bool:
        return self._run(self._async.test_connection(target, **kwargs))

    def clear_cache(self, name: str | None = None) -> None:
        self._run(self._async_clear_cache(name))

    async def _async_clear_cache(self, name: str | None) -> None:
        self._async.clear_cache(name)

    # ------------------------------------------------------------------
    # Filesystem Operations
    # ------------------------------------------------------------------

    def stat(self, path: str) -> FileInfo:
        return self._run(self._async.stat(path))

    def exists(self, path: str) -> bool:
        return self._run(self._async.exists(path))

    def list_dir(self, path: str = "/") -> ListResult:
        return self._run(self._async.list_dir(path))

    def list_documents(self, name: str, limit: int | None = 200) -> ListResult:
        return self._run(self._async.list_documents(name, limit))

    def read(self, path: str) -> bytes:
        return self._run(self._async.read(path))

    def read_text(self, path: str) -> str:
        return self._run(self._async.read_text(path))

    def write(self, path: str, content: bytes | str) -> WriteResult:
        return self._run(self._async.write(path, content))

    def delete(self, path: str) -> DeleteResult:
        return self._run(self._async.delete(path))

    def mkdir(self, path: str) -> None:
        self._run(self._async.mkdir(path))

    def move(self, src: str, dest: str) -> None:
        self._run(self._async.move(src, dest))

    def watch(
        self,
        path: str,
        handler: Callable[[list[FileEvent]], None],
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> Watch:
        """Call *handler* (on the loop thread) with batches of changes."""

        async def forward(events: list[FileEvent]) -> None:
            handler(events)

        return self._run(self._async_watch(path, forward, recursive, tuple(excludes)))

    async def _async_watch(
        self, path: str, handler: Any, recursive: bool, excludes: tuple[str, ...]
    ) -> Watch:
        return self._async.watch(path, handler, recursive=recursive, excludes=excludes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close every mounted instance, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._async.close())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)

    def __enter__(self) -> SiyuanFS:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._async.event_bus

    @property
    def aio(self) -> SiyuanFSAsync:
        """The underlying ``SiyuanFSAsync`` (for advanced async use)."""
        return self._async
