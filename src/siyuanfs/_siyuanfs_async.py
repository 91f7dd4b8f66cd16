"""SiyuanFSAsync — primary async class with mount-first API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from siyuanfs.events import EventBus
from siyuanfs.fs.client import SiyuanClient
from siyuanfs.fs.mounts import MountConfig, MountRegistry
from siyuanfs.fs.permissions import Permission
from siyuanfs.fs.siyuan_fs import SiyuanFileSystem
from siyuanfs.fs.utils import normalize_path
from siyuanfs.fs.vfs import VFS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    import httpx

    from siyuanfs.fs.config import CacheConfig, ConnectionConfig
    from siyuanfs.fs.types import DeleteResult, FileInfo, ListResult, WriteResult
    from siyuanfs.fs.watch import BatchHandler, Watch

logger = logging.getLogger(__name__)


class SiyuanFSAsync:
    """Async entry point serving one or more SiYuan instances.

    Mount-first API: create an instance, then mount each remote store
    under its own top-level name::

        fs = SiyuanFSAsync()
        await fs.mount("personal", ConnectionConfig("http://127.0.0.1:6806", "token"))
        await fs.write("/personal/Work/Plan.sy", "# Plan")

    Every mounted instance gets its own client, caches and notebook
    registry.  Changes made through any of them are emitted on the shared
    ``event_bus`` with full virtual paths.
    """

    def __init__(self) -> None:
        self._closed = False
        self._event_bus = EventBus()
        self._registry = MountRegistry()
        self._vfs = VFS(self._registry, self._event_bus)

    # ------------------------------------------------------------------
    # Mount / Unmount
    # ------------------------------------------------------------------

    async def mount(
        self,
        name: str,
        config: ConnectionConfig,
        *,
        cache_config: CacheConfig | None = None,
        permission: Permission = Permission.READ_WRITE,
        label: str = "",
        hidden: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] | None = None,
    ) -> SiyuanFileSystem:
        """Mount the instance reachable through *config* at ``/<name>``.

        Re-mounting an existing name closes and replaces the old instance.
        """
        mount_path = normalize_path(name).rstrip("/")
        if self._registry.has_mount(mount_path):
            await self.unmount(mount_path)

        kwargs = {} if clock is None else {"clock": clock}
        backend = SiyuanFileSystem(config, cache_config, transport=transport, **kwargs)
        mount = MountConfig(
            mount_path=mount_path,
            backend=backend,
            permission=permission,
            label=label,
            hidden=hidden,
        )
        await backend.open()
        self._registry.add_mount(mount)
        logger.info("Mounted %s at %s", config.base_url, mount.mount_path)
        return backend

    async def unmount(self, name: str) -> None:
        """Unmount the instance at ``/<name>``; unknown names are ignored."""
        mount = self._registry.remove_mount(name)
        if mount is not None:
            await mount.backend.close()
            logger.info("Unmounted %s", mount.mount_path)

    def backend(self, name: str) -> SiyuanFileSystem:
        """The filesystem mounted at ``/<name>``."""
        return self._registry.get_mount(name).backend

    def mounts(self) -> list[MountConfig]:
        return self._registry.list_mounts()

    async def update_config(self, name: str, config: ConnectionConfig) -> None:
        """Reconnect the instance at ``/<name>``; its caches are dropped."""
        await self.backend(name).update_config(config)

    async def test_connection(
        self,
        target: str | ConnectionConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> bool:
        """Check a mounted instance by name, or an unmounted config."""
        if isinstance(target, str):
            return await self.backend(target).test_connection()
        async with SiyuanClient(target, transport=transport) as client:
            return await client.test_connection()

    def clear_cache(self, name: str | None = None) -> None:
        """Drop cached state for one instance, or for all of them."""
        mounts = [self._registry.get_mount(name)] if name else self._registry.list_mounts()
        for mount in mounts:
            mount.backend.clear_cache()

    # ------------------------------------------------------------------
    # Filesystem Operations
    # ------------------------------------------------------------------

    async def stat(self, path: str) -> FileInfo:
        return await self._vfs.stat(path)

    async def exists(self, path: str) -> bool:
        return await self._vfs.exists(path)

    async def list_dir(self, path: str = "/") -> ListResult:
        return await self._vfs.list_dir(path)

    async def list_documents(self, name: str, limit: int | None = 200) -> ListResult:
        """Top-level documents across the open notebooks of mount *name*."""
        return await self._vfs.list_documents(name, limit)

    async def read(self, path: str) -> bytes:
        return await self._vfs.read(path)

    async def read_text(self, path: str) -> str:
        return (await self._vfs.read(path)).decode("utf-8")

    async def write(self, path: str, content: bytes | str) -> WriteResult:
        return await self._vfs.write(path, content)

    async def delete(self, path: str) -> DeleteResult:
        return await self._vfs.delete(path)

    async def mkdir(self, path: str) -> None:
        await self._vfs.mkdir(path)

    async def move(self, src: str, dest: str) -> None:
        await self._vfs.move(src, dest)

    def watch(
        self,
        path: str,
        handler: BatchHandler,
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> Watch:
        return self._vfs.watch(path, handler, recursive=recursive, excludes=excludes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._vfs.close()

    async def __aenter__(self) -> SiyuanFSAsync:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def fs(self) -> VFS:
        return self._vfs

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

