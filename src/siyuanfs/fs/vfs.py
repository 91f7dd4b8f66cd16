"""VFS — mount router over several SiYuan instances."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from siyuanfs.events import EventBus, EventType, FileEvent

from .exceptions import (
    FileNotFound,
    MountNotFoundError,
    NoPermissions,
    UnsupportedOperationError,
)
from .permissions import Permission
from .types import DeleteResult, FileInfo, ListResult, WriteResult
from .utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .mounts import MountConfig, MountRegistry
    from .watch import BatchHandler, Watch

logger = logging.getLogger(__name__)


class VFS:
    """Routes operations to instances via the mount registry.

    Presents a single namespace: ``/<mount>/<notebook>/...``.  The root
    lists the visible mounts; everything below a mount is delegated to
    that mount's ``SiyuanFileSystem`` with the prefix stripped, and paths
    in the results are prefixed again.  Read-only mounts reject writes
    and deletes before any remote call.
    """

    def __init__(self, registry: MountRegistry, event_bus: EventBus | None = None) -> None:
        self._registry = registry
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _emit(self, event: FileEvent) -> None:
        if self._event_bus is not None:
            await self._event_bus.emit(event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close all backends."""
        for mount in self._registry.list_mounts():
            try:
                await mount.backend.close()
            except Exception:
                logger.warning("Backend close failed for %s", mount.mount_path, exc_info=True)

    # ------------------------------------------------------------------
    # Path Helpers
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> tuple[MountConfig, str]:
        try:
            return self._registry.resolve(path)
        except MountNotFoundError as err:
            raise FileNotFound(str(err), path) from err

    @staticmethod
    def _prefix_path(path: str, mount_path: str) -> str:
        if path == "/":
            return mount_path
        return mount_path + path

    def _prefix_file_info(self, info: FileInfo, mount: MountConfig) -> FileInfo:
        # Backends cache FileInfo objects; never mutate theirs.
        return dataclasses.replace(
            info,
            path=self._prefix_path(info.path, mount.mount_path),
            permission=mount.permission.value,
            mount_type=mount.mount_type,
        )

    def _check_writable(self, virtual_path: str) -> None:
        if self._registry.get_permission(virtual_path) == Permission.READ_ONLY:
            raise NoPermissions(f"Cannot write to read-only path: {virtual_path}", virtual_path)

    def _mount_info(self, mount: MountConfig) -> FileInfo:
        return FileInfo(
            path=mount.mount_path,
            name=mount.mount_path.lstrip("/"),
            is_directory=True,
            permission=mount.permission.value,
            mount_type=mount.mount_type,
            has_children=True,
        )

    # ------------------------------------------------------------------
    # Read Operations
    # ------------------------------------------------------------------

    async def list_dir(self, path: str = "/") -> ListResult:
        path = normalize_path(path)
        if path == "/":
            entries = [self._mount_info(m) for m in self._registry.list_visible_mounts()]
            return ListResult(path="/", entries=entries, message=f"Found {len(entries)} mount(s)")

        mount, rel_path = self._resolve(path)
        result = await mount.backend.list_dir(rel_path)
        return ListResult(
            path=path,
            entries=[self._prefix_file_info(e, mount) for e in result.entries],
            message=result.message,
        )

    async def list_documents(self, mount_path: str, limit: int | None = 200) -> ListResult:
        """Top-level documents of every open notebook in one mount."""
        mount_path = normalize_path(mount_path)
        if not self._registry.has_mount(mount_path):
            raise FileNotFound(f"No mount at: {mount_path}", mount_path)
        mount = self._registry.get_mount(mount_path)
        result = await mount.backend.list_documents(limit)
        return ListResult(
            path=mount.mount_path,
            entries=[self._prefix_file_info(e, mount) for e in result.entries],
            message=result.message,
        )

    async def stat(self, path: str) -> FileInfo:
        path = normalize_path(path)
        if path == "/":
            return FileInfo(path="/", name="", is_directory=True)
        if self._registry.has_mount(path):
            return self._mount_info(self._registry.get_mount(path))
        mount, rel_path = self._resolve(path)
        return self._prefix_file_info(await mount.backend.stat(rel_path), mount)

    async def exists(self, path: str) -> bool:
        try:
            await self.stat(path)
        except FileNotFound:
            return False
        return True

    async def read(self, path: str) -> bytes:
        mount, rel_path = self._resolve(normalize_path(path))
        return await mount.backend.read(rel_path)

    # ------------------------------------------------------------------
    # Write Operations
    # ------------------------------------------------------------------

    async def write(self, path: str, content: bytes | str) -> WriteResult:
        path = normalize_path(path)
        mount, rel_path = self._resolve(path)
        self._check_writable(path)
        result = await mount.backend.write(rel_path, content)
        event = FileEvent(
            event_type=EventType.FILE_CHANGED,
            path=result.file_path,
            content=content if isinstance(content, str) else bytes(content).decode("utf-8"),
            block_id=result.block_id,
            notebook_id=result.notebook_id,
        )
        await self._emit(event.routed(mount.mount_path, mount.label))
        return dataclasses.replace(result, file_path=path)

    async def delete(self, path: str) -> DeleteResult:
        path = normalize_path(path)
        mount, rel_path = self._resolve(path)
        self._check_writable(path)
        result = await mount.backend.delete(rel_path)
        event = FileEvent(
            event_type=EventType.FILE_DELETED,
            path=result.file_path,
            block_id=result.block_id,
            notebook_id=result.notebook_id,
        ).routed(mount.mount_path, mount.label)
        await self._emit(event)
        return dataclasses.replace(result, file_path=event.path)

    async def mkdir(self, path: str) -> None:
        """Always fails, whether or not *path* is inside a mount."""
        path = normalize_path(path)
        raise UnsupportedOperationError(f"Creating directories is not supported: {path}", path)

    async def move(self, src: str, dest: str) -> None:
        """Always fails, whether or not either path is inside a mount."""
        src = normalize_path(src)
        raise UnsupportedOperationError(
            f"Moving or renaming is not supported: {src} -> {normalize_path(dest)}", src
        )

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    def watch(
        self,
        path: str,
        handler: BatchHandler,
        *,
        recursive: bool = True,
        excludes: Iterable[str] = (),
    ) -> Watch:
        """Watch *path* on its mount; the handler sees full virtual paths."""
        mount, rel_path = self._resolve(normalize_path(path))
        prefix = mount.mount_path

        async def prefixed(events: list[FileEvent]) -> None:
            await handler([e.routed(prefix, mount.label) for e in events])

        # Exclude patterns are written against full virtual paths.
        rel_excludes = [
            p[len(prefix):] if p.startswith(prefix + "/") else p for p in excludes
        ]
        return mount.backend.watch(
            rel_path, prefixed, recursive=recursive, excludes=rel_excludes
        )
