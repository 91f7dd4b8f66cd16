"""MountRegistry and MountConfig."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import MountNotFoundError
from .permissions import Permission
from .utils import normalize_path

if TYPE_CHECKING:
    from .siyuan_fs import SiyuanFileSystem


@dataclass
class MountConfig:
    """Configuration for a single mounted SiYuan instance."""

    mount_path: str
    """Virtual path prefix, e.g. "/personal", "/team"."""

    backend: SiyuanFileSystem
    """Filesystem over the instance's remote store."""

    permission: Permission = Permission.READ_WRITE
    """Permission for everything under this mount."""

    label: str = ""
    """Display name for the mount."""

    mount_type: str = "siyuan"

    hidden: bool = False
    """If True, this mount is excluded from ``list_visible_mounts()``."""

    def __post_init__(self) -> None:
        self.mount_path = normalize_path(self.mount_path).rstrip("/")
        if not self.mount_path:
            raise ValueError("Cannot mount at the root path")
        if "/" in self.mount_path[1:]:
            raise ValueError(f"Mount paths must be a single segment: {self.mount_path}")
        if not self.label:
            self.label = self.mount_path.lstrip("/")


class MountRegistry:
    """Registry of active mount points.

    Resolves virtual paths to (MountConfig, relative_path) tuples
    and determines effective permissions for any path.
    """

    def __init__(self) -> None:
        self._mounts: dict[str, MountConfig] = {}

    def add_mount(self, config: MountConfig) -> None:
        """Add or replace a mount point."""
        self._mounts[config.mount_path] = config

    def remove_mount(self, mount_path: str) -> MountConfig | None:
        """Remove a mount point and return it, if it existed."""
        mount_path = normalize_path(mount_path).rstrip("/")
        return self._mounts.pop(mount_path, None)

    def get_mount(self, mount_path: str) -> MountConfig:
        mount_path = normalize_path(mount_path).rstrip("/")
        try:
            return self._mounts[mount_path]
        except KeyError:
            raise MountNotFoundError(f"No mount at {mount_path}") from None

    def resolve(self, virtual_path: str) -> tuple[MountConfig, str]:
        """Resolve a virtual path to its mount and relative path.

        Finds the longest matching mount prefix and strips it.
        """
        virtual_path = normalize_path(virtual_path)

        best_match: MountConfig | None = None
        best_len = 0

        for mount_path, config in self._mounts.items():
            if (virtual_path == mount_path or virtual_path.startswith(mount_path + "/")) and len(
                mount_path
            ) > best_len:
                best_match = config
                best_len = len(mount_path)

        if best_match is None:
            raise MountNotFoundError(f"No mount found for path: {virtual_path}")

        relative = virtual_path[best_len:] or "/"
        return best_match, relative

    def list_mounts(self) -> list[MountConfig]:
        """List all registered mounts, sorted by mount_path."""
        return sorted(self._mounts.values(), key=lambda m: m.mount_path)

    def list_visible_mounts(self) -> list[MountConfig]:
        """List non-hidden mounts, sorted by mount_path."""
        return [m for m in self.list_mounts() if not m.hidden]

    def get_permission(self, virtual_path: str) -> Permission:
        """Get the effective permission for a virtual path."""
        mount, _ = self.resolve(virtual_path)
        return mount.permission

    def has_mount(self, mount_path: str) -> bool:
        """Check if a mount exists at the given path."""
        mount_path = normalize_path(mount_path).rstrip("/")
        return mount_path in self._mounts

    def __len__(self) -> int:
        return len(self._mounts)
