"""Filesystem layer — remote client, resolution, caching, mounts."""

from siyuanfs.fs.cache import CacheStats, TTLCache
from siyuanfs.fs.client import SiyuanClient
from siyuanfs.fs.config import CacheConfig, ConnectionConfig
from siyuanfs.fs.exceptions import (
    ApiError,
    AuthenticationError,
    FileNotFound,
    FileSystemError,
    MountNotFoundError,
    NetworkError,
    NoPermissions,
    PathNotFoundError,
    PermissionDeniedError,
    SiyuanFSError,
    Unavailable,
    UnsupportedOperationError,
    ValidationError,
)
from siyuanfs.fs.inflight import InFlight
from siyuanfs.fs.mounts import MountConfig, MountRegistry
from siyuanfs.fs.permissions import Permission
from siyuanfs.fs.registry import NotebookRegistry
from siyuanfs.fs.resolver import PathResolver
from siyuanfs.fs.siyuan_fs import SiyuanFileSystem
from siyuanfs.fs.types import DeleteResult, FileInfo, ListResult, ResolvedPath, WriteResult
from siyuanfs.fs.vfs import VFS
from siyuanfs.fs.watch import ChangeNotifier, Watch

__all__ = [
    "VFS",
    "ApiError",
    "AuthenticationError",
    "CacheConfig",
    "CacheStats",
    "ChangeNotifier",
    "ConnectionConfig",
    "DeleteResult",
    "FileInfo",
    "FileNotFound",
    "FileSystemError",
    "InFlight",
    "ListResult",
    "MountConfig",
    "MountNotFoundError",
    "MountRegistry",
    "NetworkError",
    "NoPermissions",
    "NotebookRegistry",
    "PathNotFoundError",
    "PathResolver",
    "Permission",
    "PermissionDeniedError",
    "ResolvedPath",
    "SiyuanClient",
    "SiyuanFSError",
    "SiyuanFileSystem",
    "TTLCache",
    "Unavailable",
    "UnsupportedOperationError",
    "ValidationError",
    "Watch",
    "WriteResult",
]
