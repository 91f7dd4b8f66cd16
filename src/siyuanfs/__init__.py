"""SiYuanFS: a SiYuan note store as a virtual filesystem.

Notebooks become top-level directories and documents become ``.sy`` files,
with identifier resolution and content caching in between.
"""

__version__ = "0.1.0"

from siyuanfs._siyuanfs import SiyuanFS
from siyuanfs._siyuanfs_async import SiyuanFSAsync
from siyuanfs.events import EventBus, EventType, FileEvent
from siyuanfs.fs.config import CacheConfig, ConnectionConfig
from siyuanfs.fs.exceptions import (
    FileNotFound,
    FileSystemError,
    NoPermissions,
    SiyuanFSError,
    Unavailable,
    UnsupportedOperationError,
)
from siyuanfs.fs.permissions import Permission
from siyuanfs.fs.siyuan_fs import SiyuanFileSystem
from siyuanfs.fs.types import DeleteResult, FileInfo, ListResult, WriteResult

__all__ = [
    "CacheConfig",
    "ConnectionConfig",
    "DeleteResult",
    "EventBus",
    "EventType",
    "FileEvent",
    "FileInfo",
    "FileNotFound",
    "FileSystemError",
    "ListResult",
    "NoPermissions",
    "Permission",
    "SiyuanFS",
    "SiyuanFSAsync",
    "SiyuanFSError",
    "SiyuanFileSystem",
    "Unavailable",
    "UnsupportedOperationError",
    "WriteResult",
    "__version__",
]
