"""Custom exception hierarchy for the SiYuanFS filesystem layer.

Two families live here.  The remote/resolver errors describe *why* a call
failed (``AuthenticationError``, ``NetworkError``, ...).  The host-facing
``FileSystemError`` family is the small vocabulary a filesystem host
understands (not-found, no-permission, unavailable); the facade translates
the former into the latter.
"""

from __future__ import annotations

from typing import Any


class SiyuanFSError(Exception):
    """Base exception for all SiYuanFS errors."""


# ---------------------------------------------------------------------------
# Remote / resolver errors
# ---------------------------------------------------------------------------


class AuthenticationError(SiyuanFSError):
    """Raised when the remote store rejects the API token (HTTP 401)."""


class PermissionDeniedError(SiyuanFSError):
    """Raised when the remote store denies access (HTTP 403)."""


class PathNotFoundError(SiyuanFSError):
    """Raised when a virtual path segment cannot be mapped to a block."""


class NetworkError(SiyuanFSError):
    """Raised on transport failures, timeouts and unstructured HTTP errors."""


class ValidationError(SiyuanFSError):
    """Raised when a response body does not have the expected shape."""


class ApiError(SiyuanFSError):
    """Raised when the remote envelope carries a non-zero ``code``."""

    def __init__(self, code: int, msg: str, data: Any = None) -> None:
        super().__init__(f"API error {code}: {msg}" if msg else f"API error {code}")
        self.code = code
        self.msg = msg
        self.data = data


class MountNotFoundError(SiyuanFSError):
    """Raised when no mount matches the given virtual path."""


# ---------------------------------------------------------------------------
# Host vocabulary
# ---------------------------------------------------------------------------


class FileSystemError(SiyuanFSError):
    """Base for the errors a filesystem host is expected to handle."""

    code = "Unknown"

    def __init__(self, message: str = "", path: str | None = None) -> None:
        super().__init__(message or self.code)
        self.path = path


class FileNotFound(FileSystemError, FileNotFoundError):  # noqa: N818
    """The path does not exist (or could not be resolved)."""

    code = "FileNotFound"


class NoPermissions(FileSystemError, PermissionError):  # noqa: N818
    """The operation is not allowed on this path."""

    code = "NoPermissions"


class Unavailable(FileSystemError, ConnectionError):  # noqa: N818
    """The remote store could not be reached or answered unexpectedly."""

    code = "Unavailable"


class UnsupportedOperationError(NoPermissions):
    """Raised for operations the remote addressing model cannot express."""

    code = "NoPermissions"
