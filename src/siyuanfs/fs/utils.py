"""Path utilities, naming convention helpers, block-id timestamps."""

from __future__ import annotations

import posixpath

from siyuanfs.models.wire import DOCUMENT_SUFFIX, block_id_time

__all__ = [
    "DOCUMENT_SUFFIX",
    "block_id_time",
    "document_name",
    "hpath_for",
    "is_document_name",
    "join_path",
    "normalize_path",
    "path_segments",
    "split_path",
    "strip_document_suffix",
]

# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a virtual file system path.

    - Ensures leading /
    - Resolves .. and . references
    - Removes double slashes
    - Removes trailing slash (except for root)

    Examples:
        normalize_path("Work/Plan.sy") -> "/Work/Plan.sy"
        normalize_path("/Work//Plan") -> "/Work/Plan"
        normalize_path("/Work/../Home") -> "/Home"
        normalize_path("/Work/") -> "/Work"
        normalize_path("") -> "/"
    """
    if not path:
        return "/"

    path = path.strip()

    if not path.startswith("/"):
        path = "/" + path

    path = posixpath.normpath(path)
    # normpath keeps a leading "//" (POSIX allows it to be special)
    if path.startswith("//"):
        path = "/" + path.lstrip("/")

    if path != "/" and path.endswith("/"):
        path = path[:-1]

    return path


def split_path(path: str) -> tuple[str, str]:
    """Split path into (parent_dir, name).

    Examples:
        split_path("/Work/Plan.sy") -> ("/Work", "Plan.sy")
        split_path("/Work") -> ("/", "Work")
        split_path("/") -> ("/", "")
    """
    path = normalize_path(path)
    if path == "/":
        return "/", ""
    return posixpath.split(path)


def path_segments(path: str) -> list[str]:
    """Return the non-empty segments of a normalized path."""
    path = normalize_path(path)
    if path == "/":
        return []
    return path.strip("/").split("/")


def join_path(*parts: str) -> str:
    """Join path parts into a normalized absolute path."""
    return normalize_path("/".join(p.strip("/") for p in parts if p and p != "/"))


# =============================================================================
# Document / Container Form
# =============================================================================


def is_document_name(name: str) -> bool:
    """True when *name* is the document form (``Plan.sy``)."""
    return name.endswith(DOCUMENT_SUFFIX) and len(name) > len(DOCUMENT_SUFFIX)


def strip_document_suffix(name: str) -> str:
    """``"Plan.sy"`` -> ``"Plan"``; bare names are returned unchanged."""
    if is_document_name(name):
        return name[: -len(DOCUMENT_SUFFIX)]
    return name


def document_name(name: str) -> str:
    """``"Plan"`` -> ``"Plan.sy"``; already-suffixed names are unchanged."""
    if is_document_name(name):
        return name
    return name + DOCUMENT_SUFFIX


def hpath_for(segments: list[str]) -> str:
    """Build the human-readable remote path for document *segments*.

    The notebook is not part of an hpath; *segments* start below it.

    Examples:
        hpath_for(["Plan"]) -> "/Plan"
        hpath_for(["Plan", "Tasks.sy"]) -> "/Plan/Tasks"
    """
    return "/" + "/".join(strip_document_suffix(s) for s in segments)

