"""Result types: FileInfo, ResolvedPath, ListResult, WriteResult, DeleteResult."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from siyuanfs.models.wire import DOCUMENT_SUFFIX

if TYPE_CHECKING:
    from datetime import datetime


@dataclass
class FileInfo:
    """File/directory metadata."""

    path: str
    name: str
    is_directory: bool
    size_bytes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    block_id: str | None = None
    notebook_id: str | None = None
    has_children: bool = False
    permission: str | None = None
    mount_type: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedPath:
    """Identifier form of a virtual path.

    Attributes:
        notebook_id: Notebook the path lives in (carried out-of-band).
        notebook_name: Display name the path started with.
        path: Slash-joined block identifiers with ``.sy`` on the last one,
            or ``"/"`` for the notebook root.
        block_id: Identifier of the addressed document, None at notebook root.
        is_container: True when the virtual path named the container form.
    """

    notebook_id: str
    notebook_name: str
    path: str = "/"
    block_id: str | None = None
    is_container: bool = True

    @property
    def is_notebook_root(self) -> bool:
        return self.block_id is None

    @property
    def depth(self) -> int:
        """Number of identifiers in ``path``."""
        return 0 if self.path == "/" else self.path.strip("/").count("/") + 1

    @property
    def parent_path(self) -> str:
        """Resolved path of the location that lists this document."""
        if self.depth <= 1:
            return "/"
        return self.path.rsplit("/", 1)[0] + DOCUMENT_SUFFIX


@dataclass
class ListResult:
    """Result of a list directory operation."""

    path: str = "/"
    entries: list[FileInfo] = field(default_factory=list)
    message: str = ""


@dataclass
class WriteResult:
    """Result of a write operation."""

    file_path: str
    size_bytes: int = 0
    message: str = ""
    block_id: str | None = None
    notebook_id: str | None = None


@dataclass
class DeleteResult:
    """Result of a delete operation."""

    file_path: str
    message: str = ""
    block_id: str | None = None
    notebook_id: str | None = None
