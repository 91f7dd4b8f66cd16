"""Wire models for the SiYuan HTTP API.

Non-table SQLModel classes: they validate response payloads at the client
boundary so everything past ``SiyuanClient`` works with typed values.
Field names follow Python conventions; camelCase wire keys are aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlmodel import Field, SQLModel

DOCUMENT_SUFFIX = ".sy"
"""Suffix the remote store gives document files; the virtual namespace reuses it."""

_BLOCK_ID_TIME_FORMAT = "%Y%m%d%H%M%S"


def block_id_time(block_id: str) -> datetime | None:
    """Creation time encoded in a block or notebook identifier.

    Identifiers look like ``20240705122434-xzm9uhi``: a local timestamp,
    a dash, and a random suffix.  Returns ``None`` when the prefix is
    not a valid timestamp.
    """
    prefix, sep, _ = block_id.partition("-")
    if not sep or len(prefix) != 14:
        return None
    try:
        return datetime.strptime(prefix, _BLOCK_ID_TIME_FORMAT)  # noqa: DTZ007
    except ValueError:
        return None


class ApiResponse(SQLModel):
    """The ``{code, msg, data}`` envelope every endpoint answers with."""

    code: int
    msg: str = ""
    data: Any = None


class Notebook(SQLModel):
    """A top-level notebook (``box`` in SiYuan terms)."""

    id: str
    name: str
    icon: str = ""
    sort: int = 0
    closed: bool = False

    @property
    def created_at(self) -> datetime | None:
        return block_id_time(self.id)


class NotebookList(SQLModel):
    notebooks: list[Notebook] = Field(default_factory=list)


class DocEntry(SQLModel):
    """One child document as returned by ``listDocsByPath``."""

    id: str
    name: str
    path: str = ""
    size: int = 0
    ctime: int = 0
    mtime: int = 0
    sub_file_count: int = Field(default=0, alias="subFileCount")

    @property
    def display_name(self) -> str:
        """Document title without the remote ``.sy`` suffix."""
        if self.name.endswith(DOCUMENT_SUFFIX):
            return self.name[: -len(DOCUMENT_SUFFIX)]
        return self.name

    @property
    def has_children(self) -> bool:
        return self.sub_file_count > 0

    @property
    def created_at(self) -> datetime | None:
        if self.ctime:
            return datetime.fromtimestamp(self.ctime)  # noqa: DTZ006
        return block_id_time(self.id)

    @property
    def updated_at(self) -> datetime | None:
        if self.mtime:
            return datetime.fromtimestamp(self.mtime)  # noqa: DTZ006
        return self.created_at


class DocListing(SQLModel):
    """Children of one location inside a notebook."""

    box: str = ""
    path: str = "/"
    files: list[DocEntry] = Field(default_factory=list)


class BlockKramdown(SQLModel):
    """Raw kramdown source of a block."""

    id: str
    kramdown: str = ""
