"""SQLModel wire models for SiYuanFS."""

from siyuanfs.models.wire import (
    ApiResponse,
    BlockKramdown,
    DocEntry,
    DocListing,
    Notebook,
    NotebookList,
)

__all__ = [
    "ApiResponse",
    "BlockKramdown",
    "DocEntry",
    "DocListing",
    "Notebook",
    "NotebookList",
]
