"""Change events for mutations made through a SiyuanFS instance.

The remote store has no change feed, so every event here was caused by
this process: a document replaced or a document removed.  Each
``SiyuanFileSystem`` dispatches its events on its own ``EventBus``;
the router re-emits them on a shared bus with mount-prefixed paths.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of change a SiYuanFS instance can report."""

    FILE_CHANGED = "file_changed"
    FILE_DELETED = "file_deleted"


@dataclass(frozen=True, slots=True)
class FileEvent:
    """Immutable record of a document mutation.

    Attributes:
        event_type: The kind of mutation that occurred.
        path: Virtual path of the document, always in document form.
        content: New markdown for ``FILE_CHANGED``, None otherwise.
        block_id: Identifier of the document in the remote store.
        notebook_id: Identifier of the notebook holding the document.
        instance: Mount label, set once the event has been routed.
    """

    event_type: EventType
    path: str
    content: str | None = None
    block_id: str | None = None
    notebook_id: str | None = None
    instance: str | None = None

    def routed(self, mount_path: str, instance: str) -> FileEvent:
        """Copy of this event as seen from above the mount at *mount_path*."""
        path = mount_path if self.path == "/" else mount_path + self.path
        return dataclasses.replace(self, path=path, instance=instance)


class EventBus:
    """Dispatches change events to registered handlers.

    Handlers are called sequentially in registration order.
    Exceptions are logged but never propagated to the caller
    that emitted the event: the mutation has already happened remotely.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Callable[..., Any]]] = {et: [] for et in EventType}

    def register(self, event_type: EventType | None, handler: Callable[..., Any]) -> None:
        """Append *handler* for *event_type*, or for every type when None."""
        types = list(EventType) if event_type is None else [event_type]
        for et in types:
            self._handlers[et].append(handler)

    def unregister(self, event_type: EventType | None, handler: Callable[..., Any]) -> bool:
        """Remove *handler* for *event_type* (every type when None).

        Returns True if it was registered anywhere.
        """
        types = list(EventType) if event_type is None else [event_type]
        found = False
        for et in types:
            try:
                self._handlers[et].remove(handler)
                found = True
            except ValueError:
                continue
        return found

    async def emit(self, event: FileEvent) -> None:
        """Dispatch *event* to all registered handlers for its type."""
        for handler in self._handlers[event.event_type]:
            try:
                await handler(event)
            except Exception:
                logger.warning(
                    "Handler %r failed for %s on %s",
                    handler,
                    event.event_type.value,
                    event.path,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        """Total number of registrations across all event types."""
        return sum(len(h) for h in self._handlers.values())

    def clear(self) -> None:
        """Remove all registered handlers."""
        for handlers in self._handlers.values():
            handlers.clear()
