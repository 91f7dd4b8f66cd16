"""PathResolver — virtual paths to notebook-scoped identifier chains.

The remote store addresses documents by block identifier; the virtual
filesystem addresses them by human-readable names.  Resolution maps::

    /Work                   -> notebook nb1, path "/"
    /Work/Plan.sy           -> notebook nb1, path "/d1.sy"          (document)
    /Work/Plan              -> notebook nb1, path "/d1.sy"          (container)
    /Work/Plan/Tasks.sy     -> notebook nb1, path "/d1/d2.sy"

Segment 0 is always the notebook name and is looked up through the
``NotebookRegistry``.  Every further prefix is mapped to one identifier with
a hierarchical-path lookup (``getIDsByHPath``) scoped to that notebook.  The
container form of a node resolves to exactly the same chain as its document
form; only ``ResolvedPath.is_container`` differs, and the facade lists the
node's children instead of reading its content.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .cache import TTLCache
from .config import DEFAULT_TTL
from .exceptions import PathNotFoundError
from .inflight import InFlight
from .types import ResolvedPath
from .utils import DOCUMENT_SUFFIX, hpath_for, is_document_name, path_segments

if TYPE_CHECKING:
    from collections.abc import Callable

    from .client import SiyuanClient
    from .registry import NotebookRegistry

logger = logging.getLogger(__name__)


class PathResolver:
    """Resolves virtual paths for one instance.

    Identifier lookups are cached per ``(notebook_id, hpath)`` with a ttl,
    and concurrent lookups of the same key share one remote call.
    Resolution of different paths is independent; prefixes they have in
    common are looked up once.
    """

    def __init__(
        self,
        client: SiyuanClient,
        registry: NotebookRegistry,
        *,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._registry = registry
        self._ids = TTLCache(ttl, clock=clock)
        self._inflight: InFlight[str] = InFlight()
        self._generation = 0

    def bind(self, client: SiyuanClient) -> None:
        """Point the resolver at a new client and forget cached lookups."""
        self._client = client
        self.clear()

    async def resolve(self, path: str) -> ResolvedPath:
        """Resolve *path* to its notebook and identifier chain.

        Raises:
            PathNotFoundError: the path is the root, the notebook is unknown,
                a ``.sy`` segment appears before the last position, or any
                prefix has no matching document.
        """
        segments = path_segments(path)
        if not segments:
            raise PathNotFoundError("The root path does not belong to a notebook")

        notebook = await self._registry.get(segments[0])
        if len(segments) == 1:
            return ResolvedPath(notebook_id=notebook.id, notebook_name=notebook.name)

        doc_segments = segments[1:]
        for segment in doc_segments[:-1]:
            if is_document_name(segment):
                raise PathNotFoundError(f"A document cannot contain other paths: {path}")

        ids: list[str] = []
        for i in range(len(doc_segments)):
            ids.append(await self._lookup_id(notebook.id, hpath_for(doc_segments[: i + 1])))

        return ResolvedPath(
            notebook_id=notebook.id,
            notebook_name=notebook.name,
            path="/" + "/".join(ids) + DOCUMENT_SUFFIX,
            block_id=ids[-1],
            is_container=not is_document_name(doc_segments[-1]),
        )

    async def _lookup_id(self, notebook_id: str, hpath: str) -> str:
        key = (notebook_id, hpath)
        block_id = self._ids.get(key)
        if block_id is not None:
            return block_id
        return await self._inflight.run(key, lambda: self._fetch_id(notebook_id, hpath))

    async def _fetch_id(self, notebook_id: str, hpath: str) -> str:
        generation = self._generation
        ids = await self._client.get_ids_by_hpath(hpath, notebook_id)
        if not ids:
            raise PathNotFoundError(f"Cannot find path: {hpath}")
        if len(ids) > 1:
            logger.debug("hpath %s is ambiguous (%d ids); using %s", hpath, len(ids), ids[0])
        if generation == self._generation:
            self._ids.set((notebook_id, hpath), ids[0])
        return ids[0]

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, notebook_id: str, hpath: str | None = None) -> int:
        """Forget lookups for *hpath* and everything below it.

        With no *hpath*, forget every lookup in the notebook.  Returns the
        number of entries removed.
        """

        def matches(key: object) -> bool:
            if not isinstance(key, tuple) or key[0] != notebook_id:
                return False
            if hpath is None:
                return True
            return key[1] == hpath or key[1].startswith(hpath.rstrip("/") + "/")

        return self._ids.delete_where(matches)

    def sweep(self) -> int:
        return self._ids.sweep()

    def start_sweeper(self, interval: float) -> None:
        self._ids.start_sweeper(interval)

    async def stop_sweeper(self) -> None:
        await self._ids.stop_sweeper()

    def clear(self) -> None:
        """Forget every lookup.  Lookups still in flight are not stored."""
        self._ids.clear()
        self._generation += 1
        self._inflight.detach_all()

    @property
    def cached_lookups(self) -> int:
        return len(self._ids)
