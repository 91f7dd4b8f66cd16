"""NotebookRegistry — notebook name to identifier mapping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import PathNotFoundError
from .inflight import InFlight

if TYPE_CHECKING:
    from siyuanfs.models.wire import Notebook

    from .client import SiyuanClient

logger = logging.getLogger(__name__)

_REFRESH_KEY = "notebooks"


class NotebookRegistry:
    """Caches the notebook listing of one instance.

    Populated lazily on the first lookup.  A refresh swaps the whole
    mapping in one assignment, so readers never observe a partial
    listing; if the remote call fails the previous mapping stays and
    the error propagates.  Concurrent refreshes share one remote call.
    """

    def __init__(self, client: SiyuanClient) -> None:
        self._client = client
        self._by_name: dict[str, Notebook] | None = None
        self._inflight: InFlight[dict[str, Notebook]] = InFlight()
        self._generation = 0

    @property
    def loaded(self) -> bool:
        return self._by_name is not None

    def bind(self, client: SiyuanClient) -> None:
        """Point the registry at a new client and forget everything."""
        self._client = client
        self.clear()

    async def refresh(self) -> None:
        """Re-fetch the full notebook list and replace the mapping."""
        await self._load()

    async def _load(self) -> dict[str, Notebook]:
        return await self._inflight.run(_REFRESH_KEY, self._fetch)

    async def _fetch(self) -> dict[str, Notebook]:
        generation = self._generation
        notebooks = await self._client.list_notebooks()
        mapping = {nb.name: nb for nb in notebooks}
        if generation == self._generation:
            self._by_name = mapping
            logger.debug("Loaded %d notebook(s)", len(mapping))
        else:
            logger.debug("Discarding notebook listing fetched before a clear")
        return mapping

    async def get(self, name: str) -> Notebook:
        """Return the notebook called *name*, fetching the list on a miss.

        A miss against an already-loaded mapping triggers one refresh
        before failing, since the notebook may have been created remotely.
        """
        mapping = self._by_name
        refreshed = False
        if mapping is None:
            mapping = await self._load()
            refreshed = True
        notebook = mapping.get(name)
        if notebook is None and not refreshed:
            notebook = (await self._load()).get(name)
        if notebook is None:
            raise PathNotFoundError(f"Notebook not found: {name}")
        return notebook

    async def lookup(self, name: str) -> str:
        """Return the identifier of notebook *name*."""
        return (await self.get(name)).id

    async def list_notebooks(self, *, include_closed: bool = False) -> list[Notebook]:
        mapping = self._by_name
        if mapping is None:
            mapping = await self._load()
        notebooks = sorted(mapping.values(), key=lambda nb: (nb.sort, nb.name))
        if include_closed:
            return notebooks
        return [nb for nb in notebooks if not nb.closed]

    def clear(self) -> None:
        """Forget the mapping.  A listing still in flight is not stored."""
        self._by_name = None
        self._generation += 1
        self._inflight.detach_all()
