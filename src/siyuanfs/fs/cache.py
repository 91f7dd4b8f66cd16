"""TTLCache — time-boxed cache for content, metadata and identifier lookups."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_SWEEP_INTERVAL, DEFAULT_TTL

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(slots=True)
class CacheEntry:
    """A cached value with its storage time and lifetime (seconds)."""

    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


@dataclass(frozen=True, slots=True)
class CacheStats:
    total: int
    valid: int
    expired: int


class TTLCache:
    """In-memory cache whose entries expire after a per-entry ttl.

    Expired entries are logically absent: ``get`` reports a miss and evicts
    them lazily, and ``sweep`` removes them in bulk.  Both use the same
    staleness check (``CacheEntry.is_expired``) so they never disagree.

    All access happens on one event loop, so the map is never mutated
    concurrently; the periodic sweeper is just another task on that loop.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.default_ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._sweeper: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Mapping API
    # ------------------------------------------------------------------

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for *key*, or *default* on a miss."""
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Cache entry expired: %r", key)
            return default
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*, replacing any previous entry."""
        self._entries[key] = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

    def delete(self, key: Hashable) -> bool:
        """Remove *key*.  Return True if an entry (live or expired) was present."""
        return self._entries.pop(key, None) is not None

    def delete_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Remove every key matching *predicate*; return how many were removed."""
        doomed = [k for k in self._entries if predicate(k)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove all expired entries.  Return the number removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %d expired cache entr(ies)", len(expired))
        return len(expired)

    def __contains__(self, key: object) -> bool:
        return self.get(key, _MISSING) is not _MISSING  # type: ignore[arg-type]

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""
        return len(self._entries)

    def keys(self) -> list[Hashable]:
        return list(self._entries)

    def stats(self) -> CacheStats:
        now = self._clock()
        expired = sum(1 for e in self._entries.values() if e.is_expired(now))
        return CacheStats(
            total=len(self._entries),
            valid=len(self._entries) - expired,
            expired=expired,
        )

    # ------------------------------------------------------------------
    # Periodic sweep
    # ------------------------------------------------------------------

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        """Run ``sweep`` every *interval* seconds on the running loop."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        if self.sweeping:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()
