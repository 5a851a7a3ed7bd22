"""Query cache for resource collections.

Entries are keyed by (resource name, user id) and hold an immutable tuple
of rows plus a freshness marker:

- LOADING: no data fetched yet for this key
- READY: data reflects the last successful fetch
- STALE: invalidated, or the last fetch failed; data is the previous value

Concurrent fetches for the same key share one in-flight task. Every
invalidation bumps the key's generation, so a fetch that started before
a mutation can never overwrite the entry with pre-mutation rows.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from portal.errors import ProviderError
from portal.logging import get_logger

logger = get_logger(__name__)

CacheKey = tuple[str, str]
Fetcher = Callable[[], Awaitable[tuple[Any, ...]]]


class Freshness(str, Enum):
    LOADING = "loading"
    READY = "ready"
    STALE = "stale"


@dataclass(frozen=True)
class CacheEntry:
    data: tuple[Any, ...] = ()
    freshness: Freshness = Freshness.LOADING
    error: str | None = None


@dataclass
class _Slot:
    entry: CacheEntry = field(default_factory=CacheEntry)
    generation: int = 0
    inflight: "asyncio.Task[tuple[Any, ...]] | None" = None
    inflight_generation: int = -1


class QueryCache:
    """Per-key cache with in-flight deduplication and stale fallback."""

    def __init__(self):
        self._slots: dict[CacheKey, _Slot] = {}

    def _slot(self, key: CacheKey) -> _Slot:
        slot = self._slots.get(key)
        if slot is None:
            slot = _Slot()
            self._slots[key] = slot
        return slot

    def peek(self, key: CacheKey) -> CacheEntry:
        """Return the current entry without fetching."""
        slot = self._slots.get(key)
        return slot.entry if slot else CacheEntry()

    async def fetch(self, key: CacheKey, fetcher: Fetcher, *, force: bool = False) -> CacheEntry:
        """Return fresh data for `key`, fetching when not READY.

        A READY entry is returned as-is unless `force` is set. Otherwise
        one fetch runs (shared with concurrent callers); on success the
        entry becomes READY with the new rows. On ProviderError the
        previous rows are kept and the entry is marked STALE with the
        error message.
        """
        slot = self._slot(key)
        if force:
            self.invalidate(key)
        elif slot.entry.freshness is Freshness.READY:
            return slot.entry

        if slot.inflight is None or slot.inflight_generation != slot.generation:
            slot.inflight = asyncio.ensure_future(fetcher())
            slot.inflight_generation = slot.generation

        task = slot.inflight
        generation = slot.inflight_generation
        try:
            rows = await asyncio.shield(task)
        except ProviderError as e:
            if generation == slot.generation:
                slot.entry = CacheEntry(
                    data=slot.entry.data, freshness=Freshness.STALE, error=e.message
                )
                logger.warning(
                    "cache_fetch_failed",
                    resource=key[0],
                    error=e.message,
                    error_code=e.code,
                )
            return slot.entry
        finally:
            if slot.inflight is task and task.done():
                slot.inflight = None

        if generation == slot.generation:
            slot.entry = CacheEntry(data=tuple(rows), freshness=Freshness.READY)
            return slot.entry

        # Invalidated while fetching: the rows predate a mutation.
        return await self.fetch(key, fetcher)

    def invalidate(self, key: CacheKey) -> None:
        """Mark `key` stale so the next fetch goes to the network."""
        slot = self._slot(key)
        slot.generation += 1
        if slot.entry.freshness is Freshness.READY:
            slot.entry = CacheEntry(data=slot.entry.data, freshness=Freshness.STALE)

    def clear(self) -> None:
        """Drop everything (used on sign-out). Fetches still running land nowhere."""
        self._slots.clear()
