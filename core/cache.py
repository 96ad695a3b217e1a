"""
WikiSubmission SDK - Response Cache

Time-bounded key/value store for completed responses:
- TTL checked on every read, expired entries dropped lazily
- Periodic sweep task for keys that are written once and never read again
- Entries are immutable snapshots; a write replaces, never mutates

Cache failures never reach callers: a miss simply means another fetch.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from core.async_utils import cancel_task_threadsafe
from observability.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

DEFAULT_MAX_AGE_MS = 300_000
DEFAULT_SWEEP_INTERVAL_MS = 60_000


def make_cache_key(query: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Composite key of the query string and its options.

    Options are serialized with sorted keys, so equal option sets always map
    to the same key regardless of insertion order.
    """
    return f"{query}_{json.dumps(dict(options or {}), sort_keys=True, default=str)}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with the TTL it was stored under."""

    data: T
    created_at: float
    max_age_ms: float

    def age_ms(self, now: float) -> float:
        return (now - self.created_at) * 1000


class CacheStore(Generic[T]):
    """
    In-memory TTL store owned by a single client.

    Usage:
        cache = CacheStore(max_age_ms=60_000)
        cache.set(key, response)
        hit = cache.get(key)  # None once the entry is older than 60s
    """

    def __init__(
        self,
        max_age_ms: float = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_age_ms = max_age_ms
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def size(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[T]:
        """Cached value, or None on a miss. An expired entry is removed."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.age_ms(self._clock()) < entry.max_age_ms:
            return entry.data

        del self._entries[key]
        return None

    def set(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(
            data=value,
            created_at=self._clock(),
            max_age_ms=self.max_age_ms,
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def sweep(self) -> int:
        """Remove every entry past its TTL. Returns the number removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.age_ms(now) > entry.max_age_ms
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        return {"size": len(self._entries), "max_age_ms": self.max_age_ms}


class CacheSweeper:
    """
    Background task that sweeps a CacheStore on a fixed interval.

    ``stop()`` may be called from any thread; off-loop calls are handed to
    the owning loop.
    """

    def __init__(
        self,
        store: CacheStore,
        interval_ms: float = DEFAULT_SWEEP_INTERVAL_MS,
    ):
        self.store = store
        self.interval_ms = interval_ms
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """
        Start sweeping on the running loop.

        Returns False when no loop is running yet; the caller may retry later.
        """
        if self.running:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False

        self._task = loop.create_task(self._run(), name="wikisubmission-cache-sweep")
        logger.debug("Cache sweep started", interval_ms=self.interval_ms)
        return True

    def stop(self) -> None:
        """Cancel the sweep task. Idempotent."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return

        cancel_task_threadsafe(task)
        logger.debug("Cache sweep stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            try:
                removed = self.store.sweep()
            except Exception as e:
                logger.warning("Cache sweep failed", error=str(e))
                continue
            if removed:
                logger.debug("Cache sweep removed entries", removed=removed)
