"""
In-memory TTL cache shared by concurrent authorization requests.

Read-mostly: lookups take no lock and read an immutable entry, while
writes and invalidation are serialised so a background refresh can run
alongside request handlers.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

import structlog

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Cache entry with value and expiration."""
    value: V
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class TTLCache(Generic[K, V]):
    """
    Thread-safe TTL mapping.

    Usage:
        cache = TTLCache(ttl=300)
        cache.set(("editor",), frozenset({"post.edit"}))
        perms = cache.get(("editor",))

    Args:
        ttl: Seconds an entry stays valid (0 or None = never expires)
        clock: Monotonic time source, overridable in tests
    """

    def __init__(
        self,
        ttl: int | float | None = 300,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        self.ttl = ttl or None
        self.name = name
        self._clock = clock
        self._store: dict[K, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """
        Invalidation counter.

        Bumped by every ``delete``, ``delete_where`` and ``clear``. Take it
        before reading the source of a value and pass it to ``set`` so a
        fill that raced an invalidation is dropped instead of stored.
        """
        return self._generation

    def get(self, key: K) -> V | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            with self._lock:
                # Another writer may have refreshed it meanwhile
                if self._store.get(key) is entry:
                    del self._store[key]
            return None
        return entry.value

    def set(self, key: K, value: V, generation: int | None = None) -> bool:
        """
        Store a value.

        Returns:
            False if ``generation`` is stale and nothing was stored
        """
        now = self._clock()
        expires_at = None
        if self.ttl:
            expires_at = now + self.ttl
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Stale cache fill dropped", cache=self.name, key=key)
                return False
            self._purge_expired(now)
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)
        return True

    def delete(self, key: K) -> bool:
        with self._lock:
            self._generation += 1
            return self._store.pop(key, None) is not None

    def delete_where(self, predicate: Callable[[K, V], bool]) -> int:
        """Remove every entry for which ``predicate(key, value)`` holds."""
        with self._lock:
            self._generation += 1
            self._purge_expired(self._clock())
            matching = [k for k, entry in self._store.items() if predicate(k, entry.value)]
            for key in matching:
                del self._store[key]
        if matching:
            logger.debug("Cache entries invalidated", cache=self.name, count=len(matching))
        return len(matching)

    def clear(self) -> int:
        """Remove everything. Returns the number of live entries dropped."""
        with self._lock:
            self._generation += 1
            self._purge_expired(self._clock())
            count = len(self._store)
            self._store.clear()
        logger.debug("Cache cleared", cache=self.name, count=count)
        return count

    def _purge_expired(self, now: float) -> None:
        # Caller holds the lock
        if self.ttl is None:
            return
        expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in list(self._store.values()) if not entry.is_expired(now))
