# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""In-memory backend for the cache system."""

from __future__ import annotations

import asyncio
import fnmatch
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from servicekit.cache.protocols import MISS, CacheKey


class MemoryCacheBackend:
    """In-process cache backend with TTL expiry and LRU eviction.

    Entries live only in the current process; this backend is also the
    fallback store used by :class:`~servicekit.cache.CacheStore` when the
    primary backend is unreachable.
    """

    name = "memory"

    def __init__(
        self,
        max_size: int | None = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory cache backend.

        Args:
            max_size: Maximum number of items the cache can hold
            clock: Monotonic time source, in seconds
        """
        self.max_size = max_size
        self._clock = clock
        # Use OrderedDict for LRU eviction
        self._store: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def _expired(self, expiry: float | None, now: float) -> bool:
        return expiry is not None and now >= expiry

    async def get(self, key: CacheKey) -> Any:
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return MISS

            value, expiry = entry
            if self._expired(expiry, self._clock()):
                del self._store[key]
                return MISS

            # Mark as recently used
            self._store.move_to_end(key)
            return value

    async def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        async with self._lock:
            if key in self._store:
                del self._store[key]

            expiry = self._clock() + ttl if ttl else None
            self._store[key] = (value, expiry)

            if self.max_size is not None and len(self._store) > self.max_size:
                self._store.popitem(last=False)

    async def delete(self, key: CacheKey) -> bool:
        async with self._lock:
            return self._store.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        # Matching and removal happen under one lock acquisition, so no reader
        # observes a partially invalidated pattern.
        async with self._lock:
            now = self._clock()
            live = 0
            matched = [key for key in self._store if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                _, expiry = self._store.pop(key)
                if not self._expired(expiry, now):
                    live += 1
            return live

    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching ``pattern``."""
        async with self._lock:
            now = self._clock()
            return [
                key
                for key, (_, expiry) in self._store.items()
                if not self._expired(expiry, now) and fnmatch.fnmatchcase(key, pattern)
            ]

    async def cleanup(self) -> int:
        """Drop expired items. Returns how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, (_, expiry) in self._store.items() if self._expired(expiry, now)]
            for key in expired:
                del self._store[key]
            return len(expired)

    async def close(self) -> None:
        async with self._lock:
            self._store.clear()
