# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Protocols for the caching system."""

from __future__ import annotations

from typing import Any, Final, Protocol, runtime_checkable

CacheKey = str


class _Miss:
    """Sentinel type returned by cache reads that find nothing."""

    _instance: _Miss | None = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS: Final = _Miss()


@runtime_checkable
class CacheBackendProtocol(Protocol):
    """Protocol for cache backends.

    Backends operate on fully-qualified keys and raise
    :class:`~servicekit.cache.errors.CacheUnavailableError` when the
    backing store cannot be reached.
    """

    name: str

    async def get(self, key: CacheKey) -> Any:
        """Return the stored value, or ``MISS`` when absent or expired."""
        ...

    async def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``; ``ttl`` in seconds, ``None`` for no expiry."""
        ...

    async def delete(self, key: CacheKey) -> bool:
        """Delete one key. Returns True if it existed."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...
