# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Caching for servicekit.

This package provides the cache store used by the caching interceptors:

- Pluggable backends (in-memory, Redis)
- Time-based expiration and key namespacing
- Glob-pattern invalidation
- Soft-fail semantics with an optional in-process fallback
- Stable key derivation from call arguments

Example usage:

    from servicekit.cache import CacheSettings, create_cache_store

    store = create_cache_store(CacheSettings(backend="redis"))
    await store.set("UserService:get_user:{\"user_id\":\"u1\"}", user, ttl=600)
    await store.delete_pattern("UserService:*")
"""

from servicekit.cache.config import CacheSettings
from servicekit.cache.errors import CacheError, CacheSerializationError, CacheUnavailableError
from servicekit.cache.keys import bind_arguments, default_key_prefix, make_cache_key, stable_serialize
from servicekit.cache.memory import MemoryCacheBackend
from servicekit.cache.protocols import MISS, CacheBackendProtocol, CacheKey
from servicekit.cache.store import CacheStats, CacheStore, create_cache_store

__all__ = [
    # Core classes
    "CacheStore",
    "CacheStats",
    "CacheSettings",
    "create_cache_store",
    # Protocols
    "CacheBackendProtocol",
    "CacheKey",
    "MISS",
    # Backends
    "MemoryCacheBackend",
    # Keys
    "bind_arguments",
    "default_key_prefix",
    "make_cache_key",
    "stable_serialize",
    # Errors
    "CacheError",
    "CacheSerializationError",
    "CacheUnavailableError",
]
