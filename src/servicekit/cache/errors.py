# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Exceptions for the cache system.

None of these reach callers of :class:`servicekit.cache.CacheStore`; the store
absorbs them and degrades to a miss (reads) or a best-effort no-op (writes).
"""

from __future__ import annotations

from typing import Any

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError

__all__ = [
    "CacheError",
    "CacheSerializationError",
    "CacheUnavailableError",
]


class CacheError(ServiceKitError):
    """Base class for cache errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CACHE_ERROR",
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            category=ErrorCategory.CACHE,
            severity=severity,
            context=context,
        )


class CacheUnavailableError(CacheError):
    """Raised by a backend when the backing store cannot be reached."""

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.backend = backend
        ctx = dict(context or {})
        if backend is not None:
            ctx["cache_backend"] = backend
        super().__init__(
            message,
            code="CACHE_UNAVAILABLE",
            severity=ErrorSeverity.WARNING,
            context=ctx,
        )


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded for, or decoded from, the backend."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.key = key
        ctx = dict(context or {})
        if key is not None:
            ctx["cache_key"] = key
        super().__init__(message, code="CACHE_SERIALIZATION_ERROR", context=ctx)
