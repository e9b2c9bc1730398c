# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""Errors raised by the resilience guards.

Both are terminal: the default retry predicate never retries them.
"""

from __future__ import annotations

from typing import Any

from servicekit.errors.base import ErrorCategory, ErrorSeverity, ServiceKitError

__all__ = [
    "CircuitOpenError",
    "RateLimitExceededError",
    "ResilienceError",
]


class ResilienceError(ServiceKitError):
    """Base class for resilience errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            category=ErrorCategory.RESILIENCE,
            severity=severity,
            context=context,
        )


class RateLimitExceededError(ResilienceError):
    """Raised when a caller exceeds its request budget for the current window."""

    def __init__(
        self,
        key: str,
        max_requests: int,
        window: float,
        retry_after: float,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.key = key
        self.max_requests = max_requests
        self.window = window
        self.retry_after = retry_after
        ctx = dict(context or {})
        ctx.update(
            rate_limit_key=key,
            max_requests=max_requests,
            window=window,
            retry_after=retry_after,
        )
        super().__init__(
            f"Rate limit exceeded for '{key}': {max_requests} requests per "
            f"{window:g}s, retry in {retry_after:.2f}s",
            code="RESILIENCE_RATE_LIMITED",
            context=ctx,
        )


class CircuitOpenError(ResilienceError):
    """Raised instead of calling a dependency whose circuit is open."""

    def __init__(
        self,
        name: str,
        retry_after: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.retry_after = retry_after
        ctx = dict(context or {})
        ctx["circuit"] = name
        if retry_after is not None:
            ctx["retry_after"] = retry_after
        message = f"Circuit '{name}' is open"
        if retry_after is not None:
            message += f", next trial in {retry_after:.2f}s"
        super().__init__(message, code="RESILIENCE_CIRCUIT_OPEN", context=ctx)
