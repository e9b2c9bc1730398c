# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Resilience primitives: retry with backoff, sliding window rate limiting and
circuit breaking. The interceptors in :mod:`servicekit.interceptors` wrap
service methods with these.
"""

from __future__ import annotations

from servicekit.resilience.circuit_breaker import CircuitBreaker, CircuitState
from servicekit.resilience.config import RetrySettings
from servicekit.resilience.errors import (
    CircuitOpenError,
    RateLimitExceededError,
    ResilienceError,
)
from servicekit.resilience.rate_limit import SlidingWindowRateLimiter
from servicekit.resilience.retry import (
    BackoffStrategy,
    RetryExecutor,
    RetryHelpers,
    RetryPolicy,
    compute_delay,
    default_should_retry,
)

__all__ = [
    "BackoffStrategy",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "RateLimitExceededError",
    "ResilienceError",
    "RetryExecutor",
    "RetryHelpers",
    "RetryPolicy",
    "RetrySettings",
    "SlidingWindowRateLimiter",
    "compute_delay",
    "default_should_retry",
]
