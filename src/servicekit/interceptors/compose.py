# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Interceptor composition.

The first interceptor listed is the outermost one: with
``compose(logged(), validate(...), cacheable(60))`` a call is logged, then
validated, then served from the cache or passed to the method. Stacking the
same decorators with ``@`` syntax in the same top-to-bottom order gives the
same result.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from servicekit.interceptors.audit import audited
from servicekit.interceptors.base import AsyncMethod
from servicekit.interceptors.caching import cacheable, invalidates_cache
from servicekit.interceptors.guards import circuit_breaker, rate_limit
from servicekit.interceptors.logging import logged
from servicekit.interceptors.performance import measured
from servicekit.interceptors.retry import retry
from servicekit.interceptors.validation import ValidationRule, validate

Decorator = Callable[[AsyncMethod], AsyncMethod]


def compose(*decorators: Decorator) -> Decorator:
    """Combine interceptor decorators into one, first listed outermost."""

    def decorator(func: AsyncMethod) -> AsyncMethod:
        for apply in reversed(decorators):
            func = apply(func)
        return func

    return decorator


class InterceptorChain:
    """Fluent builder for a stack of interceptors.

    Example:
        chain = (
            InterceptorChain()
            .log(level="debug")
            .validate(ValidationRule(0, BookingCreate))
            .retry(max_attempts=3, initial_delay=0.1)
        )

        class BookingService:
            create = chain(create_booking)
    """

    def __init__(self) -> None:
        self._decorators: list[Decorator] = []

    def __len__(self) -> int:
        return len(self._decorators)

    def add(self, decorator: Decorator) -> InterceptorChain:
        """Append an interceptor; it runs inside those added before it."""
        self._decorators.append(decorator)
        return self

    def log(self, **options: Any) -> InterceptorChain:
        return self.add(logged(**options))

    def cache(self, ttl: float = 300.0, **options: Any) -> InterceptorChain:
        return self.add(cacheable(ttl, **options))

    def invalidate(self, *patterns: str, **options: Any) -> InterceptorChain:
        return self.add(invalidates_cache(*patterns, **options))

    def validate(self, *rules: ValidationRule, **options: Any) -> InterceptorChain:
        return self.add(validate(*rules, **options))

    def retry(self, **options: Any) -> InterceptorChain:
        return self.add(retry(**options))

    def rate_limit(self, **options: Any) -> InterceptorChain:
        return self.add(rate_limit(**options))

    def circuit_breaker(self, **options: Any) -> InterceptorChain:
        return self.add(circuit_breaker(**options))

    def audit(self, event_type: str, **options: Any) -> InterceptorChain:
        return self.add(audited(event_type, **options))

    def performance(self, **options: Any) -> InterceptorChain:
        return self.add(measured(**options))

    def apply(self, func: AsyncMethod) -> AsyncMethod:
        """Wrap ``func`` with every interceptor of the chain."""
        return compose(*self._decorators)(func)

    __call__ = apply
