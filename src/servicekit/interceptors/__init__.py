# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Declarative interceptors for async service methods.

Every interceptor comes in two forms, a wrapping function
(``with_cache(method, ttl=60)``) and a decorator (``@cacheable(60)``).
Interceptors keep the wrapped method's signature and record what they do,
which :func:`get_interceptors` reads back.

Example usage:

    class UserService:
        @logged()
        @validate(ValidationRule(0, UUID4, "user_id"))
        @cacheable(600)
        async def get_user(self, user_id: str) -> User: ...

        @invalidates_cache("UserService:*")
        async def update_user(self, user_id: str, data: UserUpdate) -> User: ...
"""

from servicekit.interceptors.audit import AuditEvent, AuditSink, LoggingAuditSink, audited, with_audit
from servicekit.interceptors.base import (
    InterceptorDeclaration,
    InterceptorKind,
    get_interceptors,
)
from servicekit.interceptors.caching import (
    cacheable,
    invalidates_cache,
    with_cache,
    with_cache_invalidation,
)
from servicekit.interceptors.compose import InterceptorChain, compose
from servicekit.interceptors.defaults import configure_interceptors, reset_interceptors
from servicekit.interceptors.errors import DuplicateInterceptorError
from servicekit.interceptors.guards import (
    circuit_breaker,
    rate_limit,
    with_circuit_breaker,
    with_rate_limit,
)
from servicekit.interceptors.logging import logged, mask_sensitive_data, with_logging
from servicekit.interceptors.performance import PerformanceSample, measured, with_performance
from servicekit.interceptors.retry import retry, with_retry
from servicekit.interceptors.validation import ValidationRule, validate, with_validation

__all__ = [
    # Declarations
    "InterceptorDeclaration",
    "InterceptorKind",
    "DuplicateInterceptorError",
    "get_interceptors",
    # Composition
    "InterceptorChain",
    "compose",
    # Collaborators
    "configure_interceptors",
    "reset_interceptors",
    # Log
    "logged",
    "mask_sensitive_data",
    "with_logging",
    # Cache
    "cacheable",
    "invalidates_cache",
    "with_cache",
    "with_cache_invalidation",
    # Validate
    "ValidationRule",
    "validate",
    "with_validation",
    # Retry
    "retry",
    "with_retry",
    # Guards
    "circuit_breaker",
    "rate_limit",
    "with_circuit_breaker",
    "with_rate_limit",
    # Audit
    "AuditEvent",
    "AuditSink",
    "LoggingAuditSink",
    "audited",
    "with_audit",
    # Performance
    "PerformanceSample",
    "measured",
    "with_performance",
]
