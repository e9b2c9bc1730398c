# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Process-wide collaborators used by interceptors that were not given their own.

Interceptors look these up at call time rather than at definition time, so
the application may wire them (see
:func:`servicekit.di.bootstrap.install_interceptor_defaults`) after its
service classes have been imported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from servicekit.cache.memory import MemoryCacheBackend
from servicekit.cache.store import CacheStore
from servicekit.resilience.retry import RetryExecutor
from servicekit.tracking import ErrorTrackerProtocol, NullErrorTracker
from servicekit.validation.validator import SchemaValidator

if TYPE_CHECKING:
    from servicekit.interceptors.audit import AuditSink


@dataclass
class InterceptorDefaults:
    cache_store: CacheStore | None = None
    error_tracker: ErrorTrackerProtocol | None = None
    validator: SchemaValidator | None = None
    retry_executor: RetryExecutor | None = None
    audit_sink: AuditSink | None = None


_defaults = InterceptorDefaults()


def configure_interceptors(
    *,
    cache_store: CacheStore | None = None,
    error_tracker: ErrorTrackerProtocol | None = None,
    validator: SchemaValidator | None = None,
    retry_executor: RetryExecutor | None = None,
    audit_sink: AuditSink | None = None,
) -> None:
    """Replace the default collaborators; arguments left as ``None`` are kept."""
    if cache_store is not None:
        _defaults.cache_store = cache_store
    if error_tracker is not None:
        _defaults.error_tracker = error_tracker
    if validator is not None:
        _defaults.validator = validator
    if retry_executor is not None:
        _defaults.retry_executor = retry_executor
    if audit_sink is not None:
        _defaults.audit_sink = audit_sink


def reset_interceptors() -> None:
    """Forget every configured collaborator."""
    global _defaults
    _defaults = InterceptorDefaults()


def get_cache_store() -> CacheStore:
    if _defaults.cache_store is None:
        _defaults.cache_store = CacheStore(MemoryCacheBackend())
    return _defaults.cache_store


def get_error_tracker() -> ErrorTrackerProtocol:
    if _defaults.error_tracker is None:
        _defaults.error_tracker = NullErrorTracker()
    return _defaults.error_tracker


def get_validator() -> SchemaValidator:
    if _defaults.validator is None:
        _defaults.validator = SchemaValidator()
    return _defaults.validator


def get_retry_executor() -> RetryExecutor:
    if _defaults.retry_executor is None:
        _defaults.retry_executor = RetryExecutor()
    return _defaults.retry_executor


def get_audit_sink() -> AuditSink:
    if _defaults.audit_sink is None:
        from servicekit.interceptors.audit import LoggingAuditSink

        _defaults.audit_sink = LoggingAuditSink()
    return _defaults.audit_sink
