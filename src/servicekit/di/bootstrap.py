# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Service keys and registration of the infrastructure services.

Domain services (repositories, booking, email) are registered by the
application under the matching :class:`ServiceKeys` tokens.
"""

from __future__ import annotations

from typing import Any

from servicekit.cache.config import CacheSettings
from servicekit.cache.store import create_cache_store
from servicekit.di.container import ServiceContainer
from servicekit.di.registration import ServiceToken
from servicekit.interceptors.audit import LoggingAuditSink
from servicekit.interceptors.defaults import configure_interceptors
from servicekit.resilience.retry import RetryExecutor
from servicekit.tracking import TrackingSettings, init_error_tracking
from servicekit.validation.validator import SchemaValidator


class ServiceKeys:
    """Well-known service keys."""

    # Infrastructure
    CACHE_STORE: ServiceToken[Any] = ServiceToken("CacheStore")
    ERROR_TRACKER: ServiceToken[Any] = ServiceToken("ErrorTracker")
    SCHEMA_VALIDATOR: ServiceToken[Any] = ServiceToken("SchemaValidator")
    RETRY_EXECUTOR: ServiceToken[Any] = ServiceToken("RetryExecutor")
    AUDIT_SINK: ServiceToken[Any] = ServiceToken("AuditSink")

    # Domain
    USER_REPOSITORY: ServiceToken[Any] = ServiceToken("UserRepository")
    BOOKING_SERVICE: ServiceToken[Any] = ServiceToken("BookingService")
    EMAIL_SERVICE: ServiceToken[Any] = ServiceToken("EmailService")


def bootstrap_container(
    container: ServiceContainer,
    cache_settings: CacheSettings | None = None,
    tracking_settings: TrackingSettings | None = None,
) -> ServiceContainer:
    """Register the infrastructure services as singletons.

    Settings left out are read from the environment when the service is
    first resolved.

    Args:
        container: Container to register into
        cache_settings: Settings for the cache store
        tracking_settings: Settings for error tracking

    Returns:
        The same container, for chaining
    """
    container.register(ServiceKeys.CACHE_STORE, lambda: create_cache_store(cache_settings))
    container.register(ServiceKeys.ERROR_TRACKER, lambda: init_error_tracking(tracking_settings))
    container.register(ServiceKeys.SCHEMA_VALIDATOR, SchemaValidator)
    container.register(ServiceKeys.RETRY_EXECUTOR, RetryExecutor)
    container.register(ServiceKeys.AUDIT_SINK, LoggingAuditSink)
    return container


async def install_interceptor_defaults(container: ServiceContainer) -> None:
    """Make the container's infrastructure services the interceptors' defaults."""
    configure_interceptors(
        cache_store=await container.resolve(ServiceKeys.CACHE_STORE),
        error_tracker=await container.resolve(ServiceKeys.ERROR_TRACKER),
        validator=await container.resolve(ServiceKeys.SCHEMA_VALIDATOR),
        retry_executor=await container.resolve(ServiceKeys.RETRY_EXECUTOR),
        audit_sink=await container.resolve(ServiceKeys.AUDIT_SINK),
    )
