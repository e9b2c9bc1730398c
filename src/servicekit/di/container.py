# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
DI container implementation for servicekit.

This module implements the container that registers service factories under
string or token keys, builds services lazily, caches singletons and detects
circular dependencies.
"""

from __future__ import annotations

import contextvars
import itertools
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from servicekit.di.errors import CircularDependencyError, ServiceNotRegisteredError, describe_key
from servicekit.di.registration import ServiceFactory, ServiceRegistration
from servicekit.logging import ServiceLogger, get_logger

T = TypeVar("T")

_container_ids = itertools.count(1)


class ServiceContainer:
    """Registry of service factories with singleton caching.

    The chain of keys being constructed is tracked per task in a context
    variable, so a factory that resolves its own key (directly or through
    other factories) fails with :class:`CircularDependencyError` while
    unrelated tasks resolving the same key concurrently do not.

    Attributes:
        _registrations: dict[Hashable, ServiceRegistration]
            Registrations by key.
        _instances: dict[Hashable, Any]
            Cached singleton instances by key.
    """

    def __init__(self, logger: ServiceLogger | None = None) -> None:
        self._registrations: dict[Hashable, ServiceRegistration[Any]] = {}
        self._instances: dict[Hashable, Any] = {}
        self._logger = logger or get_logger("servicekit.di")
        self._id = next(_container_ids)
        self._chain = self._new_chain()

    def _new_chain(self) -> contextvars.ContextVar[tuple[Hashable, ...]]:
        return contextvars.ContextVar(f"servicekit_di_chain_{self._id}", default=())

    def register(self, key: Hashable, factory: ServiceFactory, singleton: bool = True) -> None:
        """Register a factory under ``key``.

        Registering an existing key replaces its factory and drops any cached
        instance.

        Args:
            key: A string or :class:`ServiceToken`
            factory: Zero-argument callable, sync or async
            singleton: Reuse the first successfully built instance
        """
        registration = ServiceRegistration(key, factory, singleton)
        if key in self._registrations:
            self._logger.warning("Service registration overwritten", service_key=describe_key(key))
        self._registrations[key] = registration
        self._instances.pop(key, None)
        self._logger.debug("Service registered", service_key=describe_key(key), singleton=singleton)

    def register_instance(self, key: Hashable, instance: Any) -> None:
        """Register an already built instance, replacing any factory for ``key``."""
        if key in self._registrations:
            self._logger.debug("Service replaced by instance", service_key=describe_key(key))
        self._registrations[key] = ServiceRegistration(key, lambda: instance, singleton=True)
        self._instances[key] = instance

    async def resolve(self, key: Hashable) -> Any:
        """Resolve a service instance.

        Args:
            key: The key the service was registered under

        Returns:
            The cached singleton, or a newly built instance

        Raises:
            ServiceNotRegisteredError: If nothing is registered under ``key``
            CircularDependencyError: If ``key`` is already being built in the
                current resolution chain
            Exception: Whatever the factory raises, unchanged
        """
        chain_var = self._chain
        chain = chain_var.get()
        if key in chain:
            error = CircularDependencyError(key, chain)
            self._logger.error(
                "Circular dependency detected",
                service_key=describe_key(key),
                chain=error.context["dependency_chain"],
            )
            raise error

        registration = self._registrations.get(key)
        if registration is None:
            self._logger.error("Service not registered", service_key=describe_key(key))
            raise ServiceNotRegisteredError(key)

        if registration.singleton and key in self._instances:
            return self._instances[key]

        token = chain_var.set((*chain, key))
        try:
            instance = await registration.build()
        except Exception as e:
            self._logger.error(
                "Service resolution failed",
                service_key=describe_key(key),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            chain_var.reset(token)

        if registration.singleton and self._registrations.get(key) is registration:
            # the first instance stored wins if two tasks built it concurrently
            instance = self._instances.setdefault(key, instance)
        return instance

    async def resolve_optional(self, key: Hashable) -> Any | None:
        """Resolve a service instance or return None if not registered."""
        if key not in self._registrations:
            return None
        return await self.resolve(key)

    async def create_service(self, cls: Callable[..., T], *keys: Hashable) -> T:
        """Build ``cls`` with the services registered under ``keys`` as positional arguments."""
        dependencies = [await self.resolve(key) for key in keys]
        return cls(*dependencies)

    def is_resolving(self, key: Hashable) -> bool:
        """True while ``key`` is being built in the current task's resolution chain."""
        return key in self._chain.get()

    def has(self, key: Hashable) -> bool:
        return key in self._registrations

    def get_registered_services(self) -> list[Hashable]:
        return list(self._registrations)

    def reset(self) -> None:
        """Forget every registration, cached instance and resolution chain."""
        self._registrations.clear()
        self._instances.clear()
        self._chain = self._new_chain()
        self._logger.debug("Container reset")
