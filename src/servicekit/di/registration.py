# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Service registration module for the servicekit DI container.

This module defines the ServiceRegistration class used to track service registrations
in the container, and :class:`ServiceToken`, a unique service key.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Hashable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ServiceFactory = Callable[[], Any]


class ServiceToken(Generic[T]):
    """A service key that is equal only to itself.

    Two tokens with the same description are still distinct keys, so
    independent modules cannot collide by picking the same name.
    """

    __slots__ = ("description",)

    def __init__(self, description: str) -> None:
        self.description = description

    def __repr__(self) -> str:
        return f"ServiceToken({self.description!r})"

    def __str__(self) -> str:
        return self.description


ServiceKey = str | ServiceToken[Any]


class ServiceRegistration(Generic[T]):
    """Represents a service registration in the DI container.

    A registration contains the key, the zero-argument factory that builds the
    service, and whether the first instance built is reused.
    """

    def __init__(self, key: Hashable, factory: ServiceFactory, singleton: bool = True) -> None:
        """Initialize a service registration.

        Args:
            key: The key used to resolve the service
            factory: Zero-argument callable returning the instance or an
                awaitable of it
            singleton: Cache the first successfully built instance
        """
        if not callable(factory):
            raise TypeError(f"factory for {key!s} must be callable")
        self.key = key
        self.factory = factory
        self.singleton = singleton

    async def build(self) -> T:
        """Run the factory, awaiting its result when needed."""
        instance = self.factory()
        if inspect.isawaitable(instance):
            instance = await instance
        return instance

    def __repr__(self) -> str:
        return f"ServiceRegistration(key={self.key!s}, singleton={self.singleton})"
