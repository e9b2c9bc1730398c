# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Dependency injection for servicekit.

Example usage:

    container = bootstrap_container(ServiceContainer())
    container.register(ServiceKeys.USER_REPOSITORY, MongoUserRepository)
    container.register(
        ServiceKeys.BOOKING_SERVICE,
        lambda: container.create_service(BookingService, ServiceKeys.USER_REPOSITORY),
    )
    bookings = await container.resolve(ServiceKeys.BOOKING_SERVICE)
"""

from servicekit.di.bootstrap import ServiceKeys, bootstrap_container, install_interceptor_defaults
from servicekit.di.container import ServiceContainer
from servicekit.di.errors import CircularDependencyError, DIError, ServiceNotRegisteredError
from servicekit.di.registration import ServiceKey, ServiceRegistration, ServiceToken

__all__ = [
    "CircularDependencyError",
    "DIError",
    "ServiceContainer",
    "ServiceKey",
    "ServiceKeys",
    "ServiceNotRegisteredError",
    "ServiceRegistration",
    "ServiceToken",
    "bootstrap_container",
    "install_interceptor_defaults",
]
