# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
servicekit: cross-cutting infrastructure for async service layers.

- :mod:`servicekit.interceptors`: logging, caching, validation, retry, rate
  limiting, circuit breaking, audit and timing for service methods
- :mod:`servicekit.di`: service container with singleton caching and
  circular dependency detection
- :mod:`servicekit.cache`, :mod:`servicekit.resilience`,
  :mod:`servicekit.validation`: the building blocks the interceptors use
"""

__version__ = "0.1.0"
