# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit

"""
Public API for the servicekit logging system.

This module exports structured logging built on structlog, the settings that
drive it, and correlation ID helpers.
"""

from __future__ import annotations

from servicekit.logging.config import LoggingSettings
from servicekit.logging.level import LogLevel
from servicekit.logging.logger import (
    ServiceLogger,
    configure_logging,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)

__all__ = [
    "LogLevel",
    "LoggingSettings",
    "ServiceLogger",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
]
