# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Structured logger for servicekit.

Records are emitted through structlog so interceptors can attach arbitrary
fields (method, masked arguments, execution time, ...) to each event. The
logger is a collaborator of every wrapped call, so emitting a record must
never fail the call: :meth:`ServiceLogger.log` swallows and reports its own
failures through the standard library logger.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from servicekit.logging.config import LoggingSettings
from servicekit.logging.level import LogLevel

# Context variable for correlation ID
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_fallback = logging.getLogger("servicekit.logging")


def get_correlation_id() -> str:
    """Get the current correlation ID or generate a new one.

    Returns:
        str: The current correlation ID or a new UUID4
    """
    if (cid := correlation_id_ctx.get()) is None:
        cid = str(uuid.uuid4())
        correlation_id_ctx.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """Set the current correlation ID."""
    correlation_id_ctx.set(cid)


def add_correlation_id(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """structlog processor adding the correlation ID to every record."""
    event_dict.setdefault("correlation_id", get_correlation_id())
    return event_dict


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Logging settings; loaded from the environment when omitted
    """
    settings = settings or LoggingSettings.load()
    level = LogLevel.from_string(settings.level).to_stdlib_level()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_correlation_id,
    ]
    if settings.include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors.append(structlog.processors.format_exc_info)

    if settings.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class ServiceLogger:
    """Structured logger handed to interceptors and the service container.

    Bound context is kept on the instance and merged into each record at emit
    time, so loggers created before ``structlog.configure`` (or inside
    ``structlog.testing.capture_logs``) pick up the active configuration.
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None) -> None:
        self.name = name
        self._context: dict[str, Any] = dict(context or {})

    def bind(self, **context: Any) -> ServiceLogger:
        """Create a new logger with additional bound context.

        Args:
            **context: Context values to bind

        Returns:
            New logger instance with the merged context
        """
        return ServiceLogger(self.name, {**self._context, **context})

    def log(self, level: LogLevel | str, event: str, **fields: Any) -> None:
        """Emit a structured record. Never raises.

        Args:
            level: Record level
            event: Short human-readable description
            **fields: Structured fields attached to the record
        """
        try:
            if not isinstance(level, LogLevel):
                level = LogLevel.from_string(level)
            structlog.get_logger(self.name).log(
                level.to_stdlib_level(),
                event,
                logger=self.name,
                **{**self._context, **fields},
            )
        except Exception:
            _fallback.debug("Dropped log record %r", event, exc_info=True)

    def debug(self, event: str, **fields: Any) -> None:
        self.log(LogLevel.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log(LogLevel.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(LogLevel.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log(LogLevel.ERROR, event, **fields)

    def critical(self, event: str, **fields: Any) -> None:
        self.log(LogLevel.CRITICAL, event, **fields)

    def exception(self, event: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback attached."""
        fields.setdefault("exc_info", True)
        self.log(LogLevel.ERROR, event, **fields)


def get_logger(name: str, **context: Any) -> ServiceLogger:
    """Get a logger for the specified name.

    Args:
        name: Logger name (typically __name__)
        **context: Context bound to every record of this logger

    Returns:
        Configured logger instance
    """
    return ServiceLogger(name, context)
