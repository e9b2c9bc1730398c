# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Error tracking collaborator.

Interceptors forward unexpected failures here. Reporting is fire-and-forget:
:meth:`ErrorTrackerProtocol.capture_exception` must neither block the wrapped
call nor raise into it.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import sentry_sdk
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from servicekit.logging import get_logger

logger = get_logger("servicekit.tracking")


class TrackingSettings(BaseSettings):
    """Settings for the error tracking backend."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICEKIT_TRACKING_",
        extra="ignore",
        case_sensitive=False,
    )

    sentry_dsn: str | None = Field(default=None, description="Sentry DSN; tracking is disabled when unset")
    environment: str = Field(default="development", description="Deployment environment tag")
    release: str | None = Field(default=None, description="Release identifier")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


@runtime_checkable
class ErrorTrackerProtocol(Protocol):
    """Protocol for error tracking collaborators."""

    def capture_exception(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        """Report an exception. Must not raise."""
        ...


class NullErrorTracker:
    """Tracker used when no backend is configured."""

    def capture_exception(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        logger.debug("Error tracking disabled", error_type=type(error).__name__)


class SentryErrorTracker:
    """Reports exceptions to Sentry.

    ``context["tags"]`` becomes Sentry tags; every other key is sent as extra
    data.
    """

    def capture_exception(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        context = dict(context or {})
        tags = context.pop("tags", {}) or {}
        try:
            sentry_sdk.capture_exception(
                error,
                tags={key: str(value) for key, value in tags.items()},
                extras=context,
            )
        except Exception as exc:
            logger.warning(
                "Failed to report exception to Sentry",
                error_type=type(error).__name__,
                tracker_error=str(exc),
            )


def init_error_tracking(settings: TrackingSettings | None = None) -> ErrorTrackerProtocol:
    """Initialize error tracking from settings.

    Args:
        settings: Tracking settings; loaded from the environment when omitted

    Returns:
        A Sentry-backed tracker when a DSN is configured, otherwise a
        :class:`NullErrorTracker`
    """
    settings = settings or TrackingSettings()
    if not settings.sentry_dsn:
        logger.info("Sentry not initialized (DSN not set)", environment=settings.environment)
        return NullErrorTracker()

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=settings.release,
        traces_sample_rate=settings.traces_sample_rate,
        send_default_pii=False,
    )
    logger.info(
        "Sentry initialized",
        environment=settings.environment,
        traces_sample_rate=settings.traces_sample_rate,
    )
    return SentryErrorTracker()
