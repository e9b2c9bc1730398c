# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Retry executor with fixed, linear and exponential backoff.

:meth:`RetryExecutor.execute` runs an async operation until it succeeds, the
policy's attempt budget is spent, or the error is judged not retryable. The
last error is always re-raised unchanged; there is no wrapper type for
exhaustion.
"""

from __future__ import annotations

import asyncio
import errno
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from servicekit.logging import ServiceLogger, get_logger
from servicekit.resilience.config import RetrySettings
from servicekit.resilience.errors import CircuitOpenError, RateLimitExceededError
from servicekit.validation.errors import ValidationError

T = TypeVar("T")

ShouldRetry = Callable[[BaseException], bool]
OnRetry = Callable[[int, BaseException], Any]

_TERMINAL_ERRORS: tuple[type[BaseException], ...] = (
    RateLimitExceededError,
    CircuitOpenError,
    ValidationError,
)


class BackoffStrategy(str, Enum):
    """How the delay grows between attempts."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


def default_should_retry(error: BaseException) -> bool:
    """Retry everything except rate limiting, open circuits and invalid input."""
    return not isinstance(error, _TERMINAL_ERRORS)


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    Attributes:
        max_attempts: Attempts including the first call; 1 disables retry
        initial_delay: Delay in seconds before the second attempt
        backoff: Growth strategy for later delays
        backoff_multiplier: Base of the exponential strategy
        max_delay: Upper bound for any single delay, in seconds
        should_retry: Predicate deciding whether an error is worth retrying
        on_retry: Hook called with ``(attempt, error)`` before each sleep
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_multiplier: float = 2.0
    max_delay: float = 30.0
    should_retry: ShouldRetry = field(default=default_should_retry, compare=False)
    on_retry: OnRetry | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must not be negative")
        if self.max_delay < 0:
            raise ValueError("max_delay must not be negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")
        if not isinstance(self.backoff, BackoffStrategy):
            object.__setattr__(self, "backoff", BackoffStrategy(self.backoff))

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **overrides: Any) -> RetryPolicy:
        """Build a policy from settings, letting keyword arguments win.

        Args:
            settings: Retry settings; loaded from the environment when omitted
            **overrides: Any ``RetryPolicy`` field

        Returns:
            A validated policy
        """
        settings = settings or RetrySettings()
        values: dict[str, Any] = {
            "max_attempts": settings.max_attempts,
            "initial_delay": settings.initial_delay,
            "backoff": BackoffStrategy(settings.backoff),
            "backoff_multiplier": settings.backoff_multiplier,
            "max_delay": settings.max_delay,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


def compute_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay in seconds to wait after failed attempt number ``attempt``.

    Args:
        policy: The retry policy
        attempt: 1-based number of the attempt that just failed

    Returns:
        The backoff delay, clamped to ``policy.max_delay``
    """
    if attempt < 1:
        raise ValueError("attempt must be at least 1")
    if policy.backoff is BackoffStrategy.FIXED:
        delay = policy.initial_delay
    elif policy.backoff is BackoffStrategy.LINEAR:
        delay = policy.initial_delay * attempt
    else:
        delay = policy.initial_delay * policy.backoff_multiplier ** (attempt - 1)
    return min(delay, policy.max_delay)


class RetryExecutor:
    """Runs async operations under a :class:`RetryPolicy`."""

    def __init__(
        self,
        default_policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: ServiceLogger | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            default_policy: Policy used when ``execute`` gets none
            sleep: Awaitable sleep function, replaceable in tests
            logger: Logger instance (optional)
        """
        self.default_policy = default_policy or RetryPolicy()
        self._sleep = sleep
        self._logger = logger or get_logger("servicekit.resilience.retry")

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        *,
        name: str | None = None,
    ) -> T:
        """Run ``operation`` until success or until retrying stops.

        Args:
            operation: Zero-argument coroutine function
            policy: Policy to apply; the executor default when omitted
            name: Operation name used in log records

        Returns:
            The operation's result

        Raises:
            Exception: The last error raised by ``operation``, unchanged
        """
        policy = policy or self.default_policy
        name = name or getattr(operation, "__qualname__", repr(operation))
        attempt = 1
        while True:
            try:
                result = await operation()
            except Exception as error:
                if attempt >= policy.max_attempts:
                    if policy.max_attempts > 1:
                        self._logger.error(
                            "Retry attempts exhausted",
                            operation=name,
                            attempts=attempt,
                            error=str(error),
                            error_type=type(error).__name__,
                        )
                    raise
                if not policy.should_retry(error):
                    self._logger.debug(
                        "Error is not retryable",
                        operation=name,
                        attempt=attempt,
                        error_type=type(error).__name__,
                    )
                    raise

                delay = compute_delay(policy, attempt)
                self._logger.warning(
                    "Retrying operation",
                    operation=name,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    delay=delay,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                self._notify(policy, attempt, error, name)
                await self._sleep(delay)
                attempt += 1
            else:
                if attempt > 1:
                    self._logger.info("Operation succeeded after retry", operation=name, attempts=attempt)
                return result

    def _notify(self, policy: RetryPolicy, attempt: int, error: BaseException, name: str) -> None:
        if policy.on_retry is None:
            return
        try:
            policy.on_retry(attempt, error)
        except Exception as hook_error:
            self._logger.warning(
                "on_retry hook failed",
                operation=name,
                attempt=attempt,
                hook_error=str(hook_error),
            )


_NETWORK_ERRNOS = {errno.ECONNREFUSED, errno.ETIMEDOUT, errno.ECONNRESET, errno.EHOSTUNREACH}
_NETWORK_CODES = {"ECONNREFUSED", "ETIMEDOUT", "ENOTFOUND", "ECONNRESET"}


def _status_of(error: BaseException) -> int | None:
    for source in (error, getattr(error, "response", None)):
        if source is None:
            continue
        for attr in ("status_code", "status"):
            status = getattr(source, attr, None)
            if isinstance(status, int):
                return status
    return None


class RetryHelpers:
    """Ready-made ``should_retry`` predicates."""

    @staticmethod
    def retry_on_network_error(error: BaseException) -> bool:
        """Retry connection failures and timeouts only."""
        if isinstance(error, (ConnectionError, TimeoutError)):
            return True
        if isinstance(error, OSError) and error.errno in _NETWORK_ERRNOS:
            return True
        if getattr(error, "code", None) in _NETWORK_CODES:
            return True
        message = str(error).lower()
        return "network" in message or "timeout" in message or "econnrefused" in message

    @staticmethod
    def retry_on_server_error(error: BaseException) -> bool:
        """Retry HTTP 5xx responses, read from ``status_code``/``status`` or ``response``."""
        status = _status_of(error)
        return status is not None and 500 <= status < 600

    @staticmethod
    def retry_on_network_or_server_error(error: BaseException) -> bool:
        return RetryHelpers.retry_on_network_error(error) or RetryHelpers.retry_on_server_error(error)

    @staticmethod
    def never_retry_on(*error_types: str | type[BaseException]) -> ShouldRetry:
        """Build a predicate refusing to retry the given errors.

        Args:
            *error_types: Exception classes, or names matched against the
                class name, a ``code`` attribute or the message

        Returns:
            A ``should_retry`` predicate
        """
        classes = tuple(t for t in error_types if isinstance(t, type))
        names = [t for t in error_types if isinstance(t, str)]

        def should_retry(error: BaseException) -> bool:
            if classes and isinstance(error, classes):
                return False
            message = str(error)
            code = getattr(error, "code", None)
            return not any(
                type(error).__name__ == name or code == name or name in message for name in names
            )

        return should_retry
