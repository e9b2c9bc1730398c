# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""
Circuit breaker guarding calls to an unreliable dependency.

The circuit opens once ``error_threshold`` failures happen inside a sliding
``window``. While open, calls fail fast with :class:`CircuitOpenError`. Once
``reset_timeout`` has elapsed the next call is let through as the single
half-open trial: success closes the circuit, failure reopens it.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from servicekit.logging import ServiceLogger, get_logger
from servicekit.resilience.errors import CircuitOpenError

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Three-state circuit breaker for async callables."""

    def __init__(
        self,
        error_threshold: int = 5,
        window: float = 60.0,
        reset_timeout: float = 30.0,
        *,
        name: str = "default",
        log_state_changes: bool = True,
        clock: Callable[[], float] = time.monotonic,
        logger: ServiceLogger | None = None,
    ) -> None:
        """Initialize the breaker.

        Args:
            error_threshold: Failures inside ``window`` that open the circuit
            window: Sliding window for counting failures, in seconds
            reset_timeout: Time the circuit stays open before a trial call
            name: Identifies the circuit in errors and log records
            log_state_changes: Log every state transition
            clock: Time source
            logger: Logger instance (optional)
        """
        if error_threshold < 1:
            raise ValueError("error_threshold must be at least 1")
        if window <= 0 or reset_timeout < 0:
            raise ValueError("window must be positive and reset_timeout not negative")
        self.error_threshold = error_threshold
        self.window = window
        self.reset_timeout = reset_timeout
        self.name = name
        self.log_state_changes = log_state_changes
        self._clock = clock
        self._logger = logger or get_logger("servicekit.resilience.circuit_breaker", circuit=name)
        self._state = CircuitState.CLOSED
        self._failures: deque[float] = deque()
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        """Failures currently inside the window."""
        self._evict(self._clock())
        return len(self._failures)

    def _evict(self, now: float) -> None:
        cutoff = now - self.window
        while self._failures and self._failures[0] <= cutoff:
            self._failures.popleft()

    def _transition(self, state: CircuitState, **fields: Any) -> None:
        previous, self._state = self._state, state
        if self.log_state_changes and previous is not state:
            self._logger.warning(
                "Circuit state changed",
                from_state=previous.value,
                to_state=state.value,
                **fields,
            )

    def _acquire(self) -> bool:
        """Admit a call or raise; returns True for the half-open trial."""
        if self._state is CircuitState.CLOSED:
            return False
        now = self._clock()
        if self._state is CircuitState.OPEN:
            elapsed = now - self._opened_at
            if elapsed < self.reset_timeout:
                raise CircuitOpenError(self.name, retry_after=self.reset_timeout - elapsed)
            self._transition(CircuitState.HALF_OPEN)
            return True
        # HALF_OPEN: only the trial call may pass
        raise CircuitOpenError(self.name)

    def _open(self, now: float) -> None:
        self._opened_at = now
        self._transition(CircuitState.OPEN, failures=len(self._failures))

    def _record_success(self, trial: bool) -> None:
        if trial:
            self._failures.clear()
            self._transition(CircuitState.CLOSED)

    def _record_failure(self, trial: bool) -> None:
        now = self._clock()
        if trial:
            self._open(now)
            return
        if self._state is not CircuitState.CLOSED:
            # a call admitted before the circuit opened
            return
        self._evict(now)
        self._failures.append(now)
        if len(self._failures) >= self.error_threshold:
            self._open(now)

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` through the breaker.

        Args:
            func: Coroutine function to guard
            *args: Positional arguments for ``func``
            **kwargs: Keyword arguments for ``func``

        Returns:
            The result of ``func``

        Raises:
            CircuitOpenError: If the circuit rejects the call
        """
        trial = self._acquire()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._record_failure(trial)
            raise
        except BaseException:
            if trial:
                # cancelled trial: stay open, next call may try again
                self._state = CircuitState.OPEN
            raise
        self._record_success(trial)
        return result

    def reset(self) -> None:
        """Force the circuit closed and clear recorded failures."""
        self._failures.clear()
        self._transition(CircuitState.CLOSED)
