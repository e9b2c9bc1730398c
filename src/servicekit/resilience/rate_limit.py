# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: servicekit
"""In-process sliding window rate limiter."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

from servicekit.resilience.errors import RateLimitExceededError


class SlidingWindowRateLimiter:
    """Allows at most ``max_requests`` hits per key within any ``window`` seconds.

    Counters are process-local. ``hit`` does not await, so it is atomic with
    respect to other tasks on the same event loop.
    """

    def __init__(
        self,
        max_requests: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def _evict(self, key: str, now: float) -> deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _sweep(self, now: float) -> None:
        """Drop keys whose newest hit has left the window, at most once per window."""
        if now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        cutoff = now - self.window
        for key in [key for key, hits in self._hits.items() if hits[-1] <= cutoff]:
            del self._hits[key]

    def hit(self, key: str = "global") -> int:
        """Record one request for ``key``.

        Args:
            key: Caller identity (ip, user id, ...)

        Returns:
            Requests still allowed in the current window

        Raises:
            RateLimitExceededError: If the window is already full
        """
        now = self._clock()
        self._sweep(now)
        hits = self._evict(key, now)
        if len(hits) >= self.max_requests:
            retry_after = max(0.0, hits[0] + self.window - now)
            raise RateLimitExceededError(key, self.max_requests, self.window, retry_after)
        hits.append(now)
        self._hits[key] = hits
        return self.max_requests - len(hits)

    def remaining(self, key: str = "global") -> int:
        """Requests still allowed for ``key`` right now."""
        return self.max_requests - len(self._evict(key, self._clock()))

    def reset(self, key: str | None = None) -> None:
        """Forget recorded hits for one key, or for every key."""
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)
