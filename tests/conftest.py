"""Top-level pytest configuration for servicekit."""

from __future__ import annotations

import fnmatch
from typing import Any

import pytest

from servicekit.cache.errors import CacheUnavailableError
from servicekit.cache.protocols import MISS
from servicekit.interceptors import reset_interceptors

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTracker:
    def __init__(self) -> None:
        self.captured: list[tuple[BaseException, dict[str, Any]]] = []

    def capture_exception(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        self.captured.append((error, dict(context or {})))


class FailingBackend:
    """Cache backend that is down until ``down`` is set to False."""

    name = "failing"

    def __init__(self) -> None:
        self.down = True
        self.data: dict[str, Any] = {}

    def _check(self) -> None:
        if self.down:
            raise CacheUnavailableError("connection refused", backend=self.name)

    async def get(self, key: str) -> Any:
        self._check()
        return self.data.get(key, MISS)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._check()
        self.data[key] = value

    async def delete(self, key: str) -> bool:
        self._check()
        return self.data.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        self._check()
        matched = [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            del self.data[key]
        return len(matched)

    async def close(self) -> None:
        pass


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker() -> RecordingTracker:
    return RecordingTracker()


@pytest.fixture
def failing_backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def _reset_interceptor_defaults():
    reset_interceptors()
    yield
    reset_interceptors()
