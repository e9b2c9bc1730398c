import errno

import pytest
from structlog.testing import capture_logs

from servicekit.resilience import (
    BackoffStrategy,
    CircuitOpenError,
    RateLimitExceededError,
    RetryExecutor,
    RetryHelpers,
    RetryPolicy,
    RetrySettings,
    compute_delay,
    default_should_retry,
)
from servicekit.validation import ValidationError, ValidationFailure


class Flaky:
    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or ConnectionError("network down")
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


class HttpError(Exception):
    def __init__(self, status_code):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def test_exponential_delays_double_and_cap():
    policy = RetryPolicy(max_attempts=5, initial_delay=0.1, backoff="exponential", max_delay=0.4)
    assert [compute_delay(policy, attempt) for attempt in (1, 2, 3, 4)] == pytest.approx([0.1, 0.2, 0.4, 0.4])


def test_linear_and_fixed_delays():
    linear = RetryPolicy(initial_delay=0.5, backoff=BackoffStrategy.LINEAR, max_delay=1.2)
    fixed = RetryPolicy(initial_delay=0.5, backoff=BackoffStrategy.FIXED)
    assert [compute_delay(linear, n) for n in (1, 2, 3)] == [0.5, 1.0, 1.2]
    assert [compute_delay(fixed, n) for n in (1, 2, 3)] == [0.5, 0.5, 0.5]


@pytest.mark.parametrize(
    "options",
    [
        {"max_attempts": 0},
        {"initial_delay": -1},
        {"max_delay": -1},
        {"backoff_multiplier": 0.5},
        {"backoff": "random"},
    ],
)
def test_invalid_policies_are_rejected(options):
    with pytest.raises(ValueError):
        RetryPolicy(**options)


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures(sleep):
    operation = Flaky(failures=2)
    policy = RetryPolicy(max_attempts=3, initial_delay=0.1)
    assert await RetryExecutor(sleep=sleep).execute(operation, policy) == "ok"
    assert operation.calls == 3
    assert sleep.delays == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_exhaustion_reraises_the_last_error_unchanged(sleep):
    error = ConnectionError("still down")
    operation = Flaky(failures=10, error=error)
    with capture_logs() as logs:
        with pytest.raises(ConnectionError) as exc:
            await RetryExecutor(sleep=sleep).execute(operation, RetryPolicy(max_attempts=4, initial_delay=0))
    assert exc.value is error
    assert operation.calls == 4
    assert any(entry["event"] == "Retry attempts exhausted" for entry in logs)


@pytest.mark.asyncio
async def test_single_attempt_never_retries(sleep):
    operation = Flaky(failures=1)
    with pytest.raises(ConnectionError):
        await RetryExecutor(sleep=sleep).execute(operation, RetryPolicy(max_attempts=1))
    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(sleep):
    operation = Flaky(failures=5)
    policy = RetryPolicy(max_attempts=5, should_retry=lambda error: False)
    with pytest.raises(ConnectionError):
        await RetryExecutor(sleep=sleep).execute(operation, policy)
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_on_retry_hook_sees_each_attempt_and_its_errors_are_ignored(sleep):
    seen = []

    def on_retry(attempt, error):
        seen.append((attempt, str(error)))
        raise RuntimeError("hook broke")

    policy = RetryPolicy(max_attempts=3, initial_delay=0, on_retry=on_retry)
    assert await RetryExecutor(sleep=sleep).execute(Flaky(failures=2), policy) == "ok"
    assert seen == [(1, "network down"), (2, "network down")]


def test_default_predicate_skips_terminal_errors():
    assert default_should_retry(ConnectionError())
    assert not default_should_retry(RateLimitExceededError("ip", 1, 1.0, 0.5))
    assert not default_should_retry(CircuitOpenError("payments"))
    assert not default_should_retry(ValidationError([ValidationFailure(0, "data", ("bad",))]))


def test_retry_helpers():
    assert RetryHelpers.retry_on_network_error(TimeoutError())
    assert RetryHelpers.retry_on_network_error(OSError(errno.ECONNREFUSED, "refused"))
    assert RetryHelpers.retry_on_network_error(RuntimeError("network unreachable"))
    assert not RetryHelpers.retry_on_network_error(ValueError("bad input"))

    assert RetryHelpers.retry_on_server_error(HttpError(503))
    assert not RetryHelpers.retry_on_server_error(HttpError(404))
    assert RetryHelpers.retry_on_network_or_server_error(HttpError(500))

    never = RetryHelpers.never_retry_on("card_declined", KeyError)
    assert not never(KeyError("x"))
    assert not never(RuntimeError("Stripe error: card_declined"))
    assert never(RuntimeError("timeout"))


def test_policy_from_settings(monkeypatch):
    monkeypatch.setenv("SERVICEKIT_RETRY_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("SERVICEKIT_RETRY_BACKOFF", "LINEAR")
    policy = RetryPolicy.from_settings(RetrySettings(), initial_delay=0.25)
    assert policy.max_attempts == 5
    assert policy.backoff is BackoffStrategy.LINEAR
    assert policy.initial_delay == 0.25
