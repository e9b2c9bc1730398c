from typing import Annotated

import pytest
from pydantic import Field
from structlog.testing import capture_logs

from servicekit.cache import CacheStore, MemoryCacheBackend
from servicekit.interceptors import (
    InterceptorChain,
    InterceptorKind,
    ValidationRule,
    cacheable,
    compose,
    configure_interceptors,
    get_interceptors,
    logged,
    retry,
    validate,
)
from servicekit.resilience import RetryExecutor
from servicekit.validation import ValidationError

PositiveInt = Annotated[int, Field(gt=0)]


class ProviderService:
    def __init__(self, flaky_calls=0):
        self.flaky_calls = flaky_calls
        self.calls = 0

    @compose(
        logged(),
        validate(ValidationRule(0, PositiveInt, "provider_id")),
        cacheable(60),
        retry(max_attempts=3, initial_delay=0.5),
    )
    async def get_rating(self, provider_id):
        self.calls += 1
        if self.calls <= self.flaky_calls:
            raise ConnectionError("ratings service unavailable")
        return {"provider_id": provider_id, "rating": 4.5}

    @logged()
    @validate(ValidationRule(0, PositiveInt, "provider_id"))
    @cacheable(60)
    async def get_reviews(self, provider_id):
        return []


@pytest.fixture
def store(sleep):
    store = CacheStore(MemoryCacheBackend())
    configure_interceptors(cache_store=store, retry_executor=RetryExecutor(sleep=sleep))
    return store


def test_first_listed_interceptor_is_outermost():
    kinds = [d.kind for d in get_interceptors(ProviderService.get_rating)]
    assert kinds == [
        InterceptorKind.LOG,
        InterceptorKind.VALIDATE,
        InterceptorKind.CACHEABLE,
        InterceptorKind.RETRY,
    ]
    assert [d.kind for d in get_interceptors(ProviderService.get_reviews)] == kinds[:3]
    assert all(d.target == "ProviderService:get_rating" for d in get_interceptors(ProviderService.get_rating))


@pytest.mark.asyncio
async def test_invalid_input_is_logged_but_never_reaches_the_cache(store):
    service = ProviderService()
    with capture_logs() as logs:
        with pytest.raises(ValidationError):
            await service.get_rating(-1)

    events = [entry["event"] for entry in logs]
    assert events[0] == "ProviderService:get_rating called"
    assert "Validation failed" in events
    assert any(event.startswith("ProviderService:get_rating failed after ") for event in events)
    assert service.calls == 0
    assert store.stats.misses == 0


@pytest.mark.asyncio
async def test_retries_happen_inside_the_cache(store, sleep):
    service = ProviderService(flaky_calls=2)
    first = await service.get_rating(7)
    assert await service.get_rating(7) == first
    assert service.calls == 3
    assert sleep.delays == [0.5, 1.0]
    assert store.stats.sets == 1
    assert store.stats.hits == 1


@pytest.mark.asyncio
async def test_chain_applies_in_insertion_order(store):
    async def list_slots(provider_id):
        return ["09:00"]

    chain = InterceptorChain().log(level="debug").validate(ValidationRule(0, PositiveInt)).cache(30)
    assert len(chain) == 3

    wrapped = chain(list_slots)
    assert [d.kind for d in get_interceptors(wrapped)] == [
        InterceptorKind.LOG,
        InterceptorKind.VALIDATE,
        InterceptorKind.CACHEABLE,
    ]
    assert await wrapped(3) == ["09:00"]
    assert await wrapped(3) == ["09:00"]
    assert store.stats.hits == 1
