import fnmatch
from datetime import date
from decimal import Decimal

import pytest
from structlog.testing import capture_logs
from redis.exceptions import ConnectionError as RedisConnectionError

from servicekit.cache import MISS, CacheSerializationError, CacheStore, CacheUnavailableError
from servicekit.cache.redis import RedisCacheBackend
from servicekit.interceptors import with_cache


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.delete_calls = []
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value.encode()
        self.expiry[key] = ex

    async def delete(self, *keys):
        self._check()
        self.delete_calls.append(keys)
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def scan_iter(self, match=None, count=None):
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_values_round_trip_as_json():
    client = FakeRedis()
    backend = RedisCacheBackend(redis=client)
    await backend.set("k", {"id": 1, "tags": ["a", "b"]}, ttl=2.5)
    assert client.data["k"] == b'{"id": 1, "tags": ["a", "b"]}'
    assert client.expiry["k"] == 3
    assert await backend.get("k") == {"id": 1, "tags": ["a", "b"]}
    assert await backend.get("missing") is MISS


@pytest.mark.asyncio
async def test_delete_pattern_uses_one_delete():
    client = FakeRedis()
    backend = RedisCacheBackend(redis=client)
    for key in ("UserService:a", "UserService:b", "BookingService:a"):
        await backend.set(key, 1, ttl=60)
    assert await backend.delete_pattern("UserService:*") == 2
    assert client.delete_calls == [("UserService:a", "UserService:b")]
    assert await backend.delete_pattern("Nothing:*") == 0


@pytest.mark.asyncio
async def test_connection_errors_become_cache_unavailable():
    client = FakeRedis()
    client.fail = True
    backend = RedisCacheBackend(redis=client)
    with pytest.raises(CacheUnavailableError) as exc:
        await backend.get("k")
    assert exc.value.context["cache_backend"] == "redis"
    assert await backend.ping() is False


@pytest.mark.asyncio
async def test_corrupt_payload_is_a_serialization_error():
    client = FakeRedis()
    client.data["k"] = b"{not json"
    backend = RedisCacheBackend(redis=client)
    with pytest.raises(CacheSerializationError):
        await backend.get("k")


@pytest.mark.asyncio
async def test_store_over_failing_redis_never_raises():
    client = FakeRedis()
    client.fail = True
    store = CacheStore(RedisCacheBackend(redis=client), use_memory_fallback=False)
    await store.set("k", 1)
    assert await store.get("k") is MISS
    await store.close()
    assert client.closed


class Quote:
    def __init__(self, amount):
        self.amount = amount


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "value",
    [
        date(2024, 1, 1),
        Decimal("1.50"),
        Quote(1),
        ("a", "b"),
        {1: "one"},
        {"items": [{"at": date(2024, 1, 1)}]},
        float("nan"),
    ],
)
async def test_values_json_cannot_reproduce_are_rejected(value):
    client = FakeRedis()
    backend = RedisCacheBackend(redis=client)
    with pytest.raises(CacheSerializationError):
        await backend.set("k", value, ttl=60)
    assert client.data == {}


@pytest.mark.asyncio
async def test_store_skips_values_redis_cannot_reproduce():
    client = FakeRedis()
    store = CacheStore(RedisCacheBackend(redis=client))
    with capture_logs() as logs:
        await store.set("k", {"amount": Decimal("1.50")}, ttl=60)
    assert await store.get("k") is MISS
    assert store.fallback is not None and await store.fallback.keys() == []
    assert store.stats.sets == 0
    assert store.stats.errors == 0
    assert logs[0]["event"] == "Cache value not serializable"


@pytest.mark.asyncio
async def test_cacheable_never_serves_lossy_copies_from_redis():
    calls = []

    async def invoice(booking_id):
        calls.append(booking_id)
        if booking_id == "b1":
            return {"at": date(2024, 1, 1), "amount": Decimal("1.50"), "quote": Quote(1)}
        return {"at": "2024-01-01", "amount": 1.5, "lines": [{"sku": "cut", "qty": 1}]}

    store = CacheStore(RedisCacheBackend(redis=FakeRedis()))
    wrapped = with_cache(invoice, ttl=60, cache=store)

    first = await wrapped("b1")
    second = await wrapped("b1")
    assert second is not first
    assert isinstance(second["at"], date)
    assert isinstance(second["amount"], Decimal)
    assert calls == ["b1", "b1"]

    plain = await wrapped("b2")
    assert await wrapped("b2") == plain
    assert calls == ["b1", "b1", "b2"]
