import pytest

from servicekit.cache import MISS, CacheBackendProtocol, MemoryCacheBackend


@pytest.mark.asyncio
async def test_set_get_and_overwrite():
    backend = MemoryCacheBackend()
    assert await backend.get("a") is MISS
    await backend.set("a", 1)
    await backend.set("a", 2)
    assert await backend.get("a") == 2


@pytest.mark.asyncio
async def test_none_is_a_cacheable_value():
    backend = MemoryCacheBackend()
    await backend.set("none", None, ttl=10)
    assert await backend.get("none") is None


@pytest.mark.asyncio
async def test_entries_expire(clock):
    backend = MemoryCacheBackend(clock=clock)
    await backend.set("a", "value", ttl=5)
    clock.advance(4)
    assert await backend.get("a") == "value"
    clock.advance(1)
    assert await backend.get("a") is MISS
    assert len(backend) == 0


@pytest.mark.asyncio
async def test_lru_eviction():
    backend = MemoryCacheBackend(max_size=2)
    await backend.set("a", 1)
    await backend.set("b", 2)
    await backend.get("a")
    await backend.set("c", 3)
    assert await backend.get("b") is MISS
    assert await backend.get("a") == 1
    assert await backend.get("c") == 3


@pytest.mark.asyncio
async def test_delete_pattern_uses_glob_semantics():
    backend = MemoryCacheBackend()
    for key in ("UserService:get:1", "UserService:list:2", "BookingService:get:1"):
        await backend.set(key, key)
    assert await backend.delete_pattern("UserService:*") == 2
    assert await backend.keys() == ["BookingService:get:1"]
    assert await backend.delete_pattern("Booking?ervice:get:[12]") == 1
    assert len(backend) == 0


@pytest.mark.asyncio
async def test_delete_and_cleanup(clock):
    backend = MemoryCacheBackend(clock=clock)
    await backend.set("a", 1, ttl=1)
    await backend.set("b", 2)
    assert await backend.delete("b") is True
    assert await backend.delete("b") is False
    clock.advance(2)
    assert await backend.cleanup() == 1


def test_satisfies_backend_protocol():
    assert isinstance(MemoryCacheBackend(), CacheBackendProtocol)


@pytest.mark.asyncio
async def test_delete_pattern_counts_only_live_entries(clock):
    backend = MemoryCacheBackend(clock=clock)
    await backend.set("UserService:a", 1, ttl=5)
    await backend.set("UserService:b", 2, ttl=60)
    clock.advance(5)
    assert await backend.delete_pattern("UserService:*") == 1
    assert len(backend) == 0
