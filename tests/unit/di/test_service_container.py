import asyncio

import pytest
from structlog.testing import capture_logs

from servicekit.di import (
    CircularDependencyError,
    ServiceContainer,
    ServiceNotRegisteredError,
    ServiceToken,
)
from servicekit.errors import ErrorSeverity


class UserRepository:
    pass


class BookingService:
    def __init__(self, repository, mailer=None):
        self.repository = repository
        self.mailer = mailer


@pytest.fixture
def container():
    return ServiceContainer()


@pytest.mark.asyncio
async def test_singleton_is_built_once(container):
    built = []

    def factory():
        built.append(1)
        return UserRepository()

    container.register("users", factory)
    first = await container.resolve("users")
    assert await container.resolve("users") is first
    assert built == [1]


@pytest.mark.asyncio
async def test_transient_is_built_on_every_resolve(container):
    container.register("users", UserRepository, singleton=False)
    assert await container.resolve("users") is not await container.resolve("users")


@pytest.mark.asyncio
async def test_async_factories_are_awaited(container):
    async def connect():
        await asyncio.sleep(0)
        return UserRepository()

    container.register("users", connect)
    assert isinstance(await container.resolve("users"), UserRepository)


@pytest.mark.asyncio
async def test_dependencies_are_resolved_through_factories(container):
    container.register("users", UserRepository)
    container.register("mailer", lambda: "smtp")
    container.register("bookings", lambda: container.create_service(BookingService, "users", "mailer"))

    bookings = await container.resolve("bookings")
    assert bookings.repository is await container.resolve("users")
    assert bookings.mailer == "smtp"


@pytest.mark.asyncio
async def test_unregistered_key_raises(container):
    with pytest.raises(ServiceNotRegisteredError) as exc:
        await container.resolve("missing")
    assert exc.value.code == "DI_SERVICE_NOT_FOUND"
    assert exc.value.key == "missing"
    assert "missing" in str(exc.value)


@pytest.mark.asyncio
async def test_resolve_optional_returns_none_when_unregistered(container):
    assert await container.resolve_optional("missing") is None
    container.register("users", UserRepository)
    assert isinstance(await container.resolve_optional("users"), UserRepository)


@pytest.mark.asyncio
async def test_circular_dependency_names_the_key_and_chain(container):
    container.register("a", lambda: container.resolve("b"))
    container.register("b", lambda: container.resolve("a"))

    with capture_logs() as logs:
        with pytest.raises(CircularDependencyError) as exc:
            await container.resolve("a")

    error = exc.value
    assert error.chain == ["a", "b", "a"]
    assert error.code == "DI_CIRCULAR_DEPENDENCY"
    assert error.severity is ErrorSeverity.CRITICAL
    assert "a -> b -> a" in str(error)
    assert logs[0]["event"] == "Circular dependency detected"
    assert not container.is_resolving("a")
    assert not container.is_resolving("b")


@pytest.mark.asyncio
async def test_self_dependency_is_circular(container):
    token = ServiceToken("Config")
    container.register(token, lambda: container.resolve(token))
    with pytest.raises(CircularDependencyError) as exc:
        await container.resolve(token)
    assert exc.value.chain == [token, token]
    assert "Config -> Config" in str(exc.value)


@pytest.mark.asyncio
async def test_concurrent_resolution_is_not_a_cycle(container):
    release = asyncio.Event()

    async def slow_factory():
        await release.wait()
        return UserRepository()

    container.register("users", slow_factory)
    pending = asyncio.gather(container.resolve("users"), container.resolve("users"))
    await asyncio.sleep(0)
    release.set()
    first, second = await pending
    assert first is second


@pytest.mark.asyncio
async def test_failed_factory_is_not_cached(container):
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("database unavailable")
        return UserRepository()

    container.register("users", flaky)
    with capture_logs() as logs:
        with pytest.raises(ConnectionError):
            await container.resolve("users")
    assert logs[-1]["event"] == "Service resolution failed"
    assert isinstance(await container.resolve("users"), UserRepository)
    assert not container.is_resolving("users")


@pytest.mark.asyncio
async def test_register_instance_replaces_factory(container):
    container.register("users", UserRepository)
    await container.resolve("users")
    stub = object()
    container.register_instance("users", stub)
    assert await container.resolve("users") is stub


@pytest.mark.asyncio
async def test_reregistering_drops_cached_instance_and_warns(container):
    container.register("users", UserRepository)
    first = await container.resolve("users")
    with capture_logs() as logs:
        container.register("users", UserRepository)
    assert logs[0]["event"] == "Service registration overwritten"
    assert logs[0]["log_level"] == "warning"
    assert await container.resolve("users") is not first


@pytest.mark.asyncio
async def test_reset_forgets_everything(container):
    container.register("users", UserRepository)
    await container.resolve("users")
    container.reset()
    assert not container.has("users")
    assert container.get_registered_services() == []
    with pytest.raises(ServiceNotRegisteredError):
        await container.resolve("users")


@pytest.mark.asyncio
async def test_containers_are_isolated():
    first, second = ServiceContainer(), ServiceContainer()
    first.register("users", UserRepository)
    assert first.has("users")
    assert not second.has("users")


def test_tokens_are_equal_only_to_themselves():
    one, other = ServiceToken("Users"), ServiceToken("Users")
    assert one == one
    assert one != other
    assert str(one) == "Users"


def test_factory_must_be_callable(container):
    with pytest.raises(TypeError):
        container.register("users", "not callable")
