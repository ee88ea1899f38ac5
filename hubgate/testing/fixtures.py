"""
Pytest fixtures for hubgate testing.

Provides common fixtures for testing applications that use hubgate.
"""

from collections.abc import Callable, Generator

import httpx
import pytest

from hubgate.availability import AvailabilityGate
from hubgate.cache import MemoryCache
from hubgate.clients.repos import ReposClient
from hubgate.offline import OfflineModeState
from hubgate.resolver import RepositoryContextResolver
from hubgate.testing.fakes import (
    FakeClock,
    ManualTimerFactory,
    ScriptedProbe,
    StaticConfigStore,
    repository_payload,
)
from hubgate.transport import HTTPTransport, RetryConfig


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def offline_state() -> OfflineModeState:
    """Provide a fresh offline mode in DEFAULT."""
    return OfflineModeState()


@pytest.fixture
def scripted_probe() -> ScriptedProbe:
    """Provide a probe that succeeds until given a script."""
    return ScriptedProbe()


@pytest.fixture
def gate(
    scripted_probe: ScriptedProbe,
    offline_state: OfflineModeState,
    fake_clock: FakeClock,
) -> AvailabilityGate:
    """
    Provide an AvailabilityGate over the scripted probe and fake clock.

    Example:
        ```python
        def test_throttle(gate, scripted_probe, fake_clock):
            gate.is_available()
            fake_clock.advance(2)
            gate.is_available()
            assert scripted_probe.call_count == 1
        ```
    """
    return AvailabilityGate(scripted_probe, offline_state, clock=fake_clock)


@pytest.fixture
def config_store() -> StaticConfigStore:
    """Provide a working copy whose origin is github.com/octocat/hello-world."""
    return StaticConfigStore(remotes={"origin": "git@github.com:octocat/hello-world.git"})


@pytest.fixture
def manual_timers() -> ManualTimerFactory:
    """Provide a timer factory whose timers fire on demand."""
    return ManualTimerFactory()


@pytest.fixture
def api_handler() -> dict[str, Callable[[httpx.Request], httpx.Response]]:
    """
    Route table for the mock API, keyed by request path.

    Unrouted paths answer 404.
    """
    return {
        "/rate_limit": lambda request: httpx.Response(200, json={"resources": {}}),
        "/repos/octocat/hello-world": lambda request: httpx.Response(
            200, json=repository_payload("octocat/hello-world")
        ),
    }


@pytest.fixture
def api_requests() -> list[httpx.Request]:
    """Requests received by the mock API, in order."""
    return []


@pytest.fixture
def mock_transport(
    api_handler: dict[str, Callable[[httpx.Request], httpx.Response]],
    api_requests: list[httpx.Request],
) -> Generator[HTTPTransport, None, None]:
    """Provide an HTTPTransport backed by ``httpx.MockTransport``."""

    def handler(request: httpx.Request) -> httpx.Response:
        api_requests.append(request)
        route = api_handler.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return route(request)

    transport = HTTPTransport(
        base_url="https://api.github.com",
        retry_config=RetryConfig(max_retries=0),
        http_transport=httpx.MockTransport(handler),
    )
    yield transport
    transport.close()


@pytest.fixture
def resolver(
    config_store: StaticConfigStore,
    offline_state: OfflineModeState,
    gate: AvailabilityGate,
    mock_transport: HTTPTransport,
) -> RepositoryContextResolver:
    """Provide a resolver wired to the fixtures above and a fresh MemoryCache."""
    return RepositoryContextResolver(
        config_store,
        offline_state,
        gate,
        MemoryCache(),
        ReposClient(mock_transport),
    )
