"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from possync.config.settings import (
    CacheSettings,
    NetworkSettings,
    RemoteSettings,
    Settings,
    StorageSettings,
    SyncSettings,
)
from possync.core.services import (
    ConnectivityGate,
    PendingOperationQueue,
    ReconciliationEngine,
    RemoteStateCache,
    SyncCoordinator,
)
from tests.fakes import (
    FakeClock,
    FakeNetwork,
    FakeRemoteApi,
    InMemoryCashSessionStore,
    InMemorySaleStore,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def remote() -> FakeRemoteApi:
    return FakeRemoteApi()


@pytest.fixture
def operation_store() -> AsyncMock:
    """Operation store that accepts every write."""
    store = AsyncMock()
    store.load_all.return_value = []
    store.purge_dead.return_value = 0
    store.delete.return_value = True
    return store


@pytest.fixture
def gate(network: FakeNetwork, remote: FakeRemoteApi, clock: FakeClock) -> ConnectivityGate:
    return ConnectivityGate(network=network, remote=remote, probe_timeout=1.0, clock=clock)


@pytest.fixture
def queue(operation_store: AsyncMock, clock: FakeClock) -> PendingOperationQueue:
    return PendingOperationQueue(operation_store, max_attempts=3, clock=clock)


@pytest.fixture
async def coordinator(
    queue: PendingOperationQueue,
    gate: ConnectivityGate,
    remote: FakeRemoteApi,
    clock: FakeClock,
) -> AsyncGenerator[SyncCoordinator, None]:
    coordinator = SyncCoordinator(
        queue=queue,
        gate=gate,
        remote=remote,
        batch_size=10,
        retry_delay=5.0,
        submit_timeout=1.0,
        auto_sync_enabled=False,
        clock=clock,
    )
    await coordinator.start(monitor=False)
    yield coordinator
    await coordinator.stop()


@pytest.fixture
def cache(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    gate: ConnectivityGate,
    clock: FakeClock,
) -> RemoteStateCache:
    cache = RemoteStateCache(
        coordinator=coordinator,
        remote=remote,
        gate=gate,
        ttl_seconds=300,
        auto_refresh=False,
        clock=clock,
    )
    coordinator.attach_cache(cache)
    return cache


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary database, with nothing slow."""
    return Settings(
        environment="development",
        terminal_id="pos-test",
        remote=RemoteSettings(base_url="http://remote.test/api", read_retries=1),
        network=NetworkSettings(probe_enabled=False),
        sync=SyncSettings(
            retry_delay=30.0,
            submit_timeout=1.0,
            auto_sync_enabled=False,
        ),
        cache=CacheSettings(ttl_seconds=300, auto_refresh=False),
        storage=StorageSettings(data_dir=tmp_path, db_name="test.db"),
    )


@pytest.fixture
def session_store() -> InMemoryCashSessionStore:
    return InMemoryCashSessionStore()


@pytest.fixture
def sale_store() -> InMemorySaleStore:
    return InMemorySaleStore()


@pytest.fixture
def engine(
    session_store: InMemoryCashSessionStore,
    sale_store: InMemorySaleStore,
    remote: FakeRemoteApi,
    gate: ConnectivityGate,
    coordinator: SyncCoordinator,
    clock: FakeClock,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        sessions=session_store,
        sales=sale_store,
        remote=remote,
        gate=gate,
        coordinator=coordinator,
        clock=clock,
    )
