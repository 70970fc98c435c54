"""
Service container for dependency injection.

Wires infrastructure implementations to core services. One container is
built at application start and passed to everything that needs the queue
or the cache; nothing here is a module-level singleton.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from possync.config import Settings, get_logger, get_settings
from possync.core.clock import Clock, utc_now
from possync.core.interfaces import (
    ICashSessionStore,
    INetworkMonitor,
    IOperationStore,
    IRemoteApi,
    ISaleStore,
    IStateStore,
)
from possync.core.services import (
    ConnectivityGate,
    PendingOperationQueue,
    ReconciliationEngine,
    RemoteStateCache,
    SyncCoordinator,
)

if TYPE_CHECKING:
    from possync.infrastructure.storage.sqlite import ConnectionPool

logger = get_logger(__name__)


@dataclass
class SyncServices:
    """Everything the sync subsystem needs, built once per process."""

    settings: Settings
    remote: IRemoteApi
    network: INetworkMonitor
    operation_store: IOperationStore
    session_store: ICashSessionStore
    sale_store: ISaleStore
    state_store: IStateStore
    gate: ConnectivityGate
    queue: PendingOperationQueue
    coordinator: SyncCoordinator
    cache: RemoteStateCache
    reconciliation: ReconciliationEngine
    pool: "ConnectionPool | None" = None
    started: bool = False

    async def start(self, monitor: bool = True) -> None:
        """Migrate storage, load the queue and cache, start background sync."""
        if self.started:
            return
        if self.pool is not None:
            from possync.infrastructure.storage.sqlite.migrations import initialize_database

            await initialize_database(self.pool.db_path, create_backup_before=False)
            await self.pool.initialize()

        await self.coordinator.start(monitor=monitor)
        self.started = True
        logger.info("sync_services_started", terminal_id=self.settings.terminal_id)

    async def stop(self) -> None:
        """Stop background work and release connections."""
        if not self.started:
            return
        await self.coordinator.stop()
        await self.remote.close()
        if self.pool is not None:
            await self.pool.close()
        self.started = False
        logger.info("sync_services_stopped")


def build_services(
    settings: Settings | None = None,
    remote: IRemoteApi | None = None,
    network: INetworkMonitor | None = None,
    clock: Clock = utc_now,
) -> SyncServices:
    """
    Build the service container.

    Creates infrastructure dependencies if not provided.

    Args:
        settings: Settings override (default: global settings)
        remote: Remote API override (default: HTTP client)
        network: Network monitor override (default: TCP probe)
        clock: Time source shared by every service

    Returns:
        Unstarted SyncServices
    """
    # Lazy import infrastructure to keep the core import graph clean
    from possync.infrastructure.network import SocketNetworkMonitor, StaticNetworkMonitor
    from possync.infrastructure.remote import HttpRemoteApi
    from possync.infrastructure.storage.sqlite import (
        ConnectionPool,
        SQLiteCashSessionStore,
        SQLiteOperationStore,
        SQLiteSaleStore,
        SQLiteStateStore,
    )

    settings = settings or get_settings()
    remote = remote or HttpRemoteApi.from_settings(settings.remote)
    if network is None:
        network = (
            SocketNetworkMonitor.from_settings(settings.network)
            if settings.network.probe_enabled
            else StaticNetworkMonitor(connected=True)
        )

    pool = ConnectionPool.from_settings(settings.storage)
    operation_store = SQLiteOperationStore(pool)
    session_store = SQLiteCashSessionStore(pool)
    sale_store = SQLiteSaleStore(pool)
    state_store = SQLiteStateStore(pool)

    gate = ConnectivityGate(
        network=network,
        remote=remote,
        probe_timeout=settings.remote.probe_timeout,
        forced_offline=settings.sync.start_offline,
        clock=clock,
    )
    queue = PendingOperationQueue(
        operation_store,
        max_attempts=settings.sync.max_attempts,
        clock=clock,
    )
    coordinator = SyncCoordinator(
        queue=queue,
        gate=gate,
        remote=remote,
        batch_size=settings.sync.batch_size,
        backoff=settings.sync.backoff,
        retry_delay=settings.sync.retry_delay,
        max_retry_delay=settings.sync.max_retry_delay,
        submit_timeout=settings.sync.submit_timeout,
        poll_interval=settings.sync.poll_interval,
        auto_sync_enabled=settings.sync.auto_sync_enabled,
        auto_sync_interval=settings.sync.auto_sync_interval,
        clock=clock,
    )
    cache = RemoteStateCache(
        coordinator=coordinator,
        remote=remote,
        gate=gate,
        store=state_store,
        ttl_seconds=settings.cache.ttl_seconds,
        auto_refresh=settings.cache.auto_refresh,
        clock=clock,
    )
    coordinator.attach_cache(cache)

    reconciliation = ReconciliationEngine(
        sessions=session_store,
        sales=sale_store,
        remote=remote,
        gate=gate,
        coordinator=coordinator,
        permissive_when_offline=settings.reconciliation.permissive_when_offline,
        cash_methods=settings.reconciliation.cash_methods,
        clock=clock,
    )

    return SyncServices(
        settings=settings,
        remote=remote,
        network=network,
        operation_store=operation_store,
        session_store=session_store,
        sale_store=sale_store,
        state_store=state_store,
        gate=gate,
        queue=queue,
        coordinator=coordinator,
        cache=cache,
        reconciliation=reconciliation,
        pool=pool,
    )
