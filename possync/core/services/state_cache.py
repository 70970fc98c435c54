"""
Remote state cache.

TTL cache of remote-sourced documents (terminal settings per user) with a
fallback chain: fresh entry, remote fetch, stale entry, static default.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.entities.cache import CachedState
from possync.core.entities.operation import EntityKind, OperationKind, PendingOperation
from possync.core.entities.settings import default_settings_document
from possync.core.exceptions import RemoteError
from possync.core.interfaces import IRemoteApi, IStateStore
from possync.core.services.connectivity import ConnectivityGate

if TYPE_CHECKING:
    from possync.core.services.sync_coordinator import SyncCoordinator

logger = get_logger(__name__)


class RemoteStateCache:
    """
    Per-scope cache with optimistic local writes.

    A cache miss is never an error: when nothing is cached and the remote
    can't be reached, the static default is served and seeded so later
    offline reads agree with each other.
    """

    def __init__(
        self,
        coordinator: "SyncCoordinator",
        remote: IRemoteApi,
        gate: ConnectivityGate,
        store: IStateStore | None = None,
        ttl_seconds: float = 300,
        auto_refresh: bool = True,
        default_factory: Callable[[], dict[str, Any]] = default_settings_document,
        clock: Clock = utc_now,
    ):
        self._coordinator = coordinator
        self._remote = remote
        self._gate = gate
        self._store = store
        self._ttl = ttl_seconds
        self._auto_refresh = auto_refresh
        self._default_factory = default_factory
        self._clock = clock
        self._entries: dict[str, CachedState] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def scope_keys(self) -> list[str]:
        return list(self._entries)

    def peek(self, scope_key: str) -> CachedState | None:
        """The current entry, without any fetching."""
        return self._entries.get(scope_key)

    async def restore(self) -> int:
        """Load persisted entries. They come back as-is, stale or not."""
        if self._store is None:
            return 0
        entries = await self._store.load_all()
        for entry in entries:
            self._entries[entry.scope_key] = entry
        logger.info("cache_restored", entries=len(entries))
        return len(entries)

    async def get(self, scope_key: str) -> dict[str, Any]:
        """
        Read a scope, falling back as far as needed.

        1. Fresh entry: returned at once. With auto-refresh on, a background
           sync is kicked off; the caller never waits on it.
        2. Online: fetched from the remote and stored.
        3. Stale entry: served in degraded mode.
        4. Otherwise the static default, seeded into the cache.
        """
        now = self._clock()
        entry = self._entries.get(scope_key)

        if entry is not None and entry.is_fresh(now, self._ttl):
            if self._auto_refresh:
                self._coordinator.schedule_drain()
            return dict(entry.value)

        if await self._gate.is_online():
            try:
                return await self._fetch(scope_key)
            except RemoteError as e:
                logger.warning("cache_fetch_failed", scope_key=scope_key, error=e.message)

        if entry is not None:
            logger.warning(
                "cache_serving_stale",
                scope_key=scope_key,
                age_seconds=round(entry.age_seconds(now), 1),
                is_default=entry.is_default,
            )
            return dict(entry.value)

        value = self._default_factory()
        await self._put(
            CachedState(scope_key=scope_key, value=value, fetched_at=now, is_default=True)
        )
        logger.info("cache_seeded_default", scope_key=scope_key)
        return dict(value)

    async def set(self, scope_key: str, update: dict[str, Any]) -> dict[str, Any]:
        """
        Optimistic write: merge locally now, replay to the remote later.

        The merge isn't rolled back if the enqueue fails; the error
        propagates and the next authoritative fetch corrects the value.
        """
        entry = self._entries.get(scope_key)
        current = dict(entry.value) if entry is not None else await self.get(scope_key)
        merged = {**current, **update}

        await self._put(
            CachedState(scope_key=scope_key, value=merged, fetched_at=self._clock())
        )
        logger.info("cache_updated_locally", scope_key=scope_key, keys=sorted(update))

        await self._coordinator.submit(
            PendingOperation(
                kind=OperationKind.UPDATE,
                entity_kind=EntityKind.SETTINGS,
                owner_key=scope_key,
                payload=merged,
            )
        )
        return dict(merged)

    async def refresh(self, scope_key: str) -> dict[str, Any]:
        """Fetch regardless of TTL. Raises RemoteError on failure."""
        return await self._fetch(scope_key)

    async def refresh_all(self) -> tuple[list[str], list[str]]:
        """Refresh every known scope. Returns (refreshed, failed) scope keys."""
        keys = self.scope_keys()
        if not keys:
            return [], []
        if not await self._gate.is_online():
            return [], keys

        refreshed: list[str] = []
        failed: list[str] = []
        for key in keys:
            try:
                await self._fetch(key)
                refreshed.append(key)
            except RemoteError as e:
                logger.warning("cache_refresh_failed", scope_key=key, error=e.message)
                failed.append(key)
        return refreshed, failed

    def invalidate(self, scope_key: str) -> None:
        """Force the next online read to re-fetch. The value stays as a fallback."""
        entry = self._entries.get(scope_key)
        if entry is not None and not entry.invalidated:
            self._entries[scope_key] = entry.model_copy(update={"invalidated": True})
            logger.debug("cache_invalidated", scope_key=scope_key)

    async def _fetch(self, scope_key: str) -> dict[str, Any]:
        value = await self._remote.fetch_settings(scope_key)

        # Writes still queued for this scope haven't reached the remote yet
        for op in self._coordinator.queue.pending_for(EntityKind.SETTINGS, scope_key):
            value.update(op.payload)

        await self._put(
            CachedState(scope_key=scope_key, value=value, fetched_at=self._clock())
        )
        logger.debug("cache_fetched", scope_key=scope_key)
        return dict(value)

    async def _put(self, entry: CachedState) -> None:
        self._entries[entry.scope_key] = entry
        if self._store is None:
            return
        try:
            await self._store.save(entry)
        except Exception as e:
            # The in-memory entry is still valid for this process
            logger.warning("cache_persist_failed", scope_key=entry.scope_key, error=str(e))
