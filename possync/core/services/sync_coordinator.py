"""
Sync coordinator.

Drains the pending operation queue against the remote service and keeps the
state cache honest. The drain is a small state machine:

    IDLE -> DRAINING -> IDLE            (queue emptied)
    IDLE -> DRAINING -> PAUSED -> ...   (retryable failure, retry scheduled)

A single in-progress flag is the only concurrency control.
"""

import asyncio
import contextlib
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.entities.operation import EntityKind, PendingOperation
from possync.core.entities.sync import DrainResult, DrainState, SyncReport, SyncStatus
from possync.core.exceptions import (
    ApplicationError,
    RemoteErrorKind,
    SyncInProgressError,
    TransientNetworkError,
)
from possync.core.interfaces import IRemoteApi
from possync.core.services.connectivity import ConnectivityGate
from possync.core.services.operation_queue import PendingOperationQueue

if TYPE_CHECKING:
    from possync.core.services.state_cache import RemoteStateCache

logger = get_logger(__name__)

StatusListener = Callable[[SyncStatus], None]


class SyncCoordinator:
    """
    Orchestrates queue replay and cache refresh.

    Triggers: ``submit``, offline->online transitions, the retry timer, the
    periodic auto-sync and manual ``force_sync``. Operations replay strictly
    in insertion order and the pass stops at the first retryable failure.
    """

    def __init__(
        self,
        queue: PendingOperationQueue,
        gate: ConnectivityGate,
        remote: IRemoteApi,
        batch_size: int = 20,
        backoff: Literal["fixed", "exponential"] = "fixed",
        retry_delay: float = 5.0,
        max_retry_delay: float = 300.0,
        submit_timeout: float = 5.0,
        poll_interval: float = 30.0,
        auto_sync_enabled: bool = True,
        auto_sync_interval: float = 300.0,
        clock: Clock = utc_now,
    ):
        self._queue = queue
        self._gate = gate
        self._remote = remote
        self._batch_size = batch_size
        self._backoff = backoff
        self._retry_delay = retry_delay
        self._max_retry_delay = max_retry_delay
        self._submit_timeout = submit_timeout
        self._poll_interval = poll_interval
        self._auto_sync_enabled = auto_sync_enabled
        self._auto_sync_interval = auto_sync_interval
        self._clock = clock

        self._cache: RemoteStateCache | None = None
        self._state = DrainState.IDLE
        self._draining = False
        self._consecutive_failures = 0
        self._last_sync_at: datetime | None = None

        self._drain_task: asyncio.Task | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._monitor_task: asyncio.Task | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._status_listeners: list[StatusListener] = []

    def attach_cache(self, cache: "RemoteStateCache") -> None:
        """Wire the cache in after construction; the cache submits through us."""
        self._cache = cache

    @property
    def queue(self) -> PendingOperationQueue:
        return self._queue

    @property
    def gate(self) -> ConnectivityGate:
        return self._gate

    @property
    def state(self) -> DrainState:
        return self._state

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def last_sync_at(self) -> datetime | None:
        return self._last_sync_at

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, monitor: bool = True) -> None:
        """Load persisted state, subscribe to transitions, start polling."""
        await self._queue.load()
        if self._cache is not None:
            await self._cache.restore()
        self._unsubscribe = self._gate.on_transition(self._on_online)
        if monitor:
            self._monitor_task = asyncio.create_task(self._monitor())
        logger.info(
            "sync_coordinator_started",
            pending=self._queue.drainable_count(),
            dead=self._queue.error_count(),
        )

    async def stop(self) -> None:
        """Stop background work. Unacknowledged operations stay queued."""
        self._cancel_retry()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in (self._monitor_task, self._drain_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._monitor_task = None
        self._drain_task = None
        logger.info("sync_coordinator_stopped", pending=self._queue.drainable_count())

    # =========================================================================
    # Submission and draining
    # =========================================================================

    async def submit(self, operation: PendingOperation) -> str:
        """
        Enqueue an operation and, when online, try to replay it right away.

        Waits at most ``submit_timeout`` on the drain; the drain keeps going
        in the background after that. Only enqueue failures propagate; the
        operation is queued once this returns.
        """
        op_id = await self._queue.enqueue(operation)
        self._notify_status()

        if await self._gate.is_online():
            task = self.schedule_drain(skip_probe=True)
            if task is not None:
                try:
                    await asyncio.wait_for(asyncio.shield(task), self._submit_timeout)
                except TimeoutError:
                    logger.info("submit_drain_continues_in_background", op_id=op_id)
                except Exception as e:
                    # Already queued; a failed drain leaves it for the next pass
                    logger.error("submit_drain_failed", op_id=op_id, error=str(e), exc_info=e)
        return op_id

    def schedule_drain(self, skip_probe: bool = False) -> asyncio.Task | None:
        """Start a background drain unless one is running or nothing is queued."""
        if self._drain_task is not None and not self._drain_task.done():
            return self._drain_task
        if self._queue.drainable_count() == 0:
            return None
        self._drain_task = asyncio.create_task(self.drain(skip_probe=skip_probe))
        return self._drain_task

    async def drain(self, skip_probe: bool = False) -> DrainResult:
        """
        Replay queued operations in insertion order.

        Mutually exclusive: a call made while another drain runs returns
        immediately with ``skipped=True``. Offline drains are skipped without
        touching attempt counts.
        """
        if self._draining:
            logger.debug("drain_skipped", reason="in_progress")
            return DrainResult(
                skipped=True,
                reason="in_progress",
                remaining=self._queue.drainable_count(),
            )

        # Set before the first await
        self._draining = True
        self._cancel_retry()
        try:
            if not skip_probe and not await self._gate.is_online():
                logger.debug("drain_skipped", reason="offline")
                return DrainResult(
                    skipped=True,
                    reason="offline",
                    remaining=self._queue.drainable_count(),
                )
            self._state = DrainState.DRAINING
            return await self._drain_pass()
        finally:
            self._draining = False
            if self._state == DrainState.DRAINING:
                self._state = DrainState.IDLE
            self._notify_status()

    async def _drain_pass(self) -> DrainResult:
        result = DrainResult()
        logger.info("drain_started", pending=self._queue.drainable_count())

        while batch := self._queue.peek_batch(self._batch_size):
            for operation in batch:
                try:
                    await self._remote.apply(operation)
                except TransientNetworkError as e:
                    await self._pause_on(operation, e, result)
                    result.remaining = self._queue.drainable_count()
                    return result
                except ApplicationError as e:
                    await self._queue.dead_letter(operation.id, e.message)
                    result.dead_lettered.append(operation.id)
                    self._invalidate_scope(operation)
                except Exception as e:
                    # Unclassified failure: spend an attempt and back off
                    logger.error(
                        "replay_unexpected_error", op_id=operation.id, error=repr(e), exc_info=e
                    )
                    await self._pause_on(
                        operation,
                        TransientNetworkError(
                            f"unexpected {type(e).__name__}: {e}", kind=RemoteErrorKind.NETWORK
                        ),
                        result,
                    )
                    result.remaining = self._queue.drainable_count()
                    return result
                else:
                    await self._queue.mark_succeeded(operation.id)
                    result.succeeded.append(operation.id)
                    self._consecutive_failures = 0
                    self._invalidate_scope(operation)

        self._last_sync_at = self._clock()
        self._consecutive_failures = 0
        logger.info(
            "drain_completed",
            succeeded=len(result.succeeded),
            dead_lettered=len(result.dead_lettered),
        )
        return result

    async def _pause_on(
        self,
        operation: PendingOperation,
        error: TransientNetworkError,
        result: DrainResult,
    ) -> None:
        failed = await self._queue.mark_failed(operation.id, error.message)
        if failed.is_dead:
            result.dead_lettered.append(operation.id)
            self._invalidate_scope(operation)

        self._consecutive_failures += 1
        self._state = DrainState.PAUSED
        result.failed = operation.id

        if self._queue.drainable_count():
            delay = self._backoff_delay()
            result.retry_in = delay
            self._schedule_retry(delay)
        logger.warning(
            "drain_paused",
            op_id=operation.id,
            attempt=failed.attempt_count,
            error_kind=error.kind.value,
            retry_in=result.retry_in,
        )

    def _backoff_delay(self) -> float:
        if self._backoff == "exponential":
            delay = self._retry_delay * (2 ** (self._consecutive_failures - 1))
            return min(delay, self._max_retry_delay)
        return self._retry_delay

    def _schedule_retry(self, delay: float) -> None:
        self._cancel_retry()
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(delay, self._on_retry_timer)

    def _on_retry_timer(self) -> None:
        self._retry_handle = None
        self.schedule_drain()

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _invalidate_scope(self, operation: PendingOperation) -> None:
        # The remote now holds (or refused) this write; re-read it next time
        if (
            self._cache is not None
            and operation.entity_kind == EntityKind.SETTINGS
            and operation.owner_key
        ):
            self._cache.invalidate(operation.owner_key)

    # =========================================================================
    # Manual controls
    # =========================================================================

    async def force_sync(self) -> SyncReport:
        """
        Drain the queue, then refresh every cached scope regardless of TTL.

        Raises:
            SyncInProgressError: A drain is already running.
        """
        if self._draining:
            raise SyncInProgressError()

        logger.info("force_sync_started")
        drain = await self.drain()
        refreshed: list[str] = []
        failed: list[str] = []
        if self._cache is not None:
            refreshed, failed = await self._cache.refresh_all()

        report = SyncReport(
            drain=drain,
            refreshed_scopes=refreshed,
            failed_scopes=failed,
            completed_at=self._clock(),
        )
        logger.info(
            "force_sync_completed",
            succeeded=len(drain.succeeded),
            refreshed=len(refreshed),
            failed=len(failed),
        )
        return report

    async def clear_errors(self) -> int:
        count = await self._queue.clear_errors()
        self._notify_status()
        return count

    async def retry_dead_letter(self, op_id: str) -> PendingOperation:
        """Put a dead-lettered operation back at the tail of the queue."""
        operation = await self._queue.requeue(op_id)
        if self._gate.last_known:
            self.schedule_drain()
        self._notify_status()
        return operation

    async def set_offline(self, offline: bool) -> SyncStatus:
        """Force offline mode on or off. Clearing it re-checks connectivity."""
        self._gate.force_offline(offline)
        if not offline:
            # An edge here triggers a drain through the transition callback
            await self._gate.is_online()
        self._notify_status()
        return self.snapshot()

    # =========================================================================
    # Status
    # =========================================================================

    async def get_status(self) -> SyncStatus:
        """Status with a fresh connectivity check."""
        await self._gate.is_online()
        return self.snapshot()

    def snapshot(self) -> SyncStatus:
        """Status from the last known connectivity, without probing."""
        return SyncStatus(
            is_online=self._gate.last_known,
            pending_count=self._queue.drainable_count(),
            error_count=self._queue.error_count(),
            last_sync_at=self._last_sync_at,
            state=self._state,
            forced_offline=self._gate.forced_offline,
        )

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        self._status_listeners.append(listener)
        return lambda: self.remove_status_listener(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        if listener in self._status_listeners:
            self._status_listeners.remove(listener)

    def _notify_status(self) -> None:
        if not self._status_listeners:
            return
        status = self.snapshot()
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error("status_listener_failed", error=str(e))

    # =========================================================================
    # Background
    # =========================================================================

    def _on_online(self) -> None:
        if self._queue.drainable_count():
            logger.info("replaying_after_reconnect", pending=self._queue.drainable_count())
            self.schedule_drain(skip_probe=True)

    async def _monitor(self) -> None:
        loop = asyncio.get_running_loop()
        last_auto_sync = loop.time()
        while True:
            # Offline->online edges start a drain via _on_online
            online = await self._gate.is_online()

            if (
                self._auto_sync_enabled
                and online
                and loop.time() - last_auto_sync >= self._auto_sync_interval
            ):
                last_auto_sync = loop.time()
                logger.debug("auto_sync_tick", pending=self._queue.drainable_count())
                self.schedule_drain(skip_probe=True)

            await asyncio.sleep(self._poll_interval)
