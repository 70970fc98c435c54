"""
Connectivity gate.

Online means both the device link and the remote health probe pass. Probe
failures never raise; they just read as offline.
"""

from collections.abc import Callable
from datetime import datetime

from possync.config import get_logger
from possync.core.clock import Clock, utc_now
from possync.core.interfaces import INetworkMonitor, IRemoteApi

logger = get_logger(__name__)

TransitionCallback = Callable[[], None]


class ConnectivityGate:
    """
    Decides whether the remote service is reachable right now.

    Transition callbacks fire once per offline->online edge. The gate starts
    offline, so the first successful check after startup is an edge.
    """

    def __init__(
        self,
        network: INetworkMonitor,
        remote: IRemoteApi,
        probe_timeout: float = 5.0,
        forced_offline: bool = False,
        clock: Clock = utc_now,
    ):
        self._network = network
        self._remote = remote
        self._probe_timeout = probe_timeout
        self._forced_offline = forced_offline
        self._clock = clock

        self._last_known = False
        self._last_checked_at: datetime | None = None
        self._callbacks: list[TransitionCallback] = []

    @property
    def forced_offline(self) -> bool:
        return self._forced_offline

    @property
    def last_known(self) -> bool:
        """Result of the most recent check, without probing."""
        return self._last_known

    @property
    def last_checked_at(self) -> datetime | None:
        return self._last_checked_at

    def force_offline(self, offline: bool) -> None:
        """Override every probe to offline until cleared."""
        if offline == self._forced_offline:
            return
        self._forced_offline = offline
        logger.info("offline_mode_changed", forced_offline=offline)
        if offline:
            self._record(False)

    async def is_online(self) -> bool:
        online = await self._probe()
        self._record(online)
        return online

    def on_transition(self, callback: TransitionCallback) -> Callable[[], None]:
        """Register an offline->online callback. Returns an unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _probe(self) -> bool:
        if self._forced_offline:
            return False

        try:
            if not await self._network.is_connected():
                return False
        except Exception as e:
            logger.debug("network_check_failed", error=str(e))
            return False

        try:
            return await self._remote.check_health(self._probe_timeout)
        except Exception as e:
            logger.debug("health_probe_failed", error=str(e))
            return False

    def _record(self, online: bool) -> None:
        # No await between read and write, so concurrent checks see one edge
        was_online = self._last_known
        self._last_known = online
        self._last_checked_at = self._clock()

        if online and not was_online:
            logger.info("connectivity_restored")
            for callback in list(self._callbacks):
                try:
                    callback()
                except Exception as e:
                    logger.error("transition_callback_failed", error=str(e))
        elif was_online and not online:
            logger.warning("connectivity_lost")
