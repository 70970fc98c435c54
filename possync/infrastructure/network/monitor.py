"""Device reachability probe over a plain TCP connect."""

import asyncio

from possync.config import get_logger
from possync.config.settings import NetworkSettings
from possync.core.interfaces import INetworkMonitor

logger = get_logger(__name__)


class SocketNetworkMonitor(INetworkMonitor):
    """
    Opens a TCP connection to a well-known host to decide whether the device
    has a network link. DNS isn't involved, so a broken resolver doesn't read
    as a dead link.
    """

    def __init__(self, host: str = "1.1.1.1", port: int = 53, timeout: float = 3.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: NetworkSettings) -> "SocketNetworkMonitor":
        return cls(
            host=settings.probe_host,
            port=settings.probe_port,
            timeout=settings.probe_timeout,
        )

    async def is_connected(self) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout,
            )
        except (OSError, TimeoutError) as e:
            logger.debug("network_probe_failed", host=self.host, port=self.port, error=str(e))
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True


class StaticNetworkMonitor(INetworkMonitor):
    """Always reports the same link state. For LAN-only deployments where the
    remote lives next to the terminal and the internet probe is meaningless."""

    def __init__(self, connected: bool = True):
        self.connected = connected

    async def is_connected(self) -> bool:
        return self.connected
