"""Abstract interface for device-level network reachability."""

from abc import ABC, abstractmethod


class INetworkMonitor(ABC):
    """Reports whether the device has a usable network link."""

    @abstractmethod
    async def is_connected(self) -> bool:
        """True when the device can reach the network at all."""
        pass
