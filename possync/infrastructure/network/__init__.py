"""Device network reachability."""

from possync.infrastructure.network.monitor import SocketNetworkMonitor, StaticNetworkMonitor

__all__ = ["SocketNetworkMonitor", "StaticNetworkMonitor"]
