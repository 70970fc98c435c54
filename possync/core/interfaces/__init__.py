"""Core interfaces (ports) for dependency injection."""

from possync.core.interfaces.network import INetworkMonitor
from possync.core.interfaces.operation_store import IOperationStore
from possync.core.interfaces.remote_api import IRemoteApi
from possync.core.interfaces.sale_store import ISaleStore
from possync.core.interfaces.session_store import ICashSessionStore
from possync.core.interfaces.state_store import IStateStore

__all__ = [
    "INetworkMonitor",
    "IOperationStore",
    "IRemoteApi",
    "ISaleStore",
    "ICashSessionStore",
    "IStateStore",
]
