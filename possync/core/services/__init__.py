"""Core business services (layer-pure, no infrastructure imports)."""

from possync.core.services.connectivity import ConnectivityGate
from possync.core.services.operation_queue import PendingOperationQueue
from possync.core.services.reconciliation import ReconciliationEngine
from possync.core.services.state_cache import RemoteStateCache
from possync.core.services.sync_coordinator import SyncCoordinator

__all__ = [
    "ConnectivityGate",
    "PendingOperationQueue",
    "ReconciliationEngine",
    "RemoteStateCache",
    "SyncCoordinator",
]
