"""
Dependency injection for FastAPI.

Provides the service container and use cases to route handlers. The
container lives on ``app.state.services``.
"""

from fastapi import Depends, Request

from possync.application.services import SyncServices
from possync.application.use_cases import (
    CloseCashSessionUseCase,
    OpenCashSessionUseCase,
    RecordSaleUseCase,
    UpdateSaleStatusUseCase,
)
from possync.core.interfaces import ICashSessionStore, ISaleStore
from possync.core.services import (
    ReconciliationEngine,
    RemoteStateCache,
    SyncCoordinator,
)


def get_services(request: Request) -> SyncServices:
    """Get the service container built at startup."""
    return request.app.state.services


def get_coordinator(services: SyncServices = Depends(get_services)) -> SyncCoordinator:
    return services.coordinator


def get_cache(services: SyncServices = Depends(get_services)) -> RemoteStateCache:
    return services.cache


def get_reconciliation(
    services: SyncServices = Depends(get_services),
) -> ReconciliationEngine:
    return services.reconciliation


def get_session_store(services: SyncServices = Depends(get_services)) -> ICashSessionStore:
    return services.session_store


def get_sale_store(services: SyncServices = Depends(get_services)) -> ISaleStore:
    return services.sale_store


# Use case dependencies
def get_open_cash_session_use_case(
    services: SyncServices = Depends(get_services),
) -> OpenCashSessionUseCase:
    """Get open cash session use case."""
    return OpenCashSessionUseCase(
        sessions=services.session_store,
        remote=services.remote,
        gate=services.gate,
        coordinator=services.coordinator,
    )


def get_close_cash_session_use_case(
    services: SyncServices = Depends(get_services),
) -> CloseCashSessionUseCase:
    """Get close cash session use case."""
    return CloseCashSessionUseCase(services.reconciliation)


def get_record_sale_use_case(
    services: SyncServices = Depends(get_services),
) -> RecordSaleUseCase:
    """Get record sale use case."""
    return RecordSaleUseCase(
        sessions=services.session_store,
        sales=services.sale_store,
        coordinator=services.coordinator,
        reconciliation=services.reconciliation,
    )


def get_update_sale_status_use_case(
    services: SyncServices = Depends(get_services),
) -> UpdateSaleStatusUseCase:
    """Get update sale status use case."""
    return UpdateSaleStatusUseCase(
        sales=services.sale_store,
        coordinator=services.coordinator,
    )
