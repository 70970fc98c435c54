"""API routes."""

from possync.api.routes.cash_sessions import router as cash_sessions_router
from possync.api.routes.health import router as health_router
from possync.api.routes.sales import router as sales_router
from possync.api.routes.settings import router as settings_router
from possync.api.routes.sync import router as sync_router

__all__ = [
    "cash_sessions_router",
    "health_router",
    "sales_router",
    "settings_router",
    "sync_router",
]
