"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from possync import __version__
from possync.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from possync.api.middleware.error_handler import setup_exception_handlers
from possync.api.routes import (
    cash_sessions_router,
    health_router,
    sales_router,
    settings_router,
    sync_router,
)
from possync.application.services import SyncServices, build_services
from possync.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


def create_app(
    services: SyncServices | None = None,
    start_monitor: bool = True,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        services: Prebuilt service container (tests pass one with fakes)
        start_monitor: Run the background connectivity monitor

    Returns:
        Configured FastAPI instance
    """
    settings = services.settings if services is not None else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Application lifespan handler.

        Starts the sync subsystem on startup and stops it on shutdown.
        """
        configure_logging()
        logger.info(
            "application_starting",
            host=settings.api.host,
            port=settings.api.port,
            terminal_id=settings.terminal_id,
        )

        container = services or build_services(settings)
        try:
            await container.start(monitor=start_monitor)
        except Exception as e:
            logger.error("sync_services_start_failed", error=str(e))
            raise
        app.state.services = container
        logger.info("application_started")

        yield

        logger.info("application_stopping")
        try:
            await container.stop()
        except Exception as e:
            logger.warning("sync_services_stop_failed", error=str(e))
        logger.info("application_stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Offline-first sync and cash session reconciliation for POS terminals",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(sync_router)
    app.include_router(cash_sessions_router)
    app.include_router(sales_router)
    app.include_router(settings_router)

    # Root health endpoint (for docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {"status": "healthy", "version": __version__}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "possync.api.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
