"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures middleware,
routes, exception handlers, and the one-time database startup sequence.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from propman.api import admin, auth, organizations, properties
from propman.core.config import settings
from propman.core.exception_handlers import register_exception_handlers
from propman.core.logging import configure_logging
from propman.db.lifecycle import DatabaseLifecycleManager
from propman.db.session import database
from propman.middleware import RequestContextMiddleware
from propman.services.backup_service import DatabaseBackupService
from propman.services.scheduler import get_scheduler_status, shutdown_scheduler, start_scheduler

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations
    and makes it possible to create multiple app instances if needed.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Multi-tenant property management API",
        version=settings.VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Exception handlers ensure consistent error responses across the API
    # and prevent sensitive data leaks in error messages
    register_exception_handlers(app)

    # Request id must be available to every handler and log line
    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Lets monitoring verify the process is up without
        authentication or touching the store.
        """
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "scheduler": get_scheduler_status(),
        }

    @app.on_event("startup")
    async def startup_event():
        """
        Run the database startup sequence, then start scheduled backups.

        WHY: Nothing may be served until the store is detected, restored,
        migrated and verified. A fatal lifecycle error propagates and
        stops the server from starting.
        """
        configure_logging()
        report = await DatabaseLifecycleManager(database).run()
        app.state.startup_report = report
        await start_scheduler(DatabaseBackupService(database))

    @app.on_event("shutdown")
    async def shutdown_event():
        await shutdown_scheduler()
        await database.dispose()

    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/api/docs",
        }

    app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
    app.include_router(organizations.router, prefix=settings.API_V1_PREFIX)
    app.include_router(properties.router, prefix=settings.API_V1_PREFIX)
    app.include_router(admin.router, prefix=settings.API_V1_PREFIX)

    return app


# Creating the app instance here allows it to be imported by uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "propman.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )
