"""
Postline API - FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import get_settings
from .database import Database
from .limiter import limiter
from .logging_config import api_logger
from .middleware import RequestLoggingMiddleware
from .responses import register_exception_handlers
from .routes import (
    auth_router,
    health_router,
    posts_router,
    scheduled_posts_router,
)
from .services.publisher import PublicationEngine
from .worker.scheduler import PublishScheduler


def create_app(database: Optional[Database] = None, start_scheduler: Optional[bool] = None) -> FastAPI:
    """
    Build the application around one database client.

    The publish scheduler is started in the lifespan when ``start_scheduler``
    (default: ``settings.scheduler_enabled``) is true and stopped on shutdown.
    A database passed in by the caller is left open; one built here from
    settings is disposed after the scheduler stops.
    """
    settings = get_settings()
    owns_database = database is None
    if database is None:
        database = Database(settings.database_url)
    if start_scheduler is None:
        start_scheduler = settings.scheduler_enabled

    publisher = PublicationEngine(database, batch_size=settings.publish_batch_size)
    scheduler = PublishScheduler(publisher, interval_seconds=settings.publish_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle - startup and shutdown"""
        # Create tables (in production, use migrations instead)
        database.create_all()
        if start_scheduler:
            scheduler.start()
        api_logger.info("Postline API started", environment=settings.environment, scheduler=start_scheduler)

        yield  # App is running

        scheduler.stop()
        if owns_database:
            database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Social posting backend with scheduled publication",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.publisher = publisher
    app.state.scheduler = scheduler

    # Add rate limiter to app state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # Request logging middleware (only in debug mode)
    if settings.debug:
        app.add_middleware(RequestLoggingMiddleware)

    # Routes
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(posts_router)
    app.include_router(scheduled_posts_router)

    return app


app = create_app()
