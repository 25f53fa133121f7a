"""
Gatherly - Main Application Entry Point

Recurring group meetings with RSVP, capacity and waitlist tracking.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gatherly.core.config import get_settings
from gatherly.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Gatherly in {settings.ENVIRONMENT} mode...")

    if settings.is_local:
        from gatherly.infrastructure.local.database import init_db

        await init_db()

    # Start background scheduler for periodic jobs
    from gatherly.services.background_scheduler import (
        start_background_scheduler,
        stop_background_scheduler,
    )

    await start_background_scheduler()

    yield

    # Shutdown
    logger.info("Shutting down Gatherly...")
    await stop_background_scheduler()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Gatherly",
        description="Recurring group meetings with RSVPs",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from gatherly.api import events, groups, jobs, notifications

    app.include_router(groups.router, prefix="/api/groups", tags=["groups"])
    app.include_router(events.router, prefix="/api/events", tags=["events"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
    app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
