"""FastAPI application factory.

Main entry point for the Study Tracker Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studytrack import __version__
from studytrack.config.app_config import load_app_config
from studytrack.web.deps import get_backend
from studytrack.web.routes import (
    analytics_router,
    auth_router,
    health_router,
    hooks_router,
    sessions_router,
    settings_router,
    subjects_router,
    timer_router,
)
from studytrack.web.timers import get_timer_manager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config = load_app_config()
    get_backend()
    manager = get_timer_manager()
    manager.start(config.timer.tick_interval)
    logger.info(
        "api_startup",
        backend=config.backend.provider,
        tick_interval=config.timer.tick_interval,
    )
    yield
    # Shutdown
    await manager.stop()
    await get_backend().aclose()
    logger.info("api_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="Study Tracker API",
        description="Subjects, topic checklists, focus timer and study analytics",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(subjects_router)
    app.include_router(sessions_router)
    app.include_router(settings_router)
    app.include_router(analytics_router)
    app.include_router(timer_router)
    app.include_router(hooks_router)

    return app
