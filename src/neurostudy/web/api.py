"""FastAPI application factory.

Main entry point for the NeuroStudy Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neurostudy import __version__
from neurostudy.core.study_service import get_study_service
from neurostudy.db.curriculum_repository import list_subjects
from neurostudy.web.routes import (
    chapters_router,
    focus_router,
    health_router,
    notes_router,
    preferences_router,
    tasks_router,
    tutor_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    service = get_study_service()
    logger.info(
        "api_startup",
        db_path=str(service.config.db_path),
        subjects=list_subjects(),
        modes=[m.value for m in service.preferences.selected_modes],
        energy=service.energy_level.value,
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="NeuroStudy API",
        description="Study companion API with neurodivergent support modes",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(preferences_router)
    app.include_router(tutor_router)
    app.include_router(notes_router)
    app.include_router(tasks_router)
    app.include_router(focus_router)
    app.include_router(chapters_router)

    return app


# Default app instance for uvicorn
app = create_app()
