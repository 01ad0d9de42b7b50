"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the roster repository and services, registers routers, and runs
startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from lab_allocator.controllers.allocation_controller import router as allocation_router
from lab_allocator.controllers.roster_controller import router as roster_router
from lab_allocator.repository.roster_repository import RosterRepository
from lab_allocator.services.allocation_service import LabAllocationService
from lab_allocator.services.auth_service import AuthService
from lab_allocator.services.roster_service import RosterService
from lab_allocator.utils.config import Settings, get_settings
from lab_allocator.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service is created here and exposed through app.state so controllers
    resolve them per request.
    """
    settings = settings or get_settings()

    repository = RosterRepository(settings)
    roster_service = RosterService(repository=repository, settings=settings)
    allocation_service = LabAllocationService(repository=repository, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(roster_router)
    app.include_router(allocation_router)

    app.state.settings = settings
    app.state.repository = repository
    app.state.roster_service = roster_service
    app.state.allocation_service = allocation_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup: schema first, then the optional demo roster."""
    repository: RosterRepository = app.state.repository
    settings: Settings = app.state.settings

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_roster:
        logger.info("Startup: seeding demo roster (skipped if labs exist)")
        repository.seed_demo_roster_if_empty()

    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN not set; roster edits and allocation are unauthenticated")

    logger.info("Startup complete - system ready")


# Module-level app object for uvicorn
app = create_app()
