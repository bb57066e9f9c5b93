"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from coworking.controllers.admin_controller import router as admin_router
from coworking.controllers.availability_controller import router as availability_router
from coworking.controllers.booking_controller import router as booking_router
from coworking.repository.data_repository import DataRepository
from coworking.services.auth_service import AuthService
from coworking.services.availability_service import AvailabilityService
from coworking.services.booking_service import BookingService
from coworking.services.utilisation_service import UtilisationService
from coworking.utils.config import Settings, get_settings
from coworking.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    Every dependency is traceable from this function.
    """
    settings = settings or get_settings()

    # --- Repository (one SQLite connection per call) ---
    repository = DataRepository(settings)

    # --- Services (business logic, no direct DB access) ---
    availability_service = AvailabilityService(
        repository=repository,
        settings=settings,
    )
    booking_service = BookingService(
        repository=repository,
        settings=settings,
        availability_service=availability_service,
    )
    utilisation_service = UtilisationService(
        repository=repository,
        settings=settings,
        availability_service=availability_service,
    )
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(availability_router)
    app.include_router(booking_router)
    app.include_router(admin_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.booking_service = booking_service
    app.state.utilisation_service = utilisation_service
    app.state.auth_service = auth_service

    return app


def startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before the workspace catalogue is seeded.
    """
    repository: DataRepository = app.state.repository
    settings: Settings = app.state.settings

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_workspace_types:
        logger.info("Startup: seeding workspace types (skipped if table not empty)")
        repository.seed_workspace_types()

    logger.info(
        "Startup complete | slots=%s | auth_enabled=%s",
        len(settings.slot_grid),
        bool(settings.admin_token),
    )


# Module-level app object for uvicorn
app = create_app()
