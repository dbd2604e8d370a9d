"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and loads the network catalog.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from fleet_planner.controllers.planning_controller import router as planning_router
from fleet_planner.repository.network_repository import NetworkRepository
from fleet_planner.services.allocation_service import FleetAllocationService
from fleet_planner.services.forecast_service import DemandForecastService
from fleet_planner.services.insight_service import FleetInsightService
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.services.simulation_service import SimulationService
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are created once here and handed to controllers via app.state.
    None of them keep state between planning runs.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    # --- Repository (read-only network catalog) ---
    repository = NetworkRepository(settings)

    # --- Services ---
    forecast_service = DemandForecastService(settings)
    allocation_service = FleetAllocationService(settings)
    insight_service = FleetInsightService(settings)
    planning_service = FleetPlanningService(
        repository=repository,
        forecast_service=forecast_service,
        allocation_service=allocation_service,
        insight_service=insight_service,
        settings=settings,
    )
    simulation_service = SimulationService(
        planning_service=planning_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the network catalog before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(planning_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.planning_service = planning_service
    app.state.simulation_service = simulation_service

    return app


def _startup(app: FastAPI) -> None:
    """Fail fast on a broken network file instead of on the first request."""
    repository: NetworkRepository = app.state.repository

    logger.info("Startup: loading network catalog")
    repository.load_network()

    logger.info("Startup complete, planner ready")


# Module-level app object for uvicorn
app = create_app()
