"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from fleet_planner.repository.network_repository import NetworkRepository
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.services.simulation_service import SimulationService


def get_network_repository(request: Request) -> NetworkRepository:
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Network repository is not initialized",
        )
    return repository


def get_planning_service(request: Request) -> FleetPlanningService:
    service = getattr(request.app.state, "planning_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Planning service is not initialized",
        )
    return service


def get_simulation_service(request: Request) -> SimulationService:
    service = getattr(request.app.state, "simulation_service", None)
    if service is None:
        planning_service = getattr(request.app.state, "planning_service", None)
        if planning_service is not None:
            service = SimulationService(planning_service=planning_service)
            request.app.state.simulation_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Simulation service is not initialized",
        )
    return service
