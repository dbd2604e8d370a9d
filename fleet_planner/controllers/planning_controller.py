"""HTTP controller layer for fleet planning and what-if simulation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from fleet_planner.controllers.dependencies import (
    get_network_repository,
    get_planning_service,
    get_simulation_service,
)
from fleet_planner.domain.constraints import InvalidConfiguration
from fleet_planner.domain.models import PlanContext, PlanRequest, build_depots, build_lines
from fleet_planner.repository.network_repository import NetworkConfigError, NetworkRepository
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.services.simulation_service import (
    SimulationService,
    SimulationValidationError,
    TemporaryOverrides,
)
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["planning"])


def _check_hours(value: list[int] | None) -> list[int] | None:
    if value is None:
        return None
    for hour in value:
        if not 0 <= hour <= 23:
            raise ValueError("hours must be between 0 and 23")
    if len(set(value)) != len(value):
        raise ValueError("hours must be distinct")
    return value


class DepotPayload(BaseModel):
    capacity: int = Field(ge=0)
    available_trains: int = Field(ge=0)
    max_induct_per_hour: int = Field(ge=0)


class PlanRequestBody(BaseModel):
    """Input DTO validated before entering service layer."""

    lines: dict[str, list[int]] = Field(min_length=1)
    hours: list[int] = Field(min_length=1)
    weekday: int = Field(ge=0, le=6)
    weather: int = Field(ge=0, le=1)
    event: int = Field(ge=0, le=1)
    depots: dict[str, DepotPayload]
    train_capacity: int = Field(gt=0)
    random_seed: int | None = Field(default=None, ge=0)

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: list[int]) -> list[int]:
        return _check_hours(value)

    def to_domain(self) -> PlanRequest:
        return PlanRequest(
            lines=build_lines(self.lines),
            hours=tuple(self.hours),
            context=PlanContext(weekday=self.weekday, weather=self.weather, event=self.event),
            depots=build_depots(
                {depot_id: depot.model_dump() for depot_id, depot in self.depots.items()}
            ),
            train_capacity=self.train_capacity,
            random_seed=self.random_seed,
        )


class DefaultPlanRequestBody(BaseModel):
    weekday: int = Field(default=1, ge=0, le=6)
    weather: int = Field(default=0, ge=0, le=1)
    event: int = Field(default=0, ge=0, le=1)
    hours: list[int] | None = Field(default=None, min_length=1)
    train_capacity: int | None = Field(default=None, gt=0)
    random_seed: int | None = Field(default=None, ge=0)

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: list[int] | None) -> list[int] | None:
        return _check_hours(value)


class StatsResponse(BaseModel):
    total_trains_used: int = Field(ge=0)
    peak_hour: int = Field(ge=0, le=23)


class HourlyAllocationResponse(BaseModel):
    hour: int = Field(ge=0, le=23)
    total_demand: int = Field(ge=0)
    trains_needed: int = Field(ge=0)
    trains_assigned: int = Field(ge=0)
    shortfall: int = Field(ge=0)
    under_provisioned: bool


class HourEfficiencyResponse(BaseModel):
    hour: int = Field(ge=0, le=23)
    demand: int = Field(ge=0)
    trains: int = Field(ge=0)
    efficiency: float = Field(ge=0.0)


class InsightsResponse(BaseModel):
    fleet_utilization: float = Field(ge=0.0)
    capacity_match: float = Field(ge=0.0)
    peak_line_demand: int = Field(ge=0)
    average_line_demand: float = Field(ge=0.0)
    high_demand_variance: bool
    under_provisioned_hours: list[int]
    hourly_efficiency: list[HourEfficiencyResponse]
    flags: list[str]


class PlanResponse(BaseModel):
    """Output DTO: demand and schedule keyed by id, then by hour as a string."""

    run_id: str
    predicted_demand: dict[str, dict[str, int]]
    schedule: dict[str, dict[str, int]]
    stats: StatsResponse
    hourly_allocation: list[HourlyAllocationResponse]
    insights: InsightsResponse


class NetworkResponse(BaseModel):
    lines: dict[str, list[int]]
    hours: list[int]
    depots: dict[str, DepotPayload]
    train_capacity: int = Field(gt=0)


class TemporaryOverridesBody(BaseModel):
    weekday: int | None = Field(default=None, ge=0, le=6)
    weather: int | None = Field(default=None, ge=0, le=1)
    event: int | None = Field(default=None, ge=0, le=1)
    train_capacity: int | None = Field(default=None, gt=0)
    available_trains: dict[str, int] | None = None
    max_induct_per_hour: dict[str, int] | None = None

    @field_validator("available_trains", "max_induct_per_hour")
    @classmethod
    def validate_depot_overrides(cls, value: dict[str, int] | None) -> dict[str, int] | None:
        if value is None:
            return None
        for depot_id, trains in value.items():
            if not depot_id.strip():
                raise ValueError("depot override key must be non-empty")
            if trains < 0:
                raise ValueError("depot override value must be >= 0")
        return value

    def to_domain(self) -> TemporaryOverrides:
        return TemporaryOverrides(**self.model_dump())


class SimulateRequest(BaseModel):
    plan: PlanRequestBody | None = None
    overrides: TemporaryOverridesBody = Field(default_factory=TemporaryOverridesBody)


class SimulationMetricsResponse(BaseModel):
    total_trains_used: int = Field(ge=0)
    trains_needed: int = Field(ge=0)
    total_shortfall: int = Field(ge=0)
    under_provisioned_hours: int = Field(ge=0)
    fleet_utilization: float = Field(ge=0.0)
    peak_hour: int = Field(ge=0, le=23)


class SimulationDeltaResponse(BaseModel):
    trains_used_change: int
    trains_needed_change: int
    shortfall_change: int
    under_provisioned_hours_change: int
    utilization_change: float
    peak_hour_changed: bool


class SimulateResponse(BaseModel):
    baseline: SimulationMetricsResponse
    simulation: SimulationMetricsResponse
    delta: SimulationDeltaResponse


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/network",
    response_model=NetworkResponse,
    status_code=status.HTTP_200_OK,
)
async def get_network(
    repository: NetworkRepository = Depends(get_network_repository),
) -> NetworkResponse:
    """Return the default lines, depots and service hours."""
    try:
        return NetworkResponse(**repository.load_network().to_dict())
    except NetworkConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.post(
    "/plan",
    response_model=PlanResponse,
    status_code=status.HTTP_200_OK,
)
async def plan(
    payload: PlanRequestBody,
    service: FleetPlanningService = Depends(get_planning_service),
) -> PlanResponse:
    """Forecast demand, allocate depot trains and summarize the run."""
    try:
        result = service.run_plan(payload.to_domain())
        return PlanResponse(**result.to_dict())
    except InvalidConfiguration as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected planning failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build fleet plan",
        ) from exc


@router.post(
    "/plan/default",
    response_model=PlanResponse,
    status_code=status.HTTP_200_OK,
)
async def plan_default_network(
    payload: DefaultPlanRequestBody,
    service: FleetPlanningService = Depends(get_planning_service),
) -> PlanResponse:
    """Run the planner on the catalog network with the given context."""
    try:
        request = service.build_default_request(
            weekday=payload.weekday,
            weather=payload.weather,
            event=payload.event,
            hours=payload.hours,
            train_capacity=payload.train_capacity,
            random_seed=payload.random_seed,
        )
        result = service.run_plan(request)
        return PlanResponse(**result.to_dict())
    except InvalidConfiguration as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NetworkConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected planning failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build fleet plan",
        ) from exc


@router.post(
    "/simulate",
    response_model=SimulateResponse,
    status_code=status.HTTP_200_OK,
)
async def simulate(
    payload: SimulateRequest,
    planning_service: FleetPlanningService = Depends(get_planning_service),
    simulation_service: SimulationService = Depends(get_simulation_service),
) -> SimulateResponse:
    """Compare a baseline plan against the same plan under temporary overrides."""
    try:
        if payload.plan is not None:
            request = payload.plan.to_domain()
        else:
            request = planning_service.build_default_request()
        result = simulation_service.run_simulation(request, payload.overrides.to_domain())
        return SimulateResponse(**result)
    except SimulationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NetworkConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected simulation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run simulation",
        ) from exc
