"""What-if simulation: baseline plan vs the same plan under temporary overrides.

Overrides are applied to a copy of the request only. Both runs draw forecast
jitter from identically seeded sources, so every difference in the output
comes from the overrides and not from noise.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional
from uuid import uuid4

from fleet_planner.domain.constraints import InvalidConfiguration, validate_plan_request
from fleet_planner.domain.models import PlanRequest, PlanResult
from fleet_planner.services.forecast_service import build_random_source
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)


class SimulationValidationError(Exception):
    """Raised when temporary simulation overrides are invalid."""


@dataclass(frozen=True)
class TemporaryOverrides:
    weekday: Optional[int] = None
    weather: Optional[int] = None
    event: Optional[int] = None
    train_capacity: Optional[int] = None
    available_trains: dict[str, int] | None = None
    max_induct_per_hour: dict[str, int] | None = None


@dataclass(frozen=True)
class SimulationMetrics:
    total_trains_used: int
    trains_needed: int
    total_shortfall: int
    under_provisioned_hours: int
    fleet_utilization: float
    peak_hour: int

    def to_api_dict(self) -> dict[str, float | int]:
        return {
            "total_trains_used": self.total_trains_used,
            "trains_needed": self.trains_needed,
            "total_shortfall": self.total_shortfall,
            "under_provisioned_hours": self.under_provisioned_hours,
            "fleet_utilization": self.fleet_utilization,
            "peak_hour": self.peak_hour,
        }


class SimulationService:
    """Runs deterministic baseline vs what-if comparisons in memory."""

    def __init__(
        self,
        planning_service: Optional[FleetPlanningService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._planning_service = planning_service or FleetPlanningService(settings=self._settings)

    def _validate_overrides(
        self,
        request: PlanRequest,
        overrides: TemporaryOverrides,
    ) -> None:
        depot_ids = {depot.depot_id for depot in request.depots}
        for field_name in ("available_trains", "max_induct_per_hour"):
            values = getattr(overrides, field_name) or {}
            for depot_id, value in values.items():
                if depot_id not in depot_ids:
                    raise SimulationValidationError(
                        f"{field_name} override references unknown depot_id={depot_id}"
                    )
                if value < 0:
                    raise SimulationValidationError(
                        f"{field_name} override for depot_id={depot_id} must be >= 0"
                    )
        if overrides.train_capacity is not None and overrides.train_capacity <= 0:
            raise SimulationValidationError("train_capacity override must be > 0")

    def apply_overrides(
        self,
        request: PlanRequest,
        overrides: TemporaryOverrides,
    ) -> PlanRequest:
        """Return a new request with ``overrides`` applied; ``request`` is untouched."""
        self._validate_overrides(request, overrides)

        context = replace(
            request.context,
            weekday=overrides.weekday if overrides.weekday is not None else request.context.weekday,
            weather=overrides.weather if overrides.weather is not None else request.context.weather,
            event=overrides.event if overrides.event is not None else request.context.event,
        )
        available_trains = overrides.available_trains or {}
        max_induct_per_hour = overrides.max_induct_per_hour or {}
        depots = tuple(
            replace(
                depot,
                available_trains=available_trains.get(depot.depot_id, depot.available_trains),
                max_induct_per_hour=max_induct_per_hour.get(
                    depot.depot_id, depot.max_induct_per_hour
                ),
            )
            for depot in request.depots
        )
        simulated = replace(
            request,
            context=context,
            depots=depots,
            train_capacity=(
                overrides.train_capacity
                if overrides.train_capacity is not None
                else request.train_capacity
            ),
        )
        try:
            validate_plan_request(simulated)
        except InvalidConfiguration as exc:
            raise SimulationValidationError(str(exc)) from exc
        return simulated

    def compute_metrics(self, result: PlanResult) -> SimulationMetrics:
        hourly = result.allocation.hourly
        return SimulationMetrics(
            total_trains_used=result.stats.total_trains_used,
            trains_needed=sum(item.trains_needed for item in hourly),
            total_shortfall=result.allocation.total_shortfall,
            under_provisioned_hours=len(result.allocation.under_provisioned_hours),
            fleet_utilization=result.insights.fleet_utilization,
            peak_hour=result.stats.peak_hour,
        )

    def compare_results(
        self,
        baseline: SimulationMetrics,
        simulation: SimulationMetrics,
    ) -> dict[str, float | int | bool]:
        return {
            "trains_used_change": simulation.total_trains_used - baseline.total_trains_used,
            "trains_needed_change": simulation.trains_needed - baseline.trains_needed,
            "shortfall_change": simulation.total_shortfall - baseline.total_shortfall,
            "under_provisioned_hours_change": (
                simulation.under_provisioned_hours - baseline.under_provisioned_hours
            ),
            "utilization_change": simulation.fleet_utilization - baseline.fleet_utilization,
            "peak_hour_changed": simulation.peak_hour != baseline.peak_hour,
        }

    def run_simulation(
        self,
        request: PlanRequest,
        overrides: TemporaryOverrides,
    ) -> dict[str, dict[str, float | int | bool]]:
        run_id = str(uuid4())
        seed = (
            request.random_seed
            if request.random_seed is not None
            else self._settings.simulation_random_seed
        )
        logger.info(
            (
                "Simulation run started | run_id=%s | seed=%s | weekday=%s | weather=%s | "
                "event=%s | train_capacity=%s | available_trains=%s | max_induct_per_hour=%s"
            ),
            run_id,
            seed,
            overrides.weekday,
            overrides.weather,
            overrides.event,
            overrides.train_capacity,
            overrides.available_trains or {},
            overrides.max_induct_per_hour or {},
        )

        try:
            validate_plan_request(request)
        except InvalidConfiguration as exc:
            raise SimulationValidationError(str(exc)) from exc
        simulated_request = self.apply_overrides(request, overrides)

        baseline_result = self._planning_service.run_plan(
            request,
            random_source=build_random_source(seed),
        )
        simulation_result = self._planning_service.run_plan(
            simulated_request,
            random_source=build_random_source(seed),
        )
        baseline_metrics = self.compute_metrics(baseline_result)
        simulation_metrics = self.compute_metrics(simulation_result)
        delta = self.compare_results(
            baseline=baseline_metrics,
            simulation=simulation_metrics,
        )

        logger.info(
            (
                "Simulation run completed | run_id=%s | baseline_trains=%s | "
                "simulation_trains=%s | shortfall_delta=%s"
            ),
            run_id,
            baseline_metrics.total_trains_used,
            simulation_metrics.total_trains_used,
            delta["shortfall_change"],
        )
        return {
            "baseline": baseline_metrics.to_api_dict(),
            "simulation": simulation_metrics.to_api_dict(),
            "delta": delta,
        }
