"""Planning workflow: forecast -> allocate -> summarize for one request."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import uuid4

from fleet_planner.domain.constraints import validate_plan_request
from fleet_planner.domain.models import PlanContext, PlanRequest, PlanResult
from fleet_planner.repository.network_repository import NetworkRepository
from fleet_planner.services.allocation_service import FleetAllocationService
from fleet_planner.services.forecast_service import DemandForecastService, RandomSource
from fleet_planner.services.insight_service import FleetInsightService
from fleet_planner.services.summary_service import summarize_run
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)


class FleetPlanningService:
    """Coordinates one static planning run over a fixed hour range.

    The request is validated in full before forecasting starts, so an
    ``InvalidConfiguration`` never leaves a partial result behind.
    """

    def __init__(
        self,
        repository: Optional[NetworkRepository] = None,
        forecast_service: Optional[DemandForecastService] = None,
        allocation_service: Optional[FleetAllocationService] = None,
        insight_service: Optional[FleetInsightService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or NetworkRepository(self._settings)
        self._forecast_service = forecast_service or DemandForecastService(self._settings)
        self._allocation_service = allocation_service or FleetAllocationService(self._settings)
        self._insight_service = insight_service or FleetInsightService(self._settings)

    def build_default_request(
        self,
        *,
        weekday: int = 1,
        weather: int = 0,
        event: int = 0,
        hours: Optional[Sequence[int]] = None,
        train_capacity: Optional[int] = None,
        random_seed: Optional[int] = None,
    ) -> PlanRequest:
        network = self._repository.load_network()
        return PlanRequest(
            lines=network.lines,
            hours=tuple(hours) if hours is not None else network.hours,
            context=PlanContext(weekday=weekday, weather=weather, event=event),
            depots=network.depots,
            train_capacity=(
                train_capacity if train_capacity is not None else network.train_capacity
            ),
            random_seed=random_seed,
        )

    def run_plan(
        self,
        request: PlanRequest,
        *,
        random_source: Optional[RandomSource] = None,
    ) -> PlanResult:
        run_id = str(uuid4())
        validate_plan_request(request)
        logger.info(
            (
                "Planning run started | run_id=%s | lines=%s | depots=%s | hours=%s | "
                "train_capacity=%s | seed=%s"
            ),
            run_id,
            len(request.lines),
            len(request.depots),
            list(request.hours),
            request.train_capacity,
            request.random_seed,
        )

        source = (
            random_source
            if random_source is not None
            else self._forecast_service.random_source_for(request.random_seed)
        )
        demand = self._forecast_service.forecast(
            lines=request.lines,
            hours=request.hours,
            context=request.context,
            random_source=source,
        )
        allocation = self._allocation_service.allocate(
            demand=demand,
            depots=request.depots,
            train_capacity=request.train_capacity,
            hours=request.hours,
        )
        stats = summarize_run(allocation.schedule, demand, request.hours)
        insights = self._insight_service.compute_insights(
            demand=demand,
            allocation=allocation,
            depots=request.depots,
            train_capacity=request.train_capacity,
            context=request.context,
        )

        logger.info(
            (
                "Planning run completed | run_id=%s | total_trains_used=%s | peak_hour=%s | "
                "shortfall=%s | flags=%s"
            ),
            run_id,
            stats.total_trains_used,
            stats.peak_hour,
            allocation.total_shortfall,
            insights.flags,
        )
        return PlanResult(
            run_id=run_id,
            predicted_demand=demand,
            allocation=allocation,
            stats=stats,
            insights=insights,
        )
