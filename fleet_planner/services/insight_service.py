"""Operator-facing fleet insights derived from a finished planning run."""

from __future__ import annotations

from typing import Optional, Sequence

from fleet_planner.domain.models import (
    AllocationResult,
    DemandForecast,
    Depot,
    FleetInsights,
    HourEfficiency,
    PlanContext,
)
from fleet_planner.services.summary_service import demand_frame
from fleet_planner.utils.config import Settings, get_settings


class FleetInsightService:
    """Turns demand and allocation numbers into utilization and advisory flags."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def compute_insights(
        self,
        *,
        demand: DemandForecast,
        allocation: AllocationResult,
        depots: Sequence[Depot],
        train_capacity: int,
        context: PlanContext,
    ) -> FleetInsights:
        hours = allocation.schedule.hours
        frame = demand_frame(demand, hours)
        total_trains = allocation.schedule.total_trains
        total_capacity = sum(depot.capacity for depot in depots)

        fleet_utilization = (
            float(total_trains / total_capacity) if total_capacity else 0.0
        )
        total_demand = int(frame.to_numpy().sum())
        capacity_match = (
            float(total_demand / (total_trains * train_capacity))
            if total_trains
            else 0.0
        )

        if frame.size:
            peak_line_demand = int(frame.to_numpy().max())
            average_line_demand = float(frame.to_numpy().mean())
        else:
            peak_line_demand = 0
            average_line_demand = 0.0
        high_demand_variance = (
            average_line_demand > 0.0
            and peak_line_demand > average_line_demand * self._settings.insight_variance_factor
        )

        hourly_efficiency: list[HourEfficiency] = []
        for item in allocation.hourly:
            trains = allocation.schedule.trains_for_hour(item.hour)
            efficiency = (
                float(item.total_demand / (trains * train_capacity)) if trains else 0.0
            )
            hourly_efficiency.append(
                HourEfficiency(
                    hour=item.hour,
                    demand=item.total_demand,
                    trains=trains,
                    efficiency=efficiency,
                )
            )

        flags: list[str] = []
        if fleet_utilization > self._settings.insight_high_utilization_threshold:
            flags.append("high_utilization")
        elif fleet_utilization < self._settings.insight_low_utilization_threshold:
            flags.append("low_utilization")
        if high_demand_variance:
            flags.append("high_demand_variance")
        if context.weather == 1 or context.event == 1:
            flags.append("external_factor")
        if allocation.under_provisioned_hours:
            flags.append("under_provisioned")

        return FleetInsights(
            fleet_utilization=fleet_utilization,
            capacity_match=capacity_match,
            peak_line_demand=peak_line_demand,
            average_line_demand=average_line_demand,
            high_demand_variance=high_demand_variance,
            under_provisioned_hours=allocation.under_provisioned_hours,
            hourly_efficiency=hourly_efficiency,
            flags=flags,
        )
