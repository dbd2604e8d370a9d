"""Greedy per-hour train allocation across depots."""

from __future__ import annotations

from typing import Optional, Sequence

from fleet_planner.domain.constraints import (
    validate_depots,
    validate_hours,
    validate_train_capacity,
)
from fleet_planner.domain.models import (
    AllocationResult,
    DemandForecast,
    Depot,
    FleetSchedule,
    HourlyAllocation,
)
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)


def order_depots_by_capacity(depots: Sequence[Depot]) -> tuple[Depot, ...]:
    """Largest capacity first; equal capacities keep the caller's order."""
    return tuple(sorted(depots, key=lambda depot: -depot.capacity))


def trains_needed_for(total_demand: int, train_capacity: int) -> int:
    validate_train_capacity(train_capacity)
    if total_demand <= 0:
        return 0
    return -(-total_demand // train_capacity)


def allocate_hour(
    *,
    hour: int,
    total_demand: int,
    ordered_depots: Sequence[Depot],
    train_capacity: int,
) -> tuple[dict[str, int], HourlyAllocation]:
    """Fill one hour's requirement from ``ordered_depots`` in sequence.

    Each depot gives at most ``min(max_induct_per_hour, available_trains)``.
    Whatever the depots cannot cover is left as shortfall.
    """
    trains_needed = trains_needed_for(total_demand, train_capacity)
    remaining = trains_needed
    assigned: dict[str, int] = {depot.depot_id: 0 for depot in ordered_depots}
    for depot in ordered_depots:
        if remaining <= 0:
            break
        granted = min(depot.hourly_ceiling, remaining)
        assigned[depot.depot_id] = granted
        remaining -= granted

    summary = HourlyAllocation(
        hour=hour,
        total_demand=total_demand,
        trains_needed=trains_needed,
        trains_assigned=trains_needed - remaining,
    )
    return assigned, summary


def allocate_fleet(
    demand: DemandForecast,
    depots: Sequence[Depot],
    train_capacity: int,
    hours: Optional[Sequence[int]] = None,
) -> AllocationResult:
    """Build the depot-by-hour schedule for ``demand``.

    Hours are independent: the depot order is derived from capacities alone
    and ``available_trains`` is never drawn down between hours. An empty hour
    list is rejected like any other malformed hour set.
    """
    validate_train_capacity(train_capacity)
    resolved_hours = tuple(hours) if hours is not None else demand.hours
    validate_hours(resolved_hours)
    validate_depots(depots)

    if not depots:
        logger.warning(
            "Allocation has no depots; every hour with demand is under-provisioned | hours=%s",
            list(resolved_hours),
        )

    ordered_depots = order_depots_by_capacity(depots)
    assignments: dict[str, dict[int, int]] = {depot.depot_id: {} for depot in depots}
    hourly: list[HourlyAllocation] = []

    for hour in resolved_hours:
        assigned, summary = allocate_hour(
            hour=hour,
            total_demand=demand.total_for_hour(hour),
            ordered_depots=ordered_depots,
            train_capacity=train_capacity,
        )
        for depot_id, trains in assigned.items():
            assignments[depot_id][hour] = trains
        hourly.append(summary)

        logger.debug(
            "Hour allocated | hour=%s | demand=%s | needed=%s | assigned=%s",
            hour,
            summary.total_demand,
            summary.trains_needed,
            summary.trains_assigned,
        )
        if summary.is_under_provisioned:
            logger.warning(
                "Hour under-provisioned | hour=%s | needed=%s | assigned=%s | shortfall=%s",
                hour,
                summary.trains_needed,
                summary.trains_assigned,
                summary.shortfall,
            )

    return AllocationResult(
        schedule=FleetSchedule(hours=resolved_hours, assignments=assignments),
        hourly=tuple(hourly),
    )


class FleetAllocationService:
    """Runs the greedy allocator and reports the outcome."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def allocate(
        self,
        *,
        demand: DemandForecast,
        depots: Sequence[Depot],
        train_capacity: int,
        hours: Optional[Sequence[int]] = None,
    ) -> AllocationResult:
        result = allocate_fleet(
            demand=demand,
            depots=depots,
            train_capacity=train_capacity,
            hours=hours,
        )
        logger.info(
            (
                "Fleet allocation completed | depots=%s | hours=%s | trains=%s | "
                "under_provisioned_hours=%s"
            ),
            len(depots),
            len(result.hourly),
            result.schedule.total_trains,
            result.under_provisioned_hours,
        )
        return result
