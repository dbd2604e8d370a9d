"""Domain models for demand forecasting and fleet allocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class Line:
    line_id: str
    station_ids: tuple[int, ...]

    @property
    def station_count(self) -> int:
        return len(self.station_ids)


@dataclass(frozen=True)
class Depot:
    depot_id: str
    capacity: int
    available_trains: int
    max_induct_per_hour: int

    @property
    def hourly_ceiling(self) -> int:
        """Most trains this depot can induct in any single hour."""
        return min(self.max_induct_per_hour, self.available_trains)

    def to_dict(self) -> dict[str, int]:
        return {
            "capacity": self.capacity,
            "available_trains": self.available_trains,
            "max_induct_per_hour": self.max_induct_per_hour,
        }


def build_lines(lines: Mapping[str, list[int] | tuple[int, ...]]) -> tuple[Line, ...]:
    return tuple(
        Line(line_id=str(line_id), station_ids=tuple(int(station) for station in stations))
        for line_id, stations in lines.items()
    )


def build_depots(depots: Mapping[str, Mapping[str, int]]) -> tuple[Depot, ...]:
    return tuple(
        Depot(
            depot_id=str(depot_id),
            capacity=int(record["capacity"]),
            available_trains=int(record["available_trains"]),
            max_induct_per_hour=int(record["max_induct_per_hour"]),
        )
        for depot_id, record in depots.items()
    )


@dataclass(frozen=True)
class PlanContext:
    weekday: int
    weather: int
    event: int

    @property
    def is_weekend(self) -> bool:
        return self.weekday in (0, 6)


@dataclass(frozen=True)
class PlanRequest:
    lines: tuple[Line, ...]
    hours: tuple[int, ...]
    context: PlanContext
    depots: tuple[Depot, ...]
    train_capacity: int
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class DemandForecast:
    """Predicted passengers keyed by line id, then by hour.

    ``hours`` keeps the caller's hour order; ``values`` keeps the caller's
    line order. Lookups of an unknown line or hour read as zero demand.
    """

    hours: tuple[int, ...]
    values: dict[str, dict[int, int]]

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, Mapping[int, int]],
        hours: tuple[int, ...],
    ) -> "DemandForecast":
        return cls(
            hours=tuple(hours),
            values={
                str(line_id): {int(hour): int(value) for hour, value in by_hour.items()}
                for line_id, by_hour in values.items()
            },
        )

    @property
    def line_ids(self) -> tuple[str, ...]:
        return tuple(self.values)

    def get(self, line_id: str, hour: int) -> int:
        return self.values.get(line_id, {}).get(hour, 0)

    def total_for_hour(self, hour: int) -> int:
        return sum(by_hour.get(hour, 0) for by_hour in self.values.values())

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            line_id: {str(hour): by_hour.get(hour, 0) for hour in self.hours}
            for line_id, by_hour in self.values.items()
        }


@dataclass(frozen=True)
class FleetSchedule:
    """Trains inducted keyed by depot id, then by hour."""

    hours: tuple[int, ...]
    assignments: dict[str, dict[int, int]]

    @property
    def depot_ids(self) -> tuple[str, ...]:
        return tuple(self.assignments)

    def get(self, depot_id: str, hour: int) -> int:
        return self.assignments.get(depot_id, {}).get(hour, 0)

    def trains_for_hour(self, hour: int) -> int:
        return sum(by_hour.get(hour, 0) for by_hour in self.assignments.values())

    @property
    def total_trains(self) -> int:
        return sum(sum(by_hour.values()) for by_hour in self.assignments.values())

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            depot_id: {str(hour): by_hour.get(hour, 0) for hour in self.hours}
            for depot_id, by_hour in self.assignments.items()
        }


@dataclass(frozen=True)
class HourlyAllocation:
    hour: int
    total_demand: int
    trains_needed: int
    trains_assigned: int

    @property
    def shortfall(self) -> int:
        return max(0, self.trains_needed - self.trains_assigned)

    @property
    def is_under_provisioned(self) -> bool:
        return self.shortfall > 0

    def to_dict(self) -> dict[str, int | bool]:
        return {
            "hour": self.hour,
            "total_demand": self.total_demand,
            "trains_needed": self.trains_needed,
            "trains_assigned": self.trains_assigned,
            "shortfall": self.shortfall,
            "under_provisioned": self.is_under_provisioned,
        }


@dataclass(frozen=True)
class AllocationResult:
    schedule: FleetSchedule
    hourly: tuple[HourlyAllocation, ...]

    @property
    def under_provisioned_hours(self) -> list[int]:
        return [item.hour for item in self.hourly if item.is_under_provisioned]

    @property
    def total_shortfall(self) -> int:
        return sum(item.shortfall for item in self.hourly)


@dataclass(frozen=True)
class RunStatistics:
    total_trains_used: int
    peak_hour: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total_trains_used": self.total_trains_used,
            "peak_hour": self.peak_hour,
        }


@dataclass(frozen=True)
class HourEfficiency:
    hour: int
    demand: int
    trains: int
    efficiency: float


@dataclass(frozen=True)
class FleetInsights:
    fleet_utilization: float
    capacity_match: float
    peak_line_demand: int
    average_line_demand: float
    high_demand_variance: bool
    under_provisioned_hours: list[int]
    hourly_efficiency: list[HourEfficiency]
    flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "fleet_utilization": self.fleet_utilization,
            "capacity_match": self.capacity_match,
            "peak_line_demand": self.peak_line_demand,
            "average_line_demand": self.average_line_demand,
            "high_demand_variance": self.high_demand_variance,
            "under_provisioned_hours": list(self.under_provisioned_hours),
            "hourly_efficiency": [
                {
                    "hour": item.hour,
                    "demand": item.demand,
                    "trains": item.trains,
                    "efficiency": item.efficiency,
                }
                for item in self.hourly_efficiency
            ],
            "flags": list(self.flags),
        }


@dataclass(frozen=True)
class PlanResult:
    run_id: str
    predicted_demand: DemandForecast
    allocation: AllocationResult
    stats: RunStatistics
    insights: FleetInsights

    @property
    def schedule(self) -> FleetSchedule:
        return self.allocation.schedule

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "predicted_demand": self.predicted_demand.to_dict(),
            "schedule": self.schedule.to_dict(),
            "stats": self.stats.to_dict(),
            "hourly_allocation": [item.to_dict() for item in self.allocation.hourly],
            "insights": self.insights.to_dict(),
        }
