"""Domain-level validation rules for planning inputs."""

from __future__ import annotations

from typing import Sequence

from fleet_planner.domain.models import Depot, Line, PlanContext, PlanRequest


class InvalidConfiguration(ValueError):
    """Raised when planning inputs are structurally invalid."""


def validate_train_capacity(train_capacity: int) -> None:
    if train_capacity <= 0:
        raise InvalidConfiguration("train_capacity must be > 0")


def validate_hours(hours: Sequence[int]) -> None:
    if not hours:
        raise InvalidConfiguration("hours must not be empty")
    for hour in hours:
        if not 0 <= hour <= 23:
            raise InvalidConfiguration(f"hour {hour} is outside 0-23")
    if len(set(hours)) != len(hours):
        raise InvalidConfiguration("hours must be distinct")


def validate_context(context: PlanContext) -> None:
    if not 0 <= context.weekday <= 6:
        raise InvalidConfiguration("weekday must be between 0 and 6")
    if context.weather not in (0, 1):
        raise InvalidConfiguration("weather must be 0 or 1")
    if context.event not in (0, 1):
        raise InvalidConfiguration("event must be 0 or 1")


def validate_lines(lines: Sequence[Line]) -> None:
    if not lines:
        raise InvalidConfiguration("lines must not be empty")
    line_ids = [line.line_id for line in lines]
    if len(set(line_ids)) != len(line_ids):
        raise InvalidConfiguration("line ids must be unique")


def validate_depot(depot: Depot) -> None:
    if depot.capacity < 0:
        raise InvalidConfiguration(f"depot {depot.depot_id} capacity must be >= 0")
    if depot.available_trains < 0:
        raise InvalidConfiguration(
            f"depot {depot.depot_id} available_trains must be >= 0"
        )
    if depot.max_induct_per_hour < 0:
        raise InvalidConfiguration(
            f"depot {depot.depot_id} max_induct_per_hour must be >= 0"
        )


def validate_depots(depots: Sequence[Depot]) -> None:
    depot_ids = [depot.depot_id for depot in depots]
    if len(set(depot_ids)) != len(depot_ids):
        raise InvalidConfiguration("depot ids must be unique")
    for depot in depots:
        validate_depot(depot)


def validate_plan_request(request: PlanRequest) -> None:
    validate_lines(request.lines)
    validate_hours(request.hours)
    validate_context(request.context)
    validate_depots(request.depots)
    validate_train_capacity(request.train_capacity)
