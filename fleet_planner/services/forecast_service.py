"""Rule-based hourly passenger demand forecasting."""

from __future__ import annotations

import math
from typing import Optional, Protocol, Sequence

import numpy as np

from fleet_planner.domain.constraints import (
    InvalidConfiguration,
    validate_context,
    validate_hours,
    validate_lines,
)
from fleet_planner.domain.models import DemandForecast, Line, PlanContext
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)


MORNING_RUSH_HOURS = range(7, 10)
EVENING_RUSH_HOURS = range(17, 20)
LUNCH_RUSH_HOURS = range(12, 15)

MORNING_RUSH_MULTIPLIER = 2.5
EVENING_RUSH_MULTIPLIER = 2.2
LUNCH_RUSH_MULTIPLIER = 1.3
WEEKEND_MULTIPLIER = 0.6
SEVERE_WEATHER_MULTIPLIER = 1.4
SPECIAL_EVENT_MULTIPLIER = 1.6


class RandomSource(Protocol):
    """Anything that can draw a uniform float; ``numpy.random.Generator`` qualifies."""

    def uniform(self, low: float, high: float) -> float:
        ...


def build_random_source(seed: Optional[int] = None) -> RandomSource:
    """Return a numpy generator; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def rush_hour_multiplier(hour: int) -> float:
    """Return the single rush multiplier for ``hour``; windows never stack."""
    if hour in MORNING_RUSH_HOURS:
        return MORNING_RUSH_MULTIPLIER
    if hour in EVENING_RUSH_HOURS:
        return EVENING_RUSH_MULTIPLIER
    if hour in LUNCH_RUSH_HOURS:
        return LUNCH_RUSH_MULTIPLIER
    return 1.0


def context_multiplier(context: PlanContext) -> float:
    multiplier = 1.0
    if context.is_weekend:
        multiplier *= WEEKEND_MULTIPLIER
    if context.weather == 1:
        multiplier *= SEVERE_WEATHER_MULTIPLIER
    if context.event == 1:
        multiplier *= SPECIAL_EVENT_MULTIPLIER
    return multiplier


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def expected_demand(
    station_count: int,
    hour: int,
    context: PlanContext,
    base_passengers_per_station: int = 300,
) -> float:
    """Demand before jitter and rounding."""
    base = station_count * base_passengers_per_station
    return base * rush_hour_multiplier(hour) * context_multiplier(context)


def forecast_demand(
    lines: Sequence[Line],
    hours: Sequence[int],
    weekday: int,
    weather: int,
    event: int,
    *,
    random_source: Optional[RandomSource] = None,
    base_passengers_per_station: int = 300,
    jitter_range: tuple[float, float] = (0.8, 1.2),
) -> DemandForecast:
    """Predict passengers for every (line, hour) pair.

    Jitter is drawn once per pair, lines outer and hours inner, in the order
    the caller supplied them. Pass a seeded ``random_source`` for repeatable
    output.
    """
    context = PlanContext(weekday=weekday, weather=weather, event=event)
    validate_lines(lines)
    validate_hours(hours)
    validate_context(context)

    jitter_low, jitter_high = jitter_range
    if not 0.0 <= jitter_low <= jitter_high:
        raise InvalidConfiguration("jitter_range must satisfy 0 <= low <= high")

    source = random_source if random_source is not None else build_random_source()
    values: dict[str, dict[int, int]] = {}
    for line in lines:
        by_hour: dict[int, int] = {}
        for hour in hours:
            estimate = expected_demand(
                station_count=line.station_count,
                hour=hour,
                context=context,
                base_passengers_per_station=base_passengers_per_station,
            )
            jitter = float(source.uniform(jitter_low, jitter_high))
            by_hour[hour] = max(0, _round_half_up(estimate * jitter))
        values[line.line_id] = by_hour

    return DemandForecast(hours=tuple(hours), values=values)


class DemandForecastService:
    """Applies configured forecast parameters and logs each forecast."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def random_source_for(self, seed: Optional[int] = None) -> RandomSource:
        resolved_seed = seed if seed is not None else self._settings.forecast_random_seed
        return build_random_source(resolved_seed)

    def forecast(
        self,
        *,
        lines: Sequence[Line],
        hours: Sequence[int],
        context: PlanContext,
        random_source: Optional[RandomSource] = None,
    ) -> DemandForecast:
        source = random_source if random_source is not None else self.random_source_for()
        result = forecast_demand(
            lines,
            hours,
            context.weekday,
            context.weather,
            context.event,
            random_source=source,
            base_passengers_per_station=self._settings.forecast_base_passengers_per_station,
            jitter_range=(
                self._settings.forecast_jitter_low,
                self._settings.forecast_jitter_high,
            ),
        )
        logger.info(
            (
                "Demand forecast completed | lines=%s | hours=%s | weekday=%s | "
                "weather=%s | event=%s"
            ),
            len(result.line_ids),
            len(result.hours),
            context.weekday,
            context.weather,
            context.event,
        )
        return result
