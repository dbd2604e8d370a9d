"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc


def _env_optional_int(name: str) -> Optional[int]:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw_value!r}") from exc


def _env_path(name: str) -> Optional[Path]:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    return Path(raw_value).expanduser()


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    network_config_path: Optional[Path]
    forecast_base_passengers_per_station: int
    forecast_jitter_low: float
    forecast_jitter_high: float
    forecast_random_seed: Optional[int]
    default_train_capacity: int
    simulation_random_seed: int
    insight_high_utilization_threshold: float
    insight_low_utilization_threshold: float
    insight_variance_factor: float


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Metro Fleet Planner"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        network_config_path=_env_path("NETWORK_CONFIG_PATH"),
        forecast_base_passengers_per_station=_env_int(
            "FORECAST_BASE_PASSENGERS_PER_STATION", 300
        ),
        forecast_jitter_low=_env_float("FORECAST_JITTER_LOW", 0.8),
        forecast_jitter_high=_env_float("FORECAST_JITTER_HIGH", 1.2),
        forecast_random_seed=_env_optional_int("FORECAST_RANDOM_SEED"),
        default_train_capacity=_env_int("DEFAULT_TRAIN_CAPACITY", 1200),
        simulation_random_seed=_env_int("SIMULATION_RANDOM_SEED", 42),
        insight_high_utilization_threshold=_env_float(
            "INSIGHT_HIGH_UTILIZATION_THRESHOLD", 0.85
        ),
        insight_low_utilization_threshold=_env_float(
            "INSIGHT_LOW_UTILIZATION_THRESHOLD", 0.60
        ),
        insight_variance_factor=_env_float("INSIGHT_VARIANCE_FACTOR", 2.0),
    )
