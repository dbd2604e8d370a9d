"""Repository layer responsible for the metro network catalog."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fleet_planner.domain.constraints import (
    InvalidConfiguration,
    validate_depots,
    validate_hours,
    validate_lines,
    validate_train_capacity,
)
from fleet_planner.domain.models import Depot, Line, build_depots, build_lines
from fleet_planner.utils.config import Settings, get_settings
from fleet_planner.utils.logger import get_logger


logger = get_logger(__name__)


DEFAULT_NETWORK: dict[str, Any] = {
    "lines": {
        "1": [101, 102, 103, 104, 105],
        "2": [201, 202, 203, 204],
        "3": [301, 302, 303, 304, 305, 306],
    },
    "hours": [7, 8, 9, 10, 11, 17, 18, 19, 20],
    "depots": {
        "101": {"capacity": 25, "available_trains": 18, "max_induct_per_hour": 5},
        "102": {"capacity": 20, "available_trains": 15, "max_induct_per_hour": 4},
        "103": {"capacity": 15, "available_trains": 12, "max_induct_per_hour": 3},
    },
}


class NetworkConfigError(Exception):
    """Raised when the network catalog cannot be read, parsed or validated."""


@dataclass(frozen=True)
class NetworkSnapshot:
    """Immutable view of lines, depots and default service hours."""

    lines: tuple[Line, ...]
    depots: tuple[Depot, ...]
    hours: tuple[int, ...]
    train_capacity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": {line.line_id: list(line.station_ids) for line in self.lines},
            "hours": list(self.hours),
            "depots": {depot.depot_id: depot.to_dict() for depot in self.depots},
            "train_capacity": self.train_capacity,
        }


class NetworkRepository:
    """Serves the network topology; no run output is ever stored here."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._snapshot: Optional[NetworkSnapshot] = None

    @property
    def source_path(self) -> Optional[Path]:
        return self._settings.network_config_path

    def _read_payload(self) -> dict[str, Any]:
        path = self.source_path
        if path is None:
            return DEFAULT_NETWORK
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except OSError as exc:
            raise NetworkConfigError(f"cannot read network file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise NetworkConfigError(f"network file {path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise NetworkConfigError(f"network file {path} must contain a JSON object")
        return payload

    def _build_snapshot(self, payload: dict[str, Any]) -> NetworkSnapshot:
        try:
            lines = build_lines(payload["lines"])
            depots = build_depots(payload["depots"])
            hours = tuple(int(hour) for hour in payload.get("hours", DEFAULT_NETWORK["hours"]))
            train_capacity = int(
                payload.get("train_capacity", self._settings.default_train_capacity)
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise NetworkConfigError(f"network definition is malformed: {exc}") from exc
        try:
            validate_lines(lines)
            validate_hours(hours)
            validate_depots(depots)
            validate_train_capacity(train_capacity)
        except InvalidConfiguration as exc:
            raise NetworkConfigError(f"network definition is invalid: {exc}") from exc
        return NetworkSnapshot(
            lines=lines,
            depots=depots,
            hours=hours,
            train_capacity=train_capacity,
        )

    def load_network(self) -> NetworkSnapshot:
        """Load the catalog once and reuse it for the process lifetime."""
        if self._snapshot is None:
            self._snapshot = self._build_snapshot(self._read_payload())
            logger.info(
                "Network catalog loaded | source=%s | lines=%s | depots=%s",
                self.source_path or "builtin",
                len(self._snapshot.lines),
                len(self._snapshot.depots),
            )
        return self._snapshot

    def list_depots(self) -> tuple[Depot, ...]:
        return self.load_network().depots

    def get_depot(self, depot_id: str) -> Optional[Depot]:
        for depot in self.list_depots():
            if depot.depot_id == depot_id:
                return depot
        return None
