from __future__ import annotations

import json
from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import create_app
from fleet_planner.controllers.planning_controller import router
from fleet_planner.domain.constraints import InvalidConfiguration
from fleet_planner.domain.models import Depot, Line, PlanContext, PlanRequest
from fleet_planner.repository.network_repository import NetworkRepository
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.services.simulation_service import SimulationService
from fleet_planner.utils.config import get_settings


class FixedJitter:
    def __init__(self, value: float = 1.0) -> None:
        self._value = value

    def uniform(self, low: float, high: float) -> float:
        return self._value


SCENARIO_PAYLOAD = {
    "lines": {"1": [101, 102, 103, 104, 105]},
    "hours": [8],
    "weekday": 1,
    "weather": 0,
    "event": 0,
    "depots": {"101": {"capacity": 25, "available_trains": 18, "max_induct_per_hour": 5}},
    "train_capacity": 1200,
}


def _build_test_settings(tmp_path=None, **overrides):
    base = get_settings()
    if tmp_path is not None:
        network_path = tmp_path / "network.json"
        network_path.write_text(
            json.dumps(
                {
                    "lines": {"A": [1, 2, 3], "B": [4, 5]},
                    "hours": [7, 8, 12],
                    "depots": {
                        "north": {"capacity": 12, "available_trains": 10, "max_induct_per_hour": 4},
                        "south": {"capacity": 8, "available_trains": 6, "max_induct_per_hour": 2},
                    },
                    "train_capacity": 1000,
                }
            ),
            encoding="utf-8",
        )
        overrides.setdefault("network_config_path", network_path)
    return replace(base, **overrides)


def _scenario_request(**overrides) -> PlanRequest:
    defaults = {
        "lines": (Line(line_id="1", station_ids=(101, 102, 103, 104, 105)),),
        "hours": (8,),
        "context": PlanContext(weekday=1, weather=0, event=0),
        "depots": (
            Depot(depot_id="101", capacity=25, available_trains=18, max_induct_per_hour=5),
        ),
        "train_capacity": 1200,
    }
    defaults.update(overrides)
    return PlanRequest(**defaults)


def _build_client(settings=None) -> TestClient:
    settings = settings or get_settings()
    repository = NetworkRepository(settings)
    planning_service = FleetPlanningService(repository=repository, settings=settings)

    app = FastAPI()
    app.include_router(router)
    app.state.repository = repository
    app.state.planning_service = planning_service
    app.state.simulation_service = SimulationService(
        planning_service=planning_service,
        settings=settings,
    )
    return TestClient(app)


def test_planning_service_runs_single_line_scenario() -> None:
    service = FleetPlanningService(settings=_build_test_settings())

    result = service.run_plan(_scenario_request(), random_source=FixedJitter(1.0))

    assert result.predicted_demand.to_dict() == {"1": {"8": 3750}}
    assert result.schedule.to_dict() == {"101": {"8": 4}}
    assert result.stats.total_trains_used == 4
    assert result.stats.peak_hour == 8
    assert result.allocation.under_provisioned_hours == []


def test_planning_service_scenario_stays_in_jitter_band_with_real_noise() -> None:
    service = FleetPlanningService(settings=_build_test_settings())

    for seed in range(20):
        result = service.run_plan(_scenario_request(random_seed=seed))
        needed = result.allocation.hourly[0].trains_needed
        assert 3 <= needed <= 5
        assert result.schedule.get("101", 8) == min(5, needed)


def test_planning_service_aborts_on_invalid_train_capacity() -> None:
    service = FleetPlanningService(settings=_build_test_settings())
    jitter = FixedJitter()

    with pytest.raises(InvalidConfiguration):
        service.run_plan(_scenario_request(train_capacity=0), random_source=jitter)


def test_planning_service_reports_under_provisioning_without_error() -> None:
    service = FleetPlanningService(settings=_build_test_settings())
    request = _scenario_request(
        lines=(Line(line_id="1", station_ids=tuple(range(16))),),
        depots=(Depot(depot_id="only", capacity=25, available_trains=18, max_induct_per_hour=3),),
    )

    # 16 stations * 300 * 2.5 = 12000 passengers -> 10 trains needed.
    result = service.run_plan(request, random_source=FixedJitter(1.0))

    assert result.allocation.hourly[0].trains_needed == 10
    assert result.schedule.get("only", 8) == 3
    assert result.insights.under_provisioned_hours == [8]
    assert "under_provisioned" in result.insights.flags


def test_default_request_uses_network_catalog(tmp_path) -> None:
    service = FleetPlanningService(settings=_build_test_settings(tmp_path))

    request = service.build_default_request(weekday=6, weather=1)

    assert [line.line_id for line in request.lines] == ["A", "B"]
    assert request.hours == (7, 8, 12)
    assert request.train_capacity == 1000
    assert request.context == PlanContext(weekday=6, weather=1, event=0)


def test_plan_endpoint_returns_demand_schedule_and_stats() -> None:
    client = _build_client()

    response = client.post("/plan", json={**SCENARIO_PAYLOAD, "random_seed": 7})

    assert response.status_code == 200
    body = response.json()
    assert set(body["predicted_demand"]) == {"1"}
    assert set(body["predicted_demand"]["1"]) == {"8"}
    assert 3000 <= body["predicted_demand"]["1"]["8"] <= 4500
    assert set(body["schedule"]) == {"101"}
    assert 3 <= body["schedule"]["101"]["8"] <= 5
    assert body["stats"]["total_trains_used"] == body["schedule"]["101"]["8"]
    assert body["stats"]["peak_hour"] == 8
    assert body["hourly_allocation"][0]["hour"] == 8
    assert "fleet_utilization" in body["insights"]


def test_plan_endpoint_is_repeatable_with_seed() -> None:
    client = _build_client()
    payload = {
        **SCENARIO_PAYLOAD,
        "lines": {"1": [1, 2, 3, 4, 5], "2": [6, 7, 8, 9], "3": [10, 11, 12, 13, 14, 15]},
        "hours": [7, 8, 9, 10, 11, 17, 18, 19, 20],
        "random_seed": 31,
    }

    first = client.post("/plan", json=payload).json()
    second = client.post("/plan", json=payload).json()

    first.pop("run_id")
    second.pop("run_id")
    assert first == second


@pytest.mark.parametrize(
    "overrides",
    [
        {"train_capacity": 0},
        {"hours": []},
        {"hours": [8, 8]},
        {"hours": [24]},
        {"weekday": 7},
        {"weather": 2},
        {"lines": {}},
        {"depots": {"101": {"capacity": -1, "available_trains": 1, "max_induct_per_hour": 1}}},
    ],
)
def test_plan_endpoint_rejects_invalid_payloads(overrides) -> None:
    client = _build_client()

    response = client.post("/plan", json={**SCENARIO_PAYLOAD, **overrides})

    assert response.status_code == 422


def test_plan_endpoint_accepts_empty_depots() -> None:
    client = _build_client()

    response = client.post("/plan", json={**SCENARIO_PAYLOAD, "depots": {}, "random_seed": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["schedule"] == {}
    assert body["stats"]["total_trains_used"] == 0
    assert body["hourly_allocation"][0]["under_provisioned"] is True


def test_network_endpoint_serves_builtin_catalog() -> None:
    client = _build_client()

    response = client.get("/network")

    assert response.status_code == 200
    body = response.json()
    assert set(body["lines"]) == {"1", "2", "3"}
    assert body["hours"] == [7, 8, 9, 10, 11, 17, 18, 19, 20]
    assert body["depots"]["101"] == {
        "capacity": 25,
        "available_trains": 18,
        "max_induct_per_hour": 5,
    }
    assert body["train_capacity"] == 1200


def test_default_plan_endpoint_plans_every_catalog_hour() -> None:
    client = _build_client()

    response = client.post("/plan/default", json={"weekday": 0, "random_seed": 5})

    assert response.status_code == 200
    body = response.json()
    assert list(body["predicted_demand"]["1"]) == ["7", "8", "9", "10", "11", "17", "18", "19", "20"]
    assert set(body["schedule"]) == {"101", "102", "103"}
    for depot_id, ceiling in (("101", 5), ("102", 4), ("103", 3)):
        assert all(0 <= trains <= ceiling for trains in body["schedule"][depot_id].values())


def test_default_plan_endpoint_reports_broken_network_file(tmp_path) -> None:
    broken_path = tmp_path / "broken.json"
    broken_path.write_text("{not json", encoding="utf-8")
    client = _build_client(_build_test_settings(network_config_path=broken_path))

    response = client.post("/plan/default", json={})

    assert response.status_code == 503


def test_missing_planning_service_returns_503() -> None:
    app = FastAPI()
    app.include_router(router)
    client = TestClient(app)

    response = client.post("/plan", json=SCENARIO_PAYLOAD)

    assert response.status_code == 503


def test_create_app_wires_services_and_loads_catalog(tmp_path) -> None:
    app = create_app(_build_test_settings(tmp_path))

    with TestClient(app) as client:
        health = client.get("/health")
        network = client.get("/network")

    assert health.json() == {"status": "ok"}
    assert set(network.json()["depots"]) == {"north", "south"}
