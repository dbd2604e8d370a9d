#!/usr/bin/env python3
"""Validate local fleet planner environment readiness."""

from __future__ import annotations

import importlib
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fleet_planner.repository.network_repository import NetworkRepository
from fleet_planner.services.planning_service import FleetPlanningService
from fleet_planner.utils.config import get_settings

SEPARATOR_LINE = "=" * 44

PACKAGE_SPECS = [
    ("fastapi", "fastapi"),
    ("uvicorn", "uvicorn"),
    ("pydantic", "pydantic"),
    ("numpy", "numpy"),
    ("pandas", "pandas"),
    ("httpx", "httpx"),
    ("pytest", "pytest"),
]


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    import_errors: list[str] = []
    for module_name, dist_name in PACKAGE_SPECS:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    settings = get_settings()
    repository = NetworkRepository(settings)

    # CHECK 3: Network catalog
    network = None
    try:
        network = repository.load_network()
        ok, line = _print_result(
            "Network catalog",
            True,
            f": {len(network.lines)} lines, {len(network.depots)} depots",
        )
    except Exception as exc:
        ok, line = _print_result("Network catalog", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4: Seeded planning run respects depot ceilings
    if network is not None:
        try:
            planning_service = FleetPlanningService(repository=repository, settings=settings)
            result = planning_service.run_plan(
                planning_service.build_default_request(random_seed=0)
            )
            for depot in network.depots:
                for hour in result.schedule.hours:
                    if result.schedule.get(depot.depot_id, hour) > depot.hourly_ceiling:
                        raise RuntimeError(
                            f"depot {depot.depot_id} exceeds its ceiling at hour {hour}"
                        )
            ok, line = _print_result(
                "Planning run",
                True,
                f": trains={result.stats.total_trains_used} peak_hour={result.stats.peak_hour}",
            )
        except Exception as exc:
            ok, line = _print_result("Planning run", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Fleet Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
