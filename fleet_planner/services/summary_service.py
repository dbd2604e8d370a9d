"""Run-level statistics over a forecast and its schedule."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from fleet_planner.domain.constraints import InvalidConfiguration
from fleet_planner.domain.models import DemandForecast, FleetSchedule, RunStatistics


def demand_frame(demand: DemandForecast, hours: Sequence[int]) -> pd.DataFrame:
    """Lines as rows, hours as columns in caller order, missing cells as zero."""
    return pd.DataFrame(
        [[demand.get(line_id, hour) for hour in hours] for line_id in demand.line_ids],
        index=list(demand.line_ids),
        columns=list(hours),
        dtype="int64",
    )


def hourly_demand_totals(demand: DemandForecast, hours: Sequence[int]) -> pd.Series:
    return demand_frame(demand, hours).sum(axis=0)


def find_peak_hour(demand: DemandForecast, hours: Sequence[int]) -> int:
    """Hour with the highest total demand; the earliest listed hour wins ties."""
    if not hours:
        raise InvalidConfiguration("hours must not be empty to find a peak hour")
    totals = hourly_demand_totals(demand, hours)
    # idxmax returns the first label holding the maximum.
    return int(totals.idxmax())


def summarize_run(
    schedule: FleetSchedule,
    demand: DemandForecast,
    hours: Sequence[int],
) -> RunStatistics:
    return RunStatistics(
        total_trains_used=schedule.total_trains,
        peak_hour=find_peak_hour(demand, hours),
    )
