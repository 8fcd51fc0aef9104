from __future__ import annotations

import math
from typing import Iterable

import pandas as pd

from project_schema import METRIC_FIELDS, STATUS_COMPLETED, coerce_number

__all__ = ["compute_team_stats", "progress_pct", "dashboard_totals", "team_stats_frame"]

STATUS_COUNTERS = {
    "Not Started": "notStarted",
    "In Progress": "inProgress",
    STATUS_COMPLETED: "completed",
}


def _empty_stats() -> dict:
    stats = {"totalProjects": 0, "notStarted": 0, "inProgress": 0, "completed": 0}
    for key in METRIC_FIELDS:
        stats[key] = 0.0
    return stats


def compute_team_stats(projects: Iterable[dict]) -> dict[str, dict]:
    """Fold projects into per-team counters and completed-only metric sums.

    Teams and statuses are compared as exact strings; teams keep first-seen order.
    """
    stats: dict[str, dict] = {}
    for project in projects:
        team = project.get("team")
        bucket = stats.get(team)
        if bucket is None:
            bucket = stats[team] = _empty_stats()
        bucket["totalProjects"] += 1
        status = project.get("status")
        counter = STATUS_COUNTERS.get(status)
        if counter:
            bucket[counter] += 1
        if status == STATUS_COMPLETED:
            for key in METRIC_FIELDS:
                bucket[key] += coerce_number(project.get(key))
    return stats


def progress_pct(stats: dict) -> int:
    total = stats.get("totalProjects") or 0
    if total <= 0:
        return 0
    return int(math.floor(stats.get("completed", 0) / total * 100 + 0.5))


def dashboard_totals(projects: Iterable[dict]) -> dict:
    totals = _empty_stats()
    totals["onHold"] = 0
    for project in projects:
        totals["totalProjects"] += 1
        status = project.get("status")
        counter = STATUS_COUNTERS.get(status)
        if counter:
            totals[counter] += 1
        elif status == "On Hold":
            totals["onHold"] += 1
        if status == STATUS_COMPLETED:
            for key in METRIC_FIELDS:
                totals[key] += coerce_number(project.get(key))
    totals["progress"] = progress_pct(totals)
    return totals


def team_stats_frame(stats: dict[str, dict]) -> pd.DataFrame:
    columns = ["team", "totalProjects", "notStarted", "inProgress", "completed", *METRIC_FIELDS, "progress"]
    rows = []
    for team, bucket in stats.items():
        row = {"team": team}
        row.update(bucket)
        row["progress"] = progress_pct(bucket)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)
