from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any

STATUS_OPTIONS = ["Not Started", "In Progress", "Completed", "On Hold"]
PRIORITY_OPTIONS = ["Low", "Medium", "High", "Critical"]
TEAM_OPTIONS = ["Engineering", "Data Science", "Design", "Marketing", "Sales"]

DEFAULT_STATUS = "Not Started"
DEFAULT_PRIORITY = "Medium"
STATUS_COMPLETED = "Completed"

NUMBER_PATTERN = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")

REQUIRED_FIELDS = ["name", "team"]
TEXT_FIELDS = ["name", "description", "team", "status", "priority"]
METRIC_FIELDS = ["ahtImpact", "costSaving", "qualityImpact"]
EDITABLE_FIELDS = TEXT_FIELDS + METRIC_FIELDS

FIELD_LABELS = {
    "name": "Project Name",
    "description": "Description",
    "team": "Team",
    "status": "Status",
    "priority": "Priority",
    "ahtImpact": "AHT Impact",
    "costSaving": "Cost Saving",
    "qualityImpact": "Quality Impact",
}


class ProjectValidationError(ValueError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        labels = ", ".join(FIELD_LABELS.get(f, f) for f in self.missing)
        super().__init__(f"Missing required field(s): {labels}")


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def coerce_number(value: Any) -> float:
    """Best-effort numeric parse; anything unreadable becomes 0.

    The first numeric token wins, so '$1,500', '12.5%', '30 sec' and
    '$1,500 per year' all parse. Booleans and NaN are treated as missing.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    match = NUMBER_PATTERN.search(str(value).replace(",", ""))
    if match is None:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def tidy_num(x: float | int) -> float | int:
    if isinstance(x, int):
        return x
    if abs(x - round(x)) < 1e-9:
        return int(round(x))
    return x


def match_option(value: Any, options: list[str], default: str) -> str:
    text = as_text(value).lower()
    if not text:
        return default
    for option in options:
        if option.lower() == text:
            return option
    return default


def missing_required_fields(record: dict) -> list[str]:
    return [f for f in REQUIRED_FIELDS if not as_text(record.get(f))]


def validate_project(record: dict) -> None:
    missing = missing_required_fields(record)
    if missing:
        raise ProjectValidationError(missing)


def normalize_project(record: dict) -> dict:
    """Fill defaults and coerce metrics on a backend or form record."""
    out = dict(record)
    for key in ("name", "description", "team"):
        out[key] = as_text(out.get(key))
    out["status"] = as_text(out.get("status")) or DEFAULT_STATUS
    out["priority"] = as_text(out.get("priority")) or DEFAULT_PRIORITY
    for key in METRIC_FIELDS:
        out[key] = coerce_number(out.get(key))
    return out


def editable_fields(record: dict) -> dict:
    return {key: record.get(key) for key in EDITABLE_FIELDS if key in record}


@dataclass
class ProjectDraft:
    """A validated project that has not been persisted yet."""

    name: str
    team: str
    description: str = ""
    status: str = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    ahtImpact: float = 0.0
    costSaving: float = 0.0
    qualityImpact: float = 0.0
    source_row: int | None = field(default=None, compare=False)

    @classmethod
    def from_row(cls, row: dict[str, Any], source_row: int | None = None) -> ProjectDraft | None:
        name = as_text(row.get("name"))
        team = as_text(row.get("team"))
        if not name or not team:
            return None
        return cls(
            name=name,
            team=team,
            description=as_text(row.get("description")),
            status=match_option(row.get("status"), STATUS_OPTIONS, DEFAULT_STATUS),
            priority=match_option(row.get("priority"), PRIORITY_OPTIONS, DEFAULT_PRIORITY),
            ahtImpact=coerce_number(row.get("ahtImpact")),
            costSaving=coerce_number(row.get("costSaving")),
            qualityImpact=coerce_number(row.get("qualityImpact")),
            source_row=source_row,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "team": self.team,
            "status": self.status,
            "priority": self.priority,
            "ahtImpact": self.ahtImpact,
            "costSaving": self.costSaving,
            "qualityImpact": self.qualityImpact,
        }
