from __future__ import annotations

import io
from datetime import date
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from project_schema import METRIC_FIELDS, as_text, coerce_number, tidy_num

EXPORT_COLUMNS = [
    ("Project Name", "name"),
    ("Description", "description"),
    ("Team", "team"),
    ("Status", "status"),
    ("Priority", "priority"),
    ("AHT Impact", "ahtImpact"),
    ("Cost Saving", "costSaving"),
    ("Quality Impact", "qualityImpact"),
]
EXPORT_HEADERS = [label for label, _ in EXPORT_COLUMNS]
CSV_MIME = "text/csv"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TEMPLATE_EXAMPLE = {
    "name": "Ticket triage assistant",
    "description": "Drafts first replies for tier-1 tickets",
    "team": "Engineering",
    "status": "Completed",
    "priority": "High",
    "ahtImpact": 12.5,
    "costSaving": 360000,
    "qualityImpact": 4,
}


def quote_field(value: Any) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def _cell_value(project: dict, key: str) -> Any:
    if key in METRIC_FIELDS:
        return tidy_num(coerce_number(project.get(key)))
    return as_text(project.get(key))


def export_projects_csv(projects: Iterable[dict]) -> str:
    lines = [",".join(quote_field(h) for h in EXPORT_HEADERS)]
    for project in projects:
        lines.append(",".join(quote_field(_cell_value(project, key)) for _, key in EXPORT_COLUMNS))
    return "\n".join(lines)


def export_file_name(today: date | None = None) -> str:
    today = today or date.today()
    return f"ai-projects-export-{today.isoformat()}.csv"


def import_template_bytes() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Projects"
    ws.append(EXPORT_HEADERS)
    ws.append([_cell_value(TEMPLATE_EXAMPLE, key) for _, key in EXPORT_COLUMNS])
    for idx, header in enumerate(EXPORT_HEADERS, start=1):
        ws.cell(row=1, column=idx).font = Font(bold=True)
        ws.column_dimensions[get_column_letter(idx)].width = max(14, len(header) + 4)
    ws.freeze_panes = "A2"
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
