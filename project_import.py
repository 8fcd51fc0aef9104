from __future__ import annotations

import csv
import io
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from project_schema import ProjectDraft, ProjectValidationError, as_text

TEXT_SUFFIXES = {".csv", ".txt"}
SPREADSHEET_SUFFIXES = {".xlsx", ".xls"}
ACCEPTED_SUFFIXES = sorted(TEXT_SUFFIXES | SPREADSHEET_SUFFIXES)
DELIMITER_CANDIDATES = [",", "\t", ";", "|"]

# Tested in order, first hit wins; broad name/project tokens go last.
HEADER_SYNONYMS: list[tuple[str, tuple[str, ...]]] = [
    ("status", ("status",)),
    ("priority", ("priority",)),
    ("description", ("description", "desc")),
    ("ahtImpact", ("aht",)),
    ("costSaving", ("cost",)),
    ("qualityImpact", ("quality",)),
    ("team", ("team", "owner")),
    ("name", ("name", "project")),
]

IMPORT_LOGGER = logging.getLogger("project_import")


class ImportParseError(ValueError):
    pass


def _ensure_logger() -> None:
    if not IMPORT_LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [project_import] %(levelname)s: %(message)s")
        )
        IMPORT_LOGGER.addHandler(handler)
    debug = os.environ.get("PROJECTS_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}
    IMPORT_LOGGER.setLevel(logging.DEBUG if debug else logging.INFO)


def _log(level: int, message: str) -> None:
    _ensure_logger()
    IMPORT_LOGGER.log(level, message)


@dataclass
class ImportPreview:
    source_name: str
    drafts: list[ProjectDraft] = field(default_factory=list)
    skipped: int = 0
    unmatched_headers: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.drafts)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([d.to_record() for d in self.drafts])


@dataclass
class ImportReport:
    imported: list[dict] = field(default_factory=list)
    failures: list[tuple[ProjectDraft, str]] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def first_error(self) -> str | None:
        if not self.failures:
            return None
        draft, message = self.failures[0]
        return f"{draft.name}: {message}"


def match_header(header: Any) -> str | None:
    text = as_text(header).lower()
    if not text:
        return None
    for target, tokens in HEADER_SYNONYMS:
        if any(token in text for token in tokens):
            return target
    return None


def map_headers(headers: list[Any]) -> tuple[dict[int, str], list[str]]:
    """Column index -> project field, plus the headers nothing claimed."""
    mapping: dict[int, str] = {}
    claimed: set[str] = set()
    unmatched: list[str] = []
    for idx, header in enumerate(headers):
        target = match_header(header)
        if target is None or target in claimed:
            label = as_text(header)
            if label:
                unmatched.append(label)
            continue
        claimed.add(target)
        mapping[idx] = target
    return mapping, unmatched


def split_lines(text: str) -> list[str]:
    return re.split(r"\r\n|\r|\n", text)


def decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("cp1252", errors="replace")


def detect_delimiter(header_line: str) -> str:
    counts = {d: header_line.count(d) for d in DELIMITER_CANDIDATES}
    best = max(DELIMITER_CANDIDATES, key=lambda d: counts[d])
    return best if counts[best] else ","


def read_delimited_rows(text: str) -> list[list[Any]]:
    lines = split_lines(text)
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        return []
    delimiter = detect_delimiter(lines[0])
    # Quoted fields may span lines, so the reader gets the whole body.
    body = io.StringIO("\n".join(lines))
    try:
        return [row for row in csv.reader(body, delimiter=delimiter, strict=True)]
    except csv.Error as err:
        raise ImportParseError(f"Malformed delimited text: {err}") from err


def _nan_to_none(v: Any) -> Any:
    if isinstance(v, float) and v != v:
        return None
    return v


def read_spreadsheet_rows(data: bytes) -> list[list[Any]]:
    try:
        df = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, dtype=object, engine="calamine")
    except Exception as err:
        raise ImportParseError(f"Unreadable spreadsheet: {err}") from err
    rows = [[_nan_to_none(v) for v in row] for row in df.values.tolist()]
    while rows and not any(as_text(v) for v in rows[0]):
        rows.pop(0)
    return rows


def rows_to_preview(rows: list[list[Any]], source_name: str) -> ImportPreview:
    if not rows:
        raise ImportParseError("The file is empty.")
    headers = rows[0]
    mapping, unmatched = map_headers(headers)
    targets = set(mapping.values())
    missing = [f for f in ("name", "team") if f not in targets]
    if missing:
        raise ImportParseError(
            "No column found for " + " and ".join(missing)
            + ". Headers should contain 'name'/'project' and 'team'/'owner'."
        )

    preview = ImportPreview(source_name=source_name, unmatched_headers=unmatched)
    for offset, row in enumerate(rows[1:], start=2):
        if not any(as_text(v) for v in row):
            continue
        values = {target: row[idx] for idx, target in mapping.items() if idx < len(row)}
        draft = ProjectDraft.from_row(values, source_row=offset)
        if draft is None:
            preview.skipped += 1
            continue
        preview.drafts.append(draft)
    _log(
        logging.INFO,
        f"parsed {source_name}: accepted={preview.count} skipped={preview.skipped} "
        f"unmatched_headers={unmatched}",
    )
    return preview


def parse_import_file(file_name: str, data: bytes) -> ImportPreview:
    suffix = Path(file_name or "").suffix.lower()
    if suffix in TEXT_SUFFIXES:
        rows = read_delimited_rows(decode_text(data))
    elif suffix in SPREADSHEET_SUFFIXES:
        rows = read_spreadsheet_rows(data)
    else:
        raise ImportParseError(
            f"Unsupported file type '{suffix or file_name}'. Use {', '.join(ACCEPTED_SUFFIXES)}."
        )
    return rows_to_preview(rows, file_name)


def commit_import(drafts: list[ProjectDraft], store) -> ImportReport:
    """Create each draft in turn; failures are collected and the rest still run."""
    report = ImportReport()
    for draft in drafts:
        try:
            report.imported.append(store.create(draft.to_record()))
        except (ProjectValidationError, RuntimeError, OSError) as err:
            _log(logging.WARNING, f"import create failed row={draft.source_row} name={draft.name!r} error={err}")
            report.failures.append((draft, str(err)))
    _log(logging.INFO, f"import finished imported={report.imported_count} failed={len(report.failures)}")
    return report
