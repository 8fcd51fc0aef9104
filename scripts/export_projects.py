#!/usr/bin/env python
"""
Dump the projects of the configured backend without starting the dashboard.

Reads the same PROJECTS_* environment variables as the app.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from project_export import export_file_name, export_projects_csv
from project_store import ProjectStoreError, build_project_store
from team_stats import compute_team_stats, progress_pct


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--format", choices=["csv", "json", "teams"], default="csv")
    parser.add_argument("--out", help="Output file (default: stdout; 'auto' uses the dated export name)")
    args = parser.parse_args()

    store = build_project_store()
    try:
        projects = store.list()
    except ProjectStoreError as err:
        print(f"[!] {err}", file=sys.stderr)
        return 1

    if args.format == "csv":
        text = export_projects_csv(projects)
    elif args.format == "json":
        text = json.dumps(projects, indent=2, ensure_ascii=False)
    else:
        stats = compute_team_stats(projects)
        for bucket in stats.values():
            bucket["progress"] = progress_pct(bucket)
        text = json.dumps(stats, indent=2, ensure_ascii=False)

    if not args.out:
        print(text)
        return 0
    out = Path(export_file_name() if args.out == "auto" else args.out)
    out.write_text(text, encoding="utf-8")
    print(f"[+] Wrote {len(projects)} project(s) to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
