#!/usr/bin/env python3
"""
Stress test helper: create 20 projects quickly to validate no corruption.
Run: python test_projects_stress.py
"""

import sys
import tempfile
from pathlib import Path

from project_store import LocalProjectStore


def test_stress_create_projects():
    """Create 20 projects rapidly and verify they're all saved correctly."""
    tmp_dir = tempfile.mkdtemp(prefix="project-tracker-stress-")
    store = LocalProjectStore(Path(tmp_dir) / "projects.json")
    events = []
    store.subscribe(events.append)

    print("[*] Creating 20 projects...")
    for i in range(20):
        project = store.create({"name": f"Stress Test Project {i+1}", "team": "Engineering"})
        assert project and project.get("id"), f"Failed to create project {i+1}"
        print(f"[+] Created project {i+1}: {project['id']}")

    projects = store.list()
    assert len(projects) == 20, f"Expected 20 projects, got {len(projects)}"
    print("[+] All 20 projects found: OK")

    project_ids = {p.get("id") for p in projects}
    assert len(project_ids) == 20, "Duplicate project IDs found!"
    print("[+] All project IDs unique: OK")

    for i, p in enumerate(projects, 1):
        assert p.get("id") and p.get("name") and p.get("team"), f"Project {i} is corrupted: {p}"
    print("[+] No corrupted entries: OK")

    assert [e.kind for e in events] == ["create"] * 20
    assert [e.project["id"] for e in events] == [p["id"] for p in projects]
    print("[+] One create event per project: OK")
    print("\n[+] STRESS TEST PASSED!")
    return True


if __name__ == "__main__":
    success = test_stress_create_projects()
    sys.exit(0 if success else 1)
