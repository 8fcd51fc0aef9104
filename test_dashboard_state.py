from __future__ import annotations

import gc

from dashboard_state import DashboardState, apply_change
from project_import import ImportPreview, ImportReport
from project_schema import ProjectDraft
from project_store import LocalProjectStore, ProjectChange


def _change(kind, **project):
    return ProjectChange(kind, project)


def test_apply_change_upserts_and_deletes():
    projects = [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]
    out = apply_change(projects, _change("create", id="3", name="C"))
    assert [p["id"] for p in out] == ["1", "2", "3"]
    out = apply_change(out, _change("update", id="2", name="B2"))
    assert [p["name"] for p in out] == ["A", "B2", "C"]
    out = apply_change(out, _change("delete", id="1"))
    assert [p["id"] for p in out] == ["2", "3"]
    assert projects == [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]


def test_apply_change_is_idempotent():
    projects = [{"id": "1", "name": "A"}]
    for change in (
        _change("create", id="1", name="A"),
        _change("create", id="2", name="B"),
        _change("update", id="2", name="B2"),
        _change("delete", id="1"),
        _change("delete", id="missing"),
    ):
        once = apply_change(projects, change)
        assert apply_change(once, change) == once


def test_update_for_unknown_project_is_appended():
    out = apply_change([], _change("update", id="9", name="Late"))
    assert out == [{"id": "9", "name": "Late"}]


def test_state_merges_store_events(tmp_path):
    store = LocalProjectStore(tmp_path / "projects.json")
    existing = store.create({"name": "Existing", "team": "Sales"})
    state = DashboardState()
    state.ensure_subscribed(store)
    state.ensure_subscribed(store)
    assert store.feed.subscriber_count == 1

    state.refresh(store)
    assert state.loaded
    assert state.projects == [existing]

    created = store.create({"name": "New", "team": "Design"})
    store.update(existing["id"], {"status": "Completed"})
    assert state.pending_count() == 2
    assert state.drain_changes() == 2
    assert state.pending_count() == 0
    assert [p["name"] for p in state.projects] == ["Existing", "New"]
    assert state.projects[0]["status"] == "Completed"
    assert state.projects == store.list()

    store.delete(created["id"])
    state.drain_changes()
    assert [p["id"] for p in state.projects] == [existing["id"]]


def test_refresh_discards_events_older_than_the_listing(tmp_path):
    store = LocalProjectStore(tmp_path / "projects.json")
    state = DashboardState()
    state.ensure_subscribed(store)
    store.create({"name": "A", "team": "Sales"})
    state.refresh(store)
    assert state.pending_count() == 0
    assert len(state.projects) == 1


def test_close_unsubscribes(tmp_path):
    store = LocalProjectStore(tmp_path / "projects.json")
    state = DashboardState()
    state.ensure_subscribed(store)
    state.close()
    state.close()
    assert not state.subscribed
    assert store.feed.subscriber_count == 0
    store.create({"name": "A", "team": "Sales"})
    assert state.pending_count() == 0


def test_dropped_state_releases_its_subscription(tmp_path):
    store = LocalProjectStore(tmp_path / "projects.json")
    state = DashboardState()
    state.ensure_subscribed(store)
    assert store.feed.subscriber_count == 1
    del state
    gc.collect()
    assert store.feed.subscriber_count == 0


def test_rebuilt_store_gets_a_fresh_subscription(tmp_path):
    old_store = LocalProjectStore(tmp_path / "old.json")
    new_store = LocalProjectStore(tmp_path / "new.json")
    state = DashboardState()
    state.ensure_subscribed(old_store)
    state.refresh(old_store)
    old_store.create({"name": "Stale", "team": "Sales"})
    assert state.pending_count() == 1

    state.ensure_subscribed(new_store)
    assert old_store.feed.subscriber_count == 0
    assert new_store.feed.subscriber_count == 1
    assert state.pending_count() == 0
    assert not state.loaded

    new_store.create({"name": "Fresh", "team": "Design"})
    assert state.pending_count() == 1
    state.ensure_subscribed(new_store)
    assert new_store.feed.subscriber_count == 1


def test_record_import_merges_successes_and_keeps_failures(tmp_path):
    store = LocalProjectStore(tmp_path / "projects.json")
    state = DashboardState()
    ok_draft = ProjectDraft(name="A", team="Sales")
    bad_draft = ProjectDraft(name="B", team="Sales")
    state.preview = ImportPreview(source_name="p.csv", drafts=[ok_draft, bad_draft])
    created = store.create(ok_draft.to_record())
    report = ImportReport(imported=[created], failures=[(bad_draft, "backend said no")])

    error = state.record_import(report)
    assert error == "Imported 1 of 2 project(s). 1 failed; first error: B: backend said no"
    assert [p["name"] for p in state.projects] == ["A"]
    assert state.preview.drafts == [bad_draft]

    retried = store.create(bad_draft.to_record())
    assert state.record_import(ImportReport(imported=[retried])) is None
    assert state.preview is None
    assert [p["name"] for p in state.projects] == ["A", "B"]
