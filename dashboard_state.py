from __future__ import annotations

import threading
import weakref
from collections import deque

import streamlit as st

from project_import import ImportPreview, ImportReport
from project_store import (
    CHANGE_CREATE,
    CHANGE_DELETE,
    CHANGE_UPDATE,
    ProjectChange,
    ProjectStore,
    Subscription,
)

STATE_KEY = "dashboard_state"


def _index_of(projects: list[dict], project_id: str | None) -> int | None:
    for idx, project in enumerate(projects):
        if project.get("id") == project_id:
            return idx
    return None


def apply_change(projects: list[dict], change: ProjectChange) -> list[dict]:
    """Merge one change event into a project list; returns a new list."""
    out = list(projects)
    project = change.project
    idx = _index_of(out, project.get("id"))
    if change.kind == CHANGE_DELETE:
        if idx is not None:
            out.pop(idx)
        return out
    if change.kind in (CHANGE_CREATE, CHANGE_UPDATE):
        if idx is None:
            out.append(dict(project))
        else:
            out[idx] = dict(project)
    return out


class DashboardState:
    """Owns the project list, filters, import preview and the live subscription."""

    def __init__(self) -> None:
        self.projects: list[dict] = []
        self.filters: dict[str, str | None] = {"team": None, "status": None, "priority": None}
        self.preview: ImportPreview | None = None
        self.loaded = False
        self.auth_error: str | None = None
        self._pending: deque[ProjectChange] = deque()
        self._pending_lock = threading.Lock()
        self._subscription: Subscription | None = None
        self._finalizer: weakref.finalize | None = None
        self._store_ref: weakref.ref | None = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def ensure_subscribed(self, store: ProjectStore) -> None:
        current = self._store_ref() if self._store_ref is not None else None
        if self.subscribed and current is store:
            return
        if self._store_ref is not None and current is not store:
            # A rebuilt store: the cached list and queued events belong to the old one.
            self.close()
            with self._pending_lock:
                self._pending.clear()
            self.loaded = False
        # The handler holds only the queue, so the feed never keeps this state alive.
        pending, lock = self._pending, self._pending_lock

        def _handler(change: ProjectChange) -> None:
            with lock:
                pending.append(change)

        self._subscription = store.subscribe(_handler)
        self._finalizer = weakref.finalize(self, self._subscription.unsubscribe)
        self._store_ref = weakref.ref(store)

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def drain_changes(self) -> int:
        with self._pending_lock:
            changes = list(self._pending)
            self._pending.clear()
        projects = self.projects
        for change in changes:
            projects = apply_change(projects, change)
        self.projects = projects
        return len(changes)

    def refresh(self, store: ProjectStore) -> None:
        # Events queued from here on are newer than the listing and get merged on top.
        with self._pending_lock:
            self._pending.clear()
        projects = store.list()
        self.projects = projects
        self.loaded = True
        self.auth_error = None

    def record_import(self, report: ImportReport) -> str | None:
        """Merge imported records and keep only the failed drafts in the preview.

        Returns the error summary when some rows failed.
        """
        for project in report.imported:
            self.projects = apply_change(self.projects, ProjectChange(CHANGE_CREATE, project))
        if not report.failures:
            self.preview = None
            return None
        total = report.imported_count + len(report.failures)
        if self.preview is not None:
            self.preview.drafts = [draft for draft, _ in report.failures]
        return (
            f"Imported {report.imported_count} of {total} project(s). "
            f"{len(report.failures)} failed; first error: {report.first_error}"
        )

    def close(self) -> None:
        if self._finalizer is not None:
            self._finalizer()
        self._subscription = None
        self._finalizer = None


def get_dashboard_state() -> DashboardState:
    state = st.session_state.get(STATE_KEY)
    if not isinstance(state, DashboardState):
        state = DashboardState()
        st.session_state[STATE_KEY] = state
    return state
