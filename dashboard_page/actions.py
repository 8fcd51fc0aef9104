# dashboard_page/actions.py
from __future__ import annotations

import logging

import streamlit as st

from access_guard import assert_can_edit
from dashboard_state import DashboardState, apply_change
from project_filters import team_options
from project_schema import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    FIELD_LABELS,
    METRIC_FIELDS,
    PRIORITY_OPTIONS,
    STATUS_COMPLETED,
    STATUS_OPTIONS,
    ProjectValidationError,
    as_text,
    missing_required_fields,
)
from project_store import (
    CHANGE_CREATE,
    CHANGE_UPDATE,
    ProjectChange,
    ProjectStore,
    ProjectStoreError,
    _log,
)

METRIC_INPUTS = {
    "ahtImpact": ("AHT Impact (%)", 0.1),
    "costSaving": ("Cost Saving ($)", 1.0),
    "qualityImpact": ("Quality Impact (%)", 0.1),
}


def _team_choices(state: DashboardState, current: str) -> list[str]:
    options = [""] + team_options(state.projects)
    if current and current not in options:
        options.append(current)
    return options


def _project_fields(prefix: str, initial: dict, state: DashboardState, *, show_metrics: bool) -> dict:
    name = st.text_input("Project Name *", value=initial.get("name", ""), key=f"{prefix}_name")
    description = st.text_area(
        "Description",
        value=initial.get("description", ""),
        height=110,
        key=f"{prefix}_description",
    )
    teams = _team_choices(state, initial.get("team", ""))
    team = st.selectbox(
        "Team *",
        teams,
        index=teams.index(initial.get("team", "")) if initial.get("team", "") in teams else 0,
        format_func=lambda v: v or "Select Team",
        key=f"{prefix}_team",
    )
    cols = st.columns(2)
    with cols[0]:
        status_value = initial.get("status") or DEFAULT_STATUS
        status = st.selectbox(
            "Status",
            STATUS_OPTIONS,
            index=STATUS_OPTIONS.index(status_value) if status_value in STATUS_OPTIONS else 0,
            key=f"{prefix}_status",
        )
    with cols[1]:
        priority_value = initial.get("priority") or DEFAULT_PRIORITY
        priority = st.selectbox(
            "Priority",
            PRIORITY_OPTIONS,
            index=PRIORITY_OPTIONS.index(priority_value) if priority_value in PRIORITY_OPTIONS else 1,
            key=f"{prefix}_priority",
        )

    fields = {
        "name": as_text(name),
        "description": as_text(description),
        "team": as_text(team),
        "status": status,
        "priority": priority,
    }
    if show_metrics and status == STATUS_COMPLETED:
        metric_cols = st.columns(3)
        for col, key in zip(metric_cols, METRIC_FIELDS):
            label, step = METRIC_INPUTS[key]
            with col:
                fields[key] = st.number_input(
                    label,
                    value=float(initial.get(key) or 0.0),
                    step=step,
                    key=f"{prefix}_{key}",
                )
    return fields


def _submit(state: DashboardState, gate: dict, action, *, success: str) -> bool:
    try:
        assert_can_edit(gate)
        project, kind = action()
    except PermissionError as e:
        st.error(f"🔒 {str(e)}")
        return False
    except ProjectValidationError as e:
        st.warning(str(e))
        return False
    except ProjectStoreError as e:
        _log(logging.ERROR, f"project save failed: {e}")
        st.error(f"Unable to save project: {e}")
        return False
    state.projects = apply_change(state.projects, ProjectChange(kind, project))
    st.session_state["project_flash"] = success
    return True


def open_new_project_dialog(*, store: ProjectStore, state: DashboardState, gate: dict) -> None:
    @st.dialog("Create New Project")
    def _dialog() -> None:
        fields = _project_fields("new_project", {}, state, show_metrics=False)
        cols = st.columns(2)
        with cols[0]:
            if st.button("Cancel", key="new_project_cancel", width="stretch"):
                st.rerun()
        with cols[1]:
            if st.button("Create Project", key="new_project_submit", type="primary", width="stretch"):
                missing = missing_required_fields(fields)
                if missing:
                    st.warning("Please fill in: " + ", ".join(FIELD_LABELS[f] for f in missing))
                    return
                if _submit(
                    state,
                    gate,
                    lambda: (store.create(fields), CHANGE_CREATE),
                    success=f'Project "{fields["name"]}" created.',
                ):
                    st.rerun()

    _dialog()


def open_edit_project_dialog(*, project: dict, store: ProjectStore, state: DashboardState, gate: dict) -> None:
    project_id = project.get("id")

    @st.dialog("Edit Project")
    def _dialog() -> None:
        fields = _project_fields(f"edit_{project_id}", project, state, show_metrics=True)
        cols = st.columns(2)
        with cols[0]:
            if st.button("Cancel", key=f"edit_cancel_{project_id}", width="stretch"):
                st.rerun()
        with cols[1]:
            if st.button("Save Changes", key=f"edit_submit_{project_id}", type="primary", width="stretch"):
                missing = missing_required_fields(fields)
                if missing:
                    st.warning("Please fill in: " + ", ".join(FIELD_LABELS[f] for f in missing))
                    return
                if _submit(
                    state,
                    gate,
                    lambda: (store.update(project_id, fields), CHANGE_UPDATE),
                    success=f'Project "{fields["name"]}" updated.',
                ):
                    st.rerun()

    _dialog()
