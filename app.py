import logging

import pandas as pd
import streamlit as st

from access_guard import get_access_status, render_access_warning
from charts import cost_saving_chart, team_status_chart
from dashboard_page.actions import open_edit_project_dialog, open_new_project_dialog
from dashboard_page.debug_tools import debug_enabled, debug_log, render_debug_panel, timeit
from dashboard_page.imports import render_export_button, render_import_panel
from dashboard_page.styles import inject_global_css
from dashboard_page.ui import project_card_html, render_metric_row, render_team_cards, render_top_bar
from dashboard_state import get_dashboard_state
from project_filters import build_project_filter_sidebar, filter_projects
from project_schema import FIELD_LABELS
from project_store import BackendAuthError, ProjectStoreError, _log, get_project_store
from runtime_checks import poll_interval_seconds
from team_stats import compute_team_stats, dashboard_totals, team_stats_frame

st.set_page_config(page_title="AI Project Tracker", page_icon="📊", layout="wide")
inject_global_css()

_debug = debug_enabled()
_timings: list[tuple[str, float]] = []

store = get_project_store()
state = get_dashboard_state()
state.ensure_subscribed(store)


def _load_projects() -> None:
    if state.loaded:
        return
    try:
        with st.spinner("Loading projects..."):
            timeit("list projects", lambda: state.refresh(store), _timings)
        debug_log(f"loaded {len(state.projects)} project(s) from {store.backend_name}")
    except BackendAuthError as e:
        _log(logging.WARNING, f"project list rejected: {e}")
        state.auth_error = str(e)
        state.loaded = True
    except ProjectStoreError as e:
        _log(logging.ERROR, f"project list failed: {e}")
        st.error(f"Unable to load projects: {e}")


def _request_refresh() -> None:
    state.loaded = False


_load_projects()
merged = state.drain_changes()
if merged:
    debug_log(f"merged {merged} change event(s)")

gate = get_access_status(state.auth_error)
is_locked = not gate.get("allowed", True)

render_top_bar(backend_name=store.backend_name, is_locked=is_locked, project_count=len(state.projects))
render_access_warning(gate)

flash_message = st.session_state.pop("project_flash", None)
if flash_message:
    st.success(flash_message)

# ---------- Sidebar ----------
st.sidebar.markdown('<div class="sidebar-title">Actions</div>', unsafe_allow_html=True)
if st.sidebar.button(
    "New project",
    key="new_project_btn",
    type="primary",
    width="stretch",
    disabled=is_locked,
    help="Not authenticated: editing is disabled." if is_locked else None,
):
    open_new_project_dialog(store=store, state=state, gate=gate)
st.sidebar.button("Refresh", key="refresh_btn", width="stretch", on_click=_request_refresh)
with st.sidebar:
    render_export_button(state)

state.filters = build_project_filter_sidebar(state.projects)

poll_seconds = poll_interval_seconds()
if poll_seconds:

    @st.fragment(run_every=poll_seconds)
    def _live_updates() -> None:
        try:
            store.poll_changes()
        except BackendAuthError as e:
            state.auth_error = str(e)
        except ProjectStoreError as e:
            _log(logging.WARNING, f"poll_changes failed: {e}")
        if state.pending_count():
            st.rerun()
        st.caption(f"Live updates every {poll_seconds}s")

    with st.sidebar:
        _live_updates()

# ---------- Derived views ----------
filtered = timeit("filter", lambda: filter_projects(state.projects, **state.filters), _timings)
team_stats = timeit("aggregate", lambda: compute_team_stats(filtered), _timings)
totals = dashboard_totals(filtered)

render_metric_row(totals)

if state.projects and not filtered:
    st.info("No projects match the current filters.")
elif not state.projects and not is_locked:
    st.info("No projects yet. Create one from the sidebar or import a CSV/Excel file below.")

teams_tab, projects_tab = st.tabs(["Teams", "Projects"])

with teams_tab:
    render_team_cards(team_stats)
    frame = team_stats_frame(team_stats)
    if not frame.empty:
        chart_cols = st.columns([3, 2])
        with chart_cols[0]:
            st.markdown('<div class="section-heading">Status by team</div>', unsafe_allow_html=True)
            st.plotly_chart(team_status_chart(frame), width="stretch", config={"displayModeBar": False})
        with chart_cols[1]:
            st.markdown('<div class="section-heading">Cost saving by team</div>', unsafe_allow_html=True)
            st.plotly_chart(cost_saving_chart(frame), width="stretch", config={"displayModeBar": False})

with projects_tab:
    view_mode = st.radio("View", ["Cards", "Table"], horizontal=True, key="project_view_mode", label_visibility="collapsed")
    if view_mode == "Table":
        columns = ["name", "description", "team", "status", "priority", "ahtImpact", "costSaving", "qualityImpact"]
        table = pd.DataFrame(filtered, columns=columns).rename(columns=FIELD_LABELS)
        st.dataframe(table, hide_index=True, width="stretch")
        if filtered and not is_locked:
            by_id = {p["id"]: p for p in filtered if p.get("id")}
            edit_cols = st.columns([3, 1])
            with edit_cols[0]:
                edit_id = st.selectbox(
                    "Edit project",
                    list(by_id),
                    format_func=lambda pid: by_id[pid].get("name") or pid,
                    key="edit_project_select",
                )
            with edit_cols[1]:
                st.markdown("<div style='height:28px'></div>", unsafe_allow_html=True)
                if st.button("Edit", key="edit_project_btn", width="stretch") and edit_id:
                    open_edit_project_dialog(project=by_id[edit_id], store=store, state=state, gate=gate)
    else:
        grid_columns = 3
        cols = st.columns(grid_columns, gap="medium")
        for idx, project in enumerate(filtered):
            pid = project.get("id") or f"row{idx}"
            with cols[idx % grid_columns]:
                with st.container(key=f"card_{pid}"):
                    st.markdown(project_card_html(project), unsafe_allow_html=True)
                    if not is_locked and st.button("Edit", key=f"edit_{pid}"):
                        open_edit_project_dialog(project=project, store=store, state=state, gate=gate)

render_import_panel(store=store, state=state, gate=gate)

if _debug:
    render_debug_panel(_timings, subscriber_count=store.feed.subscriber_count)
