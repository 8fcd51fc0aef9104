from __future__ import annotations

import logging

import streamlit as st

from access_guard import assert_can_edit
from dashboard_state import DashboardState
from project_export import CSV_MIME, export_file_name, export_projects_csv
from project_import import (
    ACCEPTED_SUFFIXES,
    ImportParseError,
    commit_import,
    parse_import_file,
)
from project_store import ProjectStore, _log

UPLOAD_KEY_STATE = "import_upload_key"
IMPORT_ERROR_STATE = "import_error"


def _upload_file_key(uploaded) -> str:
    return f"{uploaded.name}:{uploaded.size}"


def render_import_panel(*, store: ProjectStore, state: DashboardState, gate: dict) -> None:
    with st.expander("Import projects (CSV / Excel)", expanded=state.preview is not None):
        import_error = st.session_state.pop(IMPORT_ERROR_STATE, None)
        if import_error:
            st.error(import_error)
        st.caption(
            "Headers are matched loosely: a column containing 'name' or 'project' becomes the project name, "
            "'team' or 'owner' the team, 'aht', 'cost' and 'quality' the impact metrics. "
            "Rows without a name or team are skipped."
        )
        st.page_link("pages/1_Import_Guide.py", label="Open import guide")
        uploaded = st.file_uploader(
            "Project file",
            type=[s.lstrip(".") for s in ACCEPTED_SUFFIXES],
            key="import_uploader",
            disabled=not gate.get("can_edit", True),
        )
        if uploaded is not None:
            file_key = _upload_file_key(uploaded)
            if st.session_state.get(UPLOAD_KEY_STATE) != file_key:
                st.session_state[UPLOAD_KEY_STATE] = file_key
                try:
                    state.preview = parse_import_file(uploaded.name, uploaded.getvalue())
                except ImportParseError as e:
                    _log(logging.WARNING, f"import parse failed file={uploaded.name} error={e}")
                    st.error(f"Could not read {uploaded.name}: {e}")

        preview = state.preview
        if preview is None:
            return

        st.markdown(
            f'<div class="section-heading">Preview: {preview.count} project(s) from '
            f"{preview.source_name}</div>",
            unsafe_allow_html=True,
        )
        if preview.skipped:
            st.caption(f"{preview.skipped} row(s) skipped: missing project name or team.")
        if preview.unmatched_headers:
            st.caption("Ignored columns: " + ", ".join(preview.unmatched_headers))
        if preview.count:
            st.dataframe(preview.to_frame(), hide_index=True, width="stretch")

        cols = st.columns(2)
        with cols[0]:
            if st.button("Discard preview", key="import_discard", width="stretch"):
                state.preview = None
                st.session_state.pop(UPLOAD_KEY_STATE, None)
                st.rerun()
        with cols[1]:
            confirm = st.button(
                f"Import {preview.count} project(s)",
                key="import_confirm",
                type="primary",
                width="stretch",
                disabled=not preview.count,
            )
        if confirm:
            try:
                assert_can_edit(gate)
            except PermissionError as e:
                st.error(f"🔒 {str(e)}")
                return
            with st.spinner(f"Importing {preview.count} project(s)..."):
                report = commit_import(preview.drafts, store)
            error = state.record_import(report)
            if error:
                st.session_state[IMPORT_ERROR_STATE] = error
            else:
                st.session_state.pop(UPLOAD_KEY_STATE, None)
                st.session_state["project_flash"] = f"Imported {report.imported_count} project(s)."
            st.rerun()


def render_export_button(state: DashboardState) -> None:
    st.download_button(
        "Export CSV",
        data=export_projects_csv(state.projects),
        file_name=export_file_name(),
        mime=CSV_MIME,
        key="export_csv_btn",
        disabled=not state.projects,
        width="stretch",
    )
