from __future__ import annotations

from typing import Any, Iterable

import streamlit as st

from project_schema import PRIORITY_OPTIONS, STATUS_OPTIONS, TEAM_OPTIONS

FILTER_ALL = "__all__"
FILTER_FIELDS = ("team", "status", "priority")
FILTER_KEYS = {
    "team": "filter_team",
    "status": "filter_status",
    "priority": "filter_priority",
}


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == FILTER_ALL


def filter_projects(
    projects: Iterable[dict],
    team: str | None = None,
    status: str | None = None,
    priority: str | None = None,
) -> list[dict]:
    criteria = {
        key: value
        for key, value in (("team", team), ("status", status), ("priority", priority))
        if not _is_unset(value)
    }
    if not criteria:
        return list(projects)
    return [
        project
        for project in projects
        if all(project.get(key) == value for key, value in criteria.items())
    ]


def team_options(projects: Iterable[dict]) -> list[str]:
    options = list(TEAM_OPTIONS)
    seen = set(options)
    for project in projects:
        team = project.get("team")
        if team and team not in seen:
            seen.add(team)
            options.append(team)
    return options


def active_filter_count(selection: dict) -> int:
    return sum(1 for key in FILTER_FIELDS if not _is_unset(selection.get(key)))


def _filter_label(value: str, all_label: str) -> str:
    return all_label if value == FILTER_ALL else value


def clear_filters() -> None:
    for key in FILTER_KEYS.values():
        st.session_state[key] = FILTER_ALL


def build_project_filter_sidebar(projects: list[dict], *, sidebar: Any | None = None) -> dict:
    sidebar = sidebar or st.sidebar
    choices = {
        "team": [FILTER_ALL] + team_options(projects),
        "status": [FILTER_ALL] + list(STATUS_OPTIONS),
        "priority": [FILTER_ALL] + list(PRIORITY_OPTIONS),
    }
    labels = {"team": "All teams", "status": "All statuses", "priority": "All priorities"}

    sidebar.markdown('<div class="sidebar-title">Filters</div>', unsafe_allow_html=True)
    selection: dict[str, str | None] = {}
    for field in FILTER_FIELDS:
        key = FILTER_KEYS[field]
        options = choices[field]
        if st.session_state.get(key, FILTER_ALL) not in options:
            st.session_state[key] = FILTER_ALL
        value = sidebar.selectbox(
            field.capitalize(),
            options,
            format_func=lambda v, _all=labels[field]: _filter_label(v, _all),
            key=key,
        )
        selection[field] = None if _is_unset(value) else value

    if active_filter_count(selection):
        sidebar.button("Clear filters", key="filter_clear_btn", on_click=clear_filters)
    return selection
