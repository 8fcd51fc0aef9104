from __future__ import annotations

import logging
import os
from datetime import datetime
from time import perf_counter

import streamlit as st

from project_store import _log

DEBUG_LOG_KEY = "_debug_logs"
DEBUG_LOG_LIMIT = 200
_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """?debug=1 in the URL or PROJECTS_DEBUG in the environment."""
    try:
        raw = st.query_params.get("debug")
    except Exception:
        raw = None
    if not raw:
        raw = os.getenv("PROJECTS_DEBUG", "")
    return str(raw).strip().lower() in _TRUTHY


def debug_log(message: str) -> None:
    lines = st.session_state.setdefault(DEBUG_LOG_KEY, [])
    lines.append(f"{datetime.now():%H:%M:%S} {message}")
    del lines[:-DEBUG_LOG_LIMIT]
    _log(logging.DEBUG, message)


def timeit(label: str, fn, timings: list[tuple[str, float]]):
    start = perf_counter()
    try:
        return fn()
    finally:
        timings.append((label, (perf_counter() - start) * 1000.0))


def render_debug_panel(timings: list[tuple[str, float]], subscriber_count: int | None = None) -> None:
    with st.sidebar.expander("Debug", expanded=False):
        if subscriber_count is not None:
            st.caption(f"Change feed subscribers: {subscriber_count}")
        if timings:
            st.dataframe(
                [{"step": label, "ms": round(value, 1)} for label, value in timings],
                hide_index=True,
                width="stretch",
            )
        logs = st.session_state.get(DEBUG_LOG_KEY) or []
        if logs:
            st.code("\n".join(logs[-40:]))
