"""
Access guard for the shared API key that authorizes project edits.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import streamlit as st

from runtime_checks import KEY_EXPIRY_WARN_DAYS, validate_runtime_config


def get_access_status(auth_error: str | None = None, today: date | None = None) -> dict[str, Any]:
    """Summarize whether the dashboard can talk to the backend.

    Returns dict with keys: allowed, status, message, days_left, backend
    """
    config = validate_runtime_config()
    today = today or date.today()
    gate: dict[str, Any] = {
        "allowed": True,
        "status": "ok",
        "message": None,
        "days_left": None,
        "backend": config.get("backend"),
    }
    expires = config.get("key_expires")
    if expires is not None:
        gate["days_left"] = (expires - today).days

    if config.get("missing"):
        gate.update(
            allowed=False,
            status="not_configured",
            message="Not authenticated: no API key is configured for the project backend.",
        )
    elif auth_error:
        gate.update(allowed=False, status="rejected", message=f"Not authenticated: {auth_error}")
    elif gate["days_left"] is not None and gate["days_left"] < 0:
        gate.update(
            allowed=False,
            status="expired",
            message=f"Not authenticated: the API key expired on {expires.isoformat()}.",
        )
    elif gate["days_left"] is not None and gate["days_left"] <= KEY_EXPIRY_WARN_DAYS:
        gate.update(status="expiring", message=f"The API key expires in {gate['days_left']} day(s).")
    gate["can_edit"] = gate["allowed"]
    return gate


def render_access_warning(gate: dict[str, Any]) -> None:
    if not gate or not gate.get("message"):
        return
    if not gate.get("allowed", True):
        st.warning(f"🔒 {gate['message']} The dashboard is read-only until this is fixed.")
    else:
        st.info(f"⏰ {gate['message']}")


def assert_can_edit(gate: dict[str, Any]) -> None:
    """Raise PermissionError if the backend credentials do not allow edits."""
    if not gate.get("allowed", True):
        raise PermissionError(gate.get("message") or "Not authenticated.")
