from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any

import streamlit as st

_LOGGED_EVENTS: set[str] = set()
RUNTIME_LOGGER = logging.getLogger("runtime_checks")

DEFAULT_POLL_SECONDS = 15
KEY_EXPIRY_WARN_DAYS = 7


def _ensure_logger() -> None:
    if not RUNTIME_LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [runtime_checks] %(levelname)s: %(message)s")
        )
        RUNTIME_LOGGER.addHandler(handler)
    RUNTIME_LOGGER.setLevel(logging.INFO)


def _log_once(key: str, level: int, message: str) -> None:
    if key in _LOGGED_EVENTS:
        return
    _ensure_logger()
    RUNTIME_LOGGER.log(level, message)
    _LOGGED_EVENTS.add(key)


def _get_secret(key: str) -> str:
    value = os.environ.get(key, "")
    if not value:
        try:
            value = st.secrets.get(key, "")
        except Exception:
            value = ""
    return value


def api_key_expiry() -> date | None:
    raw = _get_secret("PROJECTS_API_KEY_EXPIRES").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        _log_once(f"bad_expiry:{raw}", logging.WARNING, f"Invalid PROJECTS_API_KEY_EXPIRES value: {raw}")
        return None


def poll_interval_seconds() -> int:
    raw = _get_secret("PROJECTS_POLL_SECONDS").strip()
    if not raw:
        return DEFAULT_POLL_SECONDS
    try:
        return max(0, int(raw))
    except ValueError:
        _log_once(f"bad_poll:{raw}", logging.WARNING, f"Invalid PROJECTS_POLL_SECONDS value: {raw}")
        return DEFAULT_POLL_SECONDS


def validate_runtime_config() -> dict[str, Any]:
    missing: list[str] = []
    url = _get_secret("PROJECTS_API_URL")
    if url:
        if not _get_secret("PROJECTS_API_KEY"):
            missing.append("PROJECTS_API_KEY")
            _log_once("missing:PROJECTS_API_KEY", logging.WARNING, "Missing runtime config key: PROJECTS_API_KEY")
        backend = "graphql"
    else:
        _log_once("backend:local", logging.INFO, "PROJECTS_API_URL not set; using the local JSON store")
        backend = "local"
    return {"backend": backend, "missing": missing, "key_expires": api_key_expiry() if url else None}
