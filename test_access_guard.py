from datetime import date

import pytest

from access_guard import assert_can_edit, get_access_status
from runtime_checks import poll_interval_seconds

TODAY = date(2026, 10, 17)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "PROJECTS_API_URL",
        "PROJECTS_API_KEY",
        "PROJECTS_API_KEY_EXPIRES",
        "PROJECTS_POLL_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)


def test_local_backend_is_always_editable():
    gate = get_access_status(today=TODAY)
    assert gate["allowed"] is True
    assert gate["status"] == "ok"
    assert gate["backend"] == "local"
    assert gate["can_edit"] is True
    assert_can_edit(gate)


def test_missing_api_key_locks_editing(monkeypatch):
    monkeypatch.setenv("PROJECTS_API_URL", "https://example.invalid/graphql")
    gate = get_access_status(today=TODAY)
    assert gate["allowed"] is False
    assert gate["status"] == "not_configured"
    assert gate["message"].startswith("Not authenticated")
    with pytest.raises(PermissionError):
        assert_can_edit(gate)


def test_rejected_key(monkeypatch):
    monkeypatch.setenv("PROJECTS_API_URL", "https://example.invalid/graphql")
    monkeypatch.setenv("PROJECTS_API_KEY", "da2-test")
    gate = get_access_status(auth_error="The project backend rejected the API key.", today=TODAY)
    assert gate["allowed"] is False
    assert gate["status"] == "rejected"
    assert "rejected" in gate["message"]


def test_key_expiry(monkeypatch):
    monkeypatch.setenv("PROJECTS_API_URL", "https://example.invalid/graphql")
    monkeypatch.setenv("PROJECTS_API_KEY", "da2-test")

    monkeypatch.setenv("PROJECTS_API_KEY_EXPIRES", "2026-10-16")
    gate = get_access_status(today=TODAY)
    assert gate["status"] == "expired"
    assert gate["allowed"] is False
    assert gate["days_left"] == -1

    monkeypatch.setenv("PROJECTS_API_KEY_EXPIRES", "2026-10-20T00:00:00Z")
    gate = get_access_status(today=TODAY)
    assert gate["status"] == "expiring"
    assert gate["allowed"] is True
    assert gate["days_left"] == 3

    monkeypatch.setenv("PROJECTS_API_KEY_EXPIRES", "2027-01-01")
    assert get_access_status(today=TODAY)["status"] == "ok"

    monkeypatch.setenv("PROJECTS_API_KEY_EXPIRES", "someday")
    gate = get_access_status(today=TODAY)
    assert gate["status"] == "ok"
    assert gate["days_left"] is None


def test_poll_interval(monkeypatch):
    assert poll_interval_seconds() == 15
    monkeypatch.setenv("PROJECTS_POLL_SECONDS", "0")
    assert poll_interval_seconds() == 0
    monkeypatch.setenv("PROJECTS_POLL_SECONDS", "5")
    assert poll_interval_seconds() == 5
    monkeypatch.setenv("PROJECTS_POLL_SECONDS", "soon")
    assert poll_interval_seconds() == 15
