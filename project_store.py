from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import streamlit as st

from project_schema import (
    METRIC_FIELDS,
    REQUIRED_FIELDS,
    ProjectValidationError,
    as_text,
    coerce_number,
    normalize_project,
    validate_project,
)

DEFAULT_STORE_PATH = Path("artifacts") / "projects.json"
DEFAULT_HTTP_TIMEOUT = 10.0
LIST_PAGE_SIZE = 200

STORE_LOGGER = logging.getLogger("project_store")

CHANGE_CREATE = "create"
CHANGE_UPDATE = "update"
CHANGE_DELETE = "delete"

PROJECT_SELECTION = """
      id
      name
      description
      team
      status
      priority
      ahtImpact
      costSaving
      qualityImpact
      createdAt
      updatedAt
"""

LIST_QUERY = (
    "query ListProjects($limit: Int, $nextToken: String) {\n"
    "  listProjects(limit: $limit, nextToken: $nextToken) {\n"
    f"    items {{{PROJECT_SELECTION}    }}\n"
    "    nextToken\n"
    "  }\n"
    "}"
)
CREATE_MUTATION = (
    "mutation CreateProject($input: CreateProjectInput!) {\n"
    f"  createProject(input: $input) {{{PROJECT_SELECTION}  }}\n"
    "}"
)
UPDATE_MUTATION = (
    "mutation UpdateProject($input: UpdateProjectInput!) {\n"
    f"  updateProject(input: $input) {{{PROJECT_SELECTION}  }}\n"
    "}"
)
DELETE_MUTATION = (
    "mutation DeleteProject($input: DeleteProjectInput!) {\n"
    f"  deleteProject(input: $input) {{{PROJECT_SELECTION}  }}\n"
    "}"
)


class ProjectStoreError(RuntimeError):
    pass


class BackendAuthError(ProjectStoreError):
    pass


class ProjectNotFoundError(ProjectStoreError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


def _debug_enabled() -> bool:
    return os.environ.get("PROJECTS_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def _ensure_logger() -> None:
    if not STORE_LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [project_store] %(levelname)s: %(message)s")
        )
        STORE_LOGGER.addHandler(handler)
    STORE_LOGGER.setLevel(logging.DEBUG if _debug_enabled() else logging.INFO)


def _log(level: int, message: str) -> None:
    _ensure_logger()
    STORE_LOGGER.log(level, message)


def _get_secret(key: str) -> str:
    value = os.environ.get(key, "")
    if not value:
        try:
            value = st.secrets.get(key, "")
        except Exception:
            value = ""
    return value


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ProjectChange:
    kind: str
    project: dict


class Subscription:
    """Handle returned by ChangeFeed.subscribe."""

    def __init__(self, feed: ChangeFeed, handler: Callable[[ProjectChange], None]):
        self._feed = feed
        self._handler = handler
        self._lock = threading.RLock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _deliver(self, change: ProjectChange) -> None:
        with self._lock:
            if not self._active:
                return
            self._handler(change)

    def unsubscribe(self) -> None:
        # Waits for an in-flight delivery, so the handler never runs afterwards.
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._feed._discard(self)


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, handler: Callable[[ProjectChange], None]) -> Subscription:
        subscription = Subscription(self, handler)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _discard(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, change: ProjectChange) -> None:
        with self._lock:
            targets = list(self._subscriptions)
        for subscription in targets:
            try:
                subscription._deliver(change)
            except Exception as err:
                _log(logging.WARNING, f"change handler failed kind={change.kind} error={err}")


class ProjectStore:
    """Common contract shared by the local and remote backends."""

    backend_name = "base"

    def __init__(self) -> None:
        self.feed = ChangeFeed()

    def subscribe(self, handler: Callable[[ProjectChange], None]) -> Subscription:
        return self.feed.subscribe(handler)

    def _publish(self, kind: str, project: dict) -> None:
        self.feed.publish(ProjectChange(kind, dict(project)))

    def poll_changes(self) -> int:
        return 0

    def list(self) -> list[dict]:
        raise NotImplementedError

    def create(self, record: dict) -> dict:
        raise NotImplementedError

    def update(self, project_id: str, fields: dict) -> dict:
        raise NotImplementedError

    def delete(self, project_id: str) -> dict:
        raise NotImplementedError


class LocalProjectStore(ProjectStore):
    backend_name = "local"

    def __init__(self, path: Path | str | None = None) -> None:
        super().__init__()
        self.path = Path(path) if path else DEFAULT_STORE_PATH
        self._io_lock = threading.Lock()

    def _load_projects(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as err:
            raise ProjectStoreError(f"Unable to read {self.path}: {err}") from err
        if isinstance(data, dict):
            data = data.get("projects", [])
        if not isinstance(data, list):
            return []
        return [p for p in data if isinstance(p, dict)]

    def _save_projects(self, projects: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(projects, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    @staticmethod
    def _find_project_index(projects: list[dict], project_id: str) -> int | None:
        for idx, project in enumerate(projects):
            if project.get("id") == project_id:
                return idx
        return None

    @staticmethod
    def _new_project_id(projects: list[dict]) -> str:
        existing = {p.get("id") for p in projects}
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in existing:
                return candidate

    def list(self) -> list[dict]:
        with self._io_lock:
            return [normalize_project(p) for p in self._load_projects()]

    def create(self, record: dict) -> dict:
        validate_project(record)
        with self._io_lock:
            projects = self._load_projects()
            project = normalize_project(record)
            now = _now_iso()
            project["id"] = self._new_project_id(projects)
            project["createdAt"] = now
            project["updatedAt"] = now
            projects.append(project)
            self._save_projects(projects)
        _log(logging.DEBUG, f"create id={project['id']} name={project['name']!r}")
        self._publish(CHANGE_CREATE, project)
        return project

    def update(self, project_id: str, fields: dict) -> dict:
        with self._io_lock:
            projects = self._load_projects()
            idx = self._find_project_index(projects, project_id)
            if idx is None:
                raise ProjectNotFoundError(project_id)
            merged = dict(projects[idx])
            merged.update({k: v for k, v in fields.items() if k not in ("id", "createdAt")})
            validate_project(merged)
            project = normalize_project(merged)
            project["updatedAt"] = _now_iso()
            projects[idx] = project
            self._save_projects(projects)
        _log(logging.DEBUG, f"update id={project_id}")
        self._publish(CHANGE_UPDATE, project)
        return project

    def delete(self, project_id: str) -> dict:
        with self._io_lock:
            projects = self._load_projects()
            idx = self._find_project_index(projects, project_id)
            if idx is None:
                raise ProjectNotFoundError(project_id)
            project = projects.pop(idx)
            self._save_projects(projects)
        _log(logging.DEBUG, f"delete id={project_id}")
        self._publish(CHANGE_DELETE, project)
        return project


Transport = Callable[[str, bytes, dict, float], tuple[int, str]]


def _urlopen_transport(url: str, payload: bytes, headers: dict, timeout: float) -> tuple[int, str]:
    req = Request(url, data=payload, headers=headers, method="POST")
    try:
        with urlopen(req, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            return status, response.read().decode("utf-8")
    except HTTPError as err:
        detail = ""
        try:
            detail = err.read().decode("utf-8")
        except Exception:
            detail = ""
        return err.code, detail


def _graphql_input(record: dict) -> dict:
    out: dict[str, Any] = {}
    for key, value in record.items():
        if key in ("createdAt", "updatedAt", "__typename", "owner"):
            continue
        out[key] = coerce_number(value) if key in METRIC_FIELDS else value
    return out


class GraphQLProjectStore(ProjectStore):
    """Project model hosted on a managed GraphQL API secured by an API key."""

    backend_name = "graphql"

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Transport | None = None,
    ) -> None:
        super().__init__()
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport or _urlopen_transport
        self._snapshot: dict[str, dict] | None = None
        self._poll_lock = threading.Lock()

    def _request(self, operation: str, query: str, variables: dict) -> dict:
        if not self.api_key:
            raise BackendAuthError("No API key configured for the project backend.")
        payload = json.dumps({"query": query, "variables": variables}).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-api-key": self.api_key,
        }
        try:
            status, body = self._transport(self.url, payload, headers, self.timeout)
        except URLError as err:
            _log(logging.WARNING, f"{operation} url_error reason={getattr(err, 'reason', None)}")
            raise ProjectStoreError(f"Project backend unreachable: {getattr(err, 'reason', err)}") from err
        except OSError as err:
            _log(logging.WARNING, f"{operation} io_error error={err}")
            raise ProjectStoreError(f"Project backend unreachable: {err}") from err

        body_preview = body if len(body) <= 2000 else f"{body[:2000]}...(truncated)"
        _log(logging.DEBUG, f"{operation} status={status} body={body_preview}")
        if status in (401, 403):
            _log(logging.WARNING, f"{operation} rejected status={status}")
            raise BackendAuthError("The project backend rejected the API key.")
        try:
            parsed = json.loads(body or "{}")
        except ValueError as err:
            raise ProjectStoreError(f"{operation} returned invalid JSON (HTTP {status}).") from err
        if status >= 400 and not parsed.get("errors"):
            raise ProjectStoreError(f"{operation} failed with HTTP {status}.")

        errors = parsed.get("errors") or []
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {"message": str(errors[0])}
            error_type = str(first.get("errorType") or "")
            message = str(first.get("message") or "Unknown backend error")
            _log(logging.WARNING, f"{operation} graphql_error type={error_type} message={message}")
            if "Unauthorized" in error_type:
                raise BackendAuthError(message)
            if "ConditionalCheckFailed" in error_type:
                raise ProjectNotFoundError(str(variables.get("input", {}).get("id", "")))
            raise ProjectStoreError(message)
        data = parsed.get("data")
        if not isinstance(data, dict):
            raise ProjectStoreError(f"{operation} returned no data.")
        return data

    def list(self) -> list[dict]:
        projects: list[dict] = []
        next_token: str | None = None
        while True:
            data = self._request(
                "listProjects",
                LIST_QUERY,
                {"limit": LIST_PAGE_SIZE, "nextToken": next_token},
            )
            page = data.get("listProjects") or {}
            projects.extend(normalize_project(p) for p in page.get("items") or [] if isinstance(p, dict))
            next_token = page.get("nextToken")
            if not next_token:
                break
        return projects

    def _remember(self, kind: str, project: dict) -> None:
        with self._poll_lock:
            if self._snapshot is None:
                return
            if kind == CHANGE_DELETE:
                self._snapshot.pop(project.get("id"), None)
            else:
                self._snapshot[project["id"]] = project

    def create(self, record: dict) -> dict:
        validate_project(record)
        payload = _graphql_input(normalize_project(record))
        payload.pop("id", None)
        data = self._request("createProject", CREATE_MUTATION, {"input": payload})
        created = data.get("createProject")
        if not isinstance(created, dict) or not created.get("id"):
            raise ProjectStoreError("createProject returned no record.")
        project = normalize_project(created)
        self._remember(CHANGE_CREATE, project)
        self._publish(CHANGE_CREATE, project)
        return project

    def update(self, project_id: str, fields: dict) -> dict:
        changes = {k: v for k, v in fields.items() if k not in ("id", "createdAt", "updatedAt")}
        missing = [k for k in REQUIRED_FIELDS if k in changes and not as_text(changes[k])]
        if missing:
            raise ProjectValidationError(missing)
        payload = _graphql_input(changes)
        payload["id"] = project_id
        data = self._request("updateProject", UPDATE_MUTATION, {"input": payload})
        updated = data.get("updateProject")
        if not isinstance(updated, dict):
            raise ProjectNotFoundError(project_id)
        project = normalize_project(updated)
        self._remember(CHANGE_UPDATE, project)
        self._publish(CHANGE_UPDATE, project)
        return project

    def delete(self, project_id: str) -> dict:
        data = self._request("deleteProject", DELETE_MUTATION, {"input": {"id": project_id}})
        deleted = data.get("deleteProject")
        if not isinstance(deleted, dict):
            raise ProjectNotFoundError(project_id)
        project = normalize_project(deleted)
        self._remember(CHANGE_DELETE, project)
        self._publish(CHANGE_DELETE, project)
        return project

    def poll_changes(self) -> int:
        """Publish events for changes made by other clients since the last poll."""
        current = {p["id"]: p for p in self.list() if p.get("id")}
        changes: list[ProjectChange] = []
        with self._poll_lock:
            previous = self._snapshot
            self._snapshot = current
            if previous is None:
                return 0
            for project_id, project in current.items():
                before = previous.get(project_id)
                if before is None:
                    changes.append(ProjectChange(CHANGE_CREATE, project))
                elif before != project:
                    changes.append(ProjectChange(CHANGE_UPDATE, project))
            for project_id, project in previous.items():
                if project_id not in current:
                    changes.append(ProjectChange(CHANGE_DELETE, project))
        for change in changes:
            self.feed.publish(change)
        if changes:
            _log(logging.INFO, f"poll_changes published={len(changes)}")
        return len(changes)


def _http_timeout() -> float:
    raw = _get_secret("PROJECTS_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT


def build_project_store() -> ProjectStore:
    url = _get_secret("PROJECTS_API_URL")
    if url:
        _log(logging.INFO, f"Using GraphQL project backend at {url}")
        return GraphQLProjectStore(url, _get_secret("PROJECTS_API_KEY"), timeout=_http_timeout())
    path = _get_secret("PROJECTS_STORE_PATH") or str(DEFAULT_STORE_PATH)
    _log(logging.INFO, f"Using local project store at {path}")
    return LocalProjectStore(path)


@st.cache_resource(show_spinner=False)
def get_project_store() -> ProjectStore:
    return build_project_store()
