"""File-backed storage for projects, scans, pending updates and tasks.

Layout under a user data root::

    projects/<project_id>/project.json
    projects/<project_id>/scans/<scan_id>.json
    projects/<project_id>/updates/<update_id>.json
    projects/<project_id>/codebase_tasks.json
    projects/<project_id>/tasks.json

Callers write through these helpers and then commit the touched paths with
``mcp_git._commit_store_mutation``.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from todo_tracker.errors import TrackerError
from todo_tracker.mcp_constants import (
    CODEBASE_TASKS_FILENAME,
    PROJECT_FILENAME,
    PROJECTS_DIRNAME,
    SCANS_DIRNAME,
    TRACKED_TASKS_FILENAME,
    UPDATE_STATUSES,
    UPDATES_DIRNAME,
)
from todo_tracker.mcp_utils import _read_json, _write_json
from todo_tracker.scan_config import (
    DEFAULT_SCAN_CONFIG,
    parse_scan_config,
    scan_config_to_dict,
)
from todo_tracker.scan_types import ParsedTask, ScanConfig


_STORE_LOCKS: dict[Path, threading.Lock] = {}
_STORE_LOCKS_GUARD = threading.Lock()


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def store_lock(data_root: Path) -> threading.Lock:
    """Return the lock that serializes writes to one user's store.

    Scan and update ids are taken from the files on disk and every write ends
    in a commit to the same git index, so concurrent writers must queue.
    """
    key = data_root.resolve()
    with _STORE_LOCKS_GUARD:
        return _STORE_LOCKS.setdefault(key, threading.Lock())


def project_root(data_root: Path, project_id: str) -> Path:
    return data_root / PROJECTS_DIRNAME / project_id


def project_file(data_root: Path, project_id: str) -> Path:
    return project_root(data_root, project_id) / PROJECT_FILENAME


def load_project(data_root: Path, project_id: str) -> dict[str, Any]:
    path = project_file(data_root, project_id)
    try:
        project = _read_json(path)
    except json.JSONDecodeError as exc:
        raise TrackerError(
            "STORE_CORRUPT",
            "Project record is not valid JSON.",
            {"project_id": project_id},
        ) from exc
    if project is None:
        raise TrackerError(
            "PROJECT_NOT_FOUND",
            "Project does not exist.",
            {"project_id": project_id},
        )
    return project


def list_projects(data_root: Path) -> list[dict[str, Any]]:
    projects_dir = data_root / PROJECTS_DIRNAME
    if not projects_dir.is_dir():
        return []
    projects = []
    for entry in sorted(projects_dir.iterdir(), key=lambda item: item.name):
        record = _read_json(entry / PROJECT_FILENAME)
        if isinstance(record, dict):
            projects.append(record)
    return projects


def build_project_record(
    project_id: str,
    name: str,
    repo_path: str,
    scan_branch: str | None,
    config: ScanConfig | None,
) -> dict[str, Any]:
    timestamp = utc_now()
    return {
        "id": project_id,
        "name": name,
        "repo_path": repo_path,
        "scan_branch": scan_branch,
        "config": scan_config_to_dict(config) if config is not None else None,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


def write_project(data_root: Path, project: dict[str, Any]) -> Path:
    path = project_file(data_root, project["id"])
    _write_json(path, project)
    return path


def project_scan_config(project: dict[str, Any]) -> ScanConfig:
    """Return the project's stored config, or the default when none is saved."""
    raw = project.get("config")
    if raw is None:
        return DEFAULT_SCAN_CONFIG
    return parse_scan_config(raw)


# Scans (tracker results)


def _scans_dir(root: Path) -> Path:
    return root / SCANS_DIRNAME


def _updates_dir(root: Path) -> Path:
    return root / UPDATES_DIRNAME


def _record_ids(directory: Path) -> list[int]:
    if not directory.is_dir():
        return []
    ids = []
    for entry in directory.glob("*.json"):
        if entry.stem.isdigit():
            ids.append(int(entry.stem))
    return sorted(ids)


def _next_id(directory: Path) -> int:
    ids = _record_ids(directory)
    return ids[-1] + 1 if ids else 1


def scan_path(root: Path, scan_id: int) -> Path:
    return _scans_dir(root) / f"{scan_id}.json"


def next_scan_path(root: Path) -> tuple[int, Path]:
    scan_id = _next_id(_scans_dir(root))
    return scan_id, scan_path(root, scan_id)


def write_scan(path: Path, scan_id: int, tasks: Iterable[ParsedTask]) -> dict[str, Any]:
    record = {
        "id": scan_id,
        "created_at": utc_now(),
        "accepted": None,
        "tasks": [task.to_dict() for task in tasks],
    }
    _write_json(path, record)
    return record


def load_scan(root: Path, scan_id: int) -> dict[str, Any] | None:
    return _read_json(scan_path(root, scan_id))


def list_scans(root: Path) -> list[dict[str, Any]]:
    """Return scan records newest first."""
    scans = []
    for scan_id in reversed(_record_ids(_scans_dir(root))):
        record = load_scan(root, scan_id)
        if record is not None:
            scans.append(record)
    return scans


def latest_accepted_scan(root: Path) -> dict[str, Any] | None:
    for record in list_scans(root):
        if record.get("accepted") is True:
            return record
    return None


def set_scan_accepted(root: Path, scan_id: int, accepted: bool) -> Path:
    path = scan_path(root, scan_id)
    record = _read_json(path)
    if record is None:
        raise TrackerError(
            "SCAN_NOT_FOUND",
            "Scan result does not exist.",
            {"scan_id": scan_id},
        )
    record["accepted"] = accepted
    _write_json(path, record)
    return path


# Updates (pending diffs awaiting approval)


def update_path(root: Path, update_id: int) -> Path:
    return _updates_dir(root) / f"{update_id}.json"


def next_update_path(root: Path) -> tuple[int, Path]:
    update_id = _next_id(_updates_dir(root))
    return update_id, update_path(root, update_id)


def write_update(path: Path, record: dict[str, Any]) -> None:
    _write_json(path, record)


def load_update(root: Path, update_id: int) -> dict[str, Any]:
    record = _read_json(update_path(root, update_id))
    if record is None:
        raise TrackerError(
            "UPDATE_NOT_FOUND",
            "Update does not exist.",
            {"update_id": update_id},
        )
    return record


def list_updates(root: Path, status: str | None = None) -> list[dict[str, Any]]:
    """Return updates newest first, optionally filtered by status."""
    if status is not None and status not in UPDATE_STATUSES:
        raise TrackerError(
            "INVALID_STATUS",
            "Unknown update status.",
            {"status": status, "allowed": sorted(UPDATE_STATUSES)},
        )
    updates = []
    for update_id in reversed(_record_ids(_updates_dir(root))):
        record = _read_json(update_path(root, update_id))
        if record is None:
            continue
        if status is not None and record.get("status") != status:
            continue
        updates.append(record)
    return updates


# Codebase tasks and tracked tasks


def codebase_tasks_path(root: Path) -> Path:
    return root / CODEBASE_TASKS_FILENAME


def tracked_tasks_path(root: Path) -> Path:
    return root / TRACKED_TASKS_FILENAME


def load_codebase_tasks(root: Path) -> list[dict[str, Any]]:
    return list(_read_json(codebase_tasks_path(root), default=[]))


def save_codebase_tasks(root: Path, records: list[dict[str, Any]]) -> None:
    _write_json(codebase_tasks_path(root), records)


def load_tracked_tasks(root: Path) -> list[dict[str, Any]]:
    return list(_read_json(tracked_tasks_path(root), default=[]))


def save_tracked_tasks(root: Path, records: list[dict[str, Any]]) -> None:
    _write_json(tracked_tasks_path(root), records)


def old_tasks_for_scan(root: Path, scan_id: int) -> list[ParsedTask]:
    """Rebuild the task set recorded against an accepted scan, in stored order."""
    return [
        ParsedTask.from_dict(
            {
                "id": record.get("id"),
                "file": record.get("file"),
                "line": record.get("line"),
                "tag": record.get("type"),
                "text": record.get("text"),
                "context": record.get("context"),
            }
        )
        for record in load_codebase_tasks(root)
        if record.get("recent_scan_id") == scan_id
    ]
