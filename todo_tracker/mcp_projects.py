"""Project registration and scan configuration endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from todo_tracker import tracker_store
from todo_tracker.errors import TrackerError, success_response
from todo_tracker.mcp_activity import _append_activity_log, _build_activity_entry
from todo_tracker.mcp_git import _commit_store_mutation
from todo_tracker.mcp_payload import (
    _ensure_payload_dict,
    _optional_string,
    _reject_unknown_fields,
    _require_fields,
    _require_project_id,
    _require_string,
)
from todo_tracker.mcp_router import mcp_router
from todo_tracker.mcp_utils import _snapshot_files
from todo_tracker.paths import validate_repo_path
from todo_tracker.scan_config import parse_scan_config, scan_config_to_dict
from todo_tracker.user_scope import get_request_data_root, get_request_repos_root


@mcp_router.post("/tool:create_project")
def create_project(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Register a project and the local repository it scans."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(
        payload, {"project_id", "name", "repo_path", "scan_branch", "config"}
    )
    _require_fields(payload, ["project_id", "name", "repo_path"])

    project_id = _require_project_id(payload)
    name = _require_string(payload, "name")
    repo_path = _require_string(payload, "repo_path")
    scan_branch = _optional_string(payload, "scan_branch")
    config = (
        parse_scan_config(payload["config"])
        if payload.get("config") is not None
        else None
    )

    validate_repo_path(get_request_repos_root(request), repo_path)

    data_root = get_request_data_root(request)
    path = tracker_store.project_file(data_root, project_id)
    with tracker_store.store_lock(data_root):
        if path.exists():
            raise TrackerError(
                "PROJECT_EXISTS",
                "Project already exists.",
                {"project_id": project_id},
            )

        project = tracker_store.build_project_record(
            project_id, name, repo_path, scan_branch, config
        )
        snapshot = _snapshot_files([path])
        tracker_store.write_project(data_root, project)
        commit_sha = _commit_store_mutation(
            data_root, [path], snapshot, "create_project", project_id
        )
        _append_activity_log(
            data_root,
            _build_activity_entry(
                "create_project", project_id, "create project", commit_sha
            ),
        )
    return success_response({"project": project, "commitSha": commit_sha})


@mcp_router.post("/tool:get_project")
def get_project(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Return a project record with its effective scan configuration."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id"})
    project_id = _require_project_id(payload)

    data_root = get_request_data_root(request)
    project = tracker_store.load_project(data_root, project_id)
    effective = scan_config_to_dict(tracker_store.project_scan_config(project))
    return success_response({"project": project, "effectiveConfig": effective})


@mcp_router.post("/tool:list_projects")
def list_projects(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List the caller's projects."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, set())

    data_root = get_request_data_root(request)
    return success_response({"projects": tracker_store.list_projects(data_root)})


@mcp_router.post("/tool:save_scan_config")
def save_scan_config(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Replace a project's tag/ignore configuration and optional scan branch."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id", "config", "scan_branch"})
    _require_fields(payload, ["project_id", "config"])

    project_id = _require_project_id(payload)
    config = parse_scan_config(payload["config"])

    data_root = get_request_data_root(request)
    with tracker_store.store_lock(data_root):
        project = tracker_store.load_project(data_root, project_id)
        project["config"] = scan_config_to_dict(config)
        if "scan_branch" in payload:
            project["scan_branch"] = _optional_string(payload, "scan_branch")
        project["updated_at"] = tracker_store.utc_now()

        path = tracker_store.project_file(data_root, project_id)
        snapshot = _snapshot_files([path])
        tracker_store.write_project(data_root, project)
        commit_sha = _commit_store_mutation(
            data_root, [path], snapshot, "save_scan_config", project_id
        )
        _append_activity_log(
            data_root,
            _build_activity_entry(
                "save_scan_config", project_id, "save scan config", commit_sha
            ),
        )
    return success_response({"project": project, "commitSha": commit_sha})
