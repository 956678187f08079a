"""Scan, review and approval endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from todo_tracker import tracker_store
from todo_tracker.approval import process_scan_results as apply_scan_results
from todo_tracker.approval import validate_actions, validate_titles
from todo_tracker.errors import TrackerError, success_response
from todo_tracker.mcp_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
    _require_project_id,
)
from todo_tracker.mcp_router import mcp_router
from todo_tracker.scanner import collect_scan, run_scan
from todo_tracker.user_scope import (
    get_request_data_root,
    get_request_repos_root,
    get_request_scan_settings,
)


@mcp_router.post("/tool:scan_project")
def scan_project(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Scan a project's repository and store the diff as a pending update."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id"})
    project_id = _require_project_id(payload)

    data_root = get_request_data_root(request)
    scan_workers, max_file_bytes = get_request_scan_settings(request)
    with tracker_store.store_lock(data_root):
        progress, update = collect_scan(
            run_scan(
                data_root,
                get_request_repos_root(request),
                project_id,
                scan_workers=scan_workers,
                max_file_bytes=max_file_bytes,
            )
        )
    return success_response({"progress": progress, "update": update})


@mcp_router.post("/tool:get_pending_updates")
def get_pending_updates(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List updates still awaiting review, newest first."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id"})
    project_id = _require_project_id(payload)

    data_root = get_request_data_root(request)
    tracker_store.load_project(data_root, project_id)
    root = tracker_store.project_root(data_root, project_id)
    return success_response(
        {"updates": tracker_store.list_updates(root, status="PENDING")}
    )


@mcp_router.post("/tool:get_scan_history")
def get_scan_history(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List stored scan results, newest first, without their task bodies."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id"})
    project_id = _require_project_id(payload)

    data_root = get_request_data_root(request)
    tracker_store.load_project(data_root, project_id)
    root = tracker_store.project_root(data_root, project_id)
    scans = [
        {
            "id": record["id"],
            "created_at": record.get("created_at"),
            "accepted": record.get("accepted"),
            "task_count": len(record.get("tasks") or []),
        }
        for record in tracker_store.list_scans(root)
    ]
    return success_response({"scans": scans})


@mcp_router.post("/tool:process_scan_results")
def process_scan_results(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Approve or reject a pending update and apply per-item actions."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(
        payload, {"project_id", "update_id", "approved", "actions", "titles"}
    )
    _require_fields(payload, ["project_id", "update_id", "approved"])
    project_id = _require_project_id(payload)

    update_id = payload["update_id"]
    if not isinstance(update_id, int) or isinstance(update_id, bool):
        raise TrackerError(
            "INVALID_TYPE",
            "update_id must be an integer.",
            {"update_id": str(update_id)},
        )
    approved = payload["approved"]
    if not isinstance(approved, bool):
        raise TrackerError(
            "INVALID_TYPE",
            "approved must be a boolean.",
            {"approved": str(approved)},
        )
    actions = validate_actions(payload.get("actions", {}))
    titles = validate_titles(payload.get("titles", {}))

    data_root = get_request_data_root(request)
    with tracker_store.store_lock(data_root):
        result = apply_scan_results(
            data_root, project_id, update_id, actions, titles, approved
        )
    return success_response(result)


@mcp_router.post("/tool:list_project_tasks")
def list_project_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """List tracked tasks for a project, hiding deleted ones by default."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"project_id", "include_deleted"})
    project_id = _require_project_id(payload)
    include_deleted = payload.get("include_deleted", False)
    if not isinstance(include_deleted, bool):
        raise TrackerError(
            "INVALID_TYPE",
            "include_deleted must be a boolean.",
            {"include_deleted": str(include_deleted)},
        )

    data_root = get_request_data_root(request)
    tracker_store.load_project(data_root, project_id)
    root = tracker_store.project_root(data_root, project_id)
    tasks = [
        task
        for task in tracker_store.load_tracked_tasks(root)
        if include_deleted or task.get("visibility") != "DELETED"
    ]
    return success_response(
        {"tasks": tasks, "codebaseTasks": tracker_store.load_codebase_tasks(root)}
    )
