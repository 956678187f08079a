"""Stateless endpoints exposing the parser and the diff engine directly."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from todo_tracker.diff import generate_diff
from todo_tracker.errors import TrackerError, success_response
from todo_tracker.mcp_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
)
from todo_tracker.mcp_router import mcp_router
from todo_tracker.parser import parse_file_content
from todo_tracker.path_filter import should_ignore_path
from todo_tracker.scan_config import DEFAULT_SCAN_CONFIG, parse_scan_config
from todo_tracker.scan_types import ParsedTask


def _tasks_from_payload(raw: Any, field: str) -> list[ParsedTask]:
    if not isinstance(raw, list):
        raise TrackerError(
            "INVALID_TYPE",
            f"{field} must be a list of tasks.",
            {"field": field},
        )
    tasks = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise TrackerError(
                "INVALID_TASK",
                "Each task must be an object.",
                {"field": field, "index": index},
            )
        try:
            tasks.append(ParsedTask.from_dict(item))
        except (TypeError, ValueError) as exc:
            raise TrackerError(
                "INVALID_TASK",
                "Task fields have invalid types.",
                {"field": field, "index": index, "error": str(exc)},
            ) from exc
    return tasks


@mcp_router.post("/tool:parse_file")
def parse_file(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Extract tasks from a single file body without touching storage."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"path", "content", "config"})
    _require_fields(payload, ["path", "content"])

    path = payload["path"]
    content = payload["content"]
    if not isinstance(path, str) or not isinstance(content, str):
        raise TrackerError(
            "INVALID_TYPE",
            "path and content must be strings.",
            {"path": str(path)},
        )
    config = (
        parse_scan_config(payload["config"])
        if payload.get("config") is not None
        else DEFAULT_SCAN_CONFIG
    )

    if should_ignore_path(path, config.ignore):
        return success_response({"ignored": True, "tasks": []})
    tasks = parse_file_content(content, path, config)
    return success_response(
        {"ignored": False, "tasks": [task.to_dict() for task in tasks]}
    )


@mcp_router.post("/tool:diff_tasks")
def diff_tasks(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Reconcile two task lists and return the classified changes."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"old", "new"})
    _require_fields(payload, ["old", "new"])

    old_tasks = _tasks_from_payload(payload["old"], "old")
    new_tasks = _tasks_from_payload(payload["new"], "new")
    diffs = generate_diff(old_tasks, new_tasks)
    return success_response({"diff": [diff.to_dict() for diff in diffs]})
