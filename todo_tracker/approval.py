"""Applying a reviewed update to the stored codebase and tracked tasks."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Mapping

from todo_tracker import tracker_store
from todo_tracker.errors import TrackerError
from todo_tracker.mcp_activity import _append_activity_log, _build_activity_entry
from todo_tracker.mcp_constants import APPROVAL_ACTIONS
from todo_tracker.mcp_git import _commit_store_mutation
from todo_tracker.mcp_utils import _restore_snapshot, _snapshot_files

logger = logging.getLogger(__name__)


def validate_actions(actions: Any) -> dict[str, list[str]]:
    if not isinstance(actions, dict):
        raise TrackerError(
            "INVALID_TYPE",
            "actions must be an object mapping action names to id lists.",
            {"type": type(actions).__name__},
        )
    unknown = sorted(name for name in actions if name not in APPROVAL_ACTIONS)
    if unknown:
        raise TrackerError(
            "INVALID_ACTION",
            "Unknown approval action.",
            {"actions": unknown, "allowed": list(APPROVAL_ACTIONS)},
        )
    for name, ids in actions.items():
        if not isinstance(ids, list) or not all(isinstance(item, str) for item in ids):
            raise TrackerError(
                "INVALID_TYPE",
                "Action ids must be a list of strings.",
                {"action": name},
            )
    return actions


def validate_titles(titles: Any) -> dict[str, str]:
    if not isinstance(titles, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in titles.items()
    ):
        raise TrackerError(
            "INVALID_TYPE",
            "titles must be an object mapping ids to strings.",
            {},
        )
    return titles


def _action_for(item_id: str, actions: Mapping[str, list[str]]) -> str | None:
    for action, item_ids in actions.items():
        if item_id in item_ids:
            return action
    return None


def _codebase_task_values(item: Mapping[str, Any], scan_id: int) -> dict[str, Any]:
    new = (item.get("data") or {}).get("new") or {}
    return {
        "id": item["id"],
        "text": new.get("text") or "",
        "line": new.get("line") or 0,
        "file": new.get("file") or "unknown",
        "type": item.get("tag") or "todo",
        "context": list(new.get("context") or []),
        "recent_scan_id": scan_id,
        "updated_at": tracker_store.utc_now(),
    }


def _upsert_codebase_task(
    codebase_tasks: list[dict[str, Any]], item: Mapping[str, Any], scan_id: int
) -> None:
    values = _codebase_task_values(item, scan_id)
    for index, existing in enumerate(codebase_tasks):
        if existing.get("id") == values["id"]:
            codebase_tasks[index] = values
            return
    codebase_tasks.append(values)


def _history(task: Mapping[str, Any], kind: str, description: str) -> dict[str, Any]:
    return {
        "task_id": task["id"],
        "type": kind,
        "description": description,
        "timestamp": tracker_store.utc_now(),
    }


class _ApprovalState:
    """Mutable working copy of the project's task files during one approval."""

    def __init__(self, root: Path, scan_id: int) -> None:
        self.scan_id = scan_id
        self.codebase_tasks = tracker_store.load_codebase_tasks(root)
        self.tracked_tasks = tracker_store.load_tracked_tasks(root)
        self.history: list[dict[str, Any]] = []

    def linked(self, codebase_task_id: str) -> list[dict[str, Any]]:
        return [
            task
            for task in self.tracked_tasks
            if task.get("codebase_task_id") == codebase_task_id
        ]

    def create(self, item: Mapping[str, Any], titles: Mapping[str, str]) -> None:
        new = (item.get("data") or {}).get("new") or {}
        new_text = new.get("text") or ""
        task = {
            "id": str(uuid.uuid4()),
            "title": titles.get(item["id"]) or new_text or "Untitled Task",
            "description": new_text,
            "progress": "UNSTARTED",
            "priority": "LOW",
            "visibility": "VISIBLE",
            "codebase_task_id": item["id"],
            "created_at": tracker_store.utc_now(),
        }
        self.tracked_tasks.append(task)
        _upsert_codebase_task(self.codebase_tasks, item, self.scan_id)
        self.history.append(_history(task, "CREATE_TASK", "Task created (via scan)"))

    def confirm(self, item: Mapping[str, Any]) -> None:
        _upsert_codebase_task(self.codebase_tasks, item, self.scan_id)

    def unlink(self, item: Mapping[str, Any]) -> None:
        for task in self.linked(item["id"]):
            task["codebase_task_id"] = None
            self.history.append(
                _history(task, "UPDATE_TASK", "Task unlinked from codebase (via scan)")
            )

    def delete(self, item: Mapping[str, Any]) -> None:
        for task in self.linked(item["id"]):
            task["visibility"] = "DELETED"
            task["codebase_task_id"] = None
            self.history.append(_history(task, "DELETE_TASK", "Task deleted (via scan)"))

    def complete(self, item: Mapping[str, Any]) -> None:
        for task in self.linked(item["id"]):
            task["progress"] = "COMPLETED"
            self.history.append(
                _history(task, "UPDATE_TASK", "Task completed (via scan)")
            )


def process_scan_results(
    data_root: Path,
    project_id: str,
    update_id: int,
    actions: Mapping[str, list[str]],
    titles: Mapping[str, str],
    approved: bool,
) -> dict[str, Any]:
    """Accept or reject a pending update and apply the chosen actions.

    Rejection only records the decision. On approval each diff item gets the
    first action whose id list contains it; items without an action are left
    alone.
    """
    tracker_store.load_project(data_root, project_id)
    root = tracker_store.project_root(data_root, project_id)
    update = tracker_store.load_update(root, update_id)
    if update.get("status") != "PENDING":
        raise TrackerError(
            "UPDATE_NOT_PENDING",
            "Only pending updates can be processed.",
            {"update_id": update_id, "status": update.get("status")},
        )

    scan_id = update["new_id"]
    touched = [
        tracker_store.update_path(root, update_id),
        tracker_store.scan_path(root, scan_id),
        tracker_store.codebase_tasks_path(root),
        tracker_store.tracked_tasks_path(root),
    ]
    snapshot = _snapshot_files(touched)
    state = _ApprovalState(root, scan_id)
    applied: list[dict[str, str]] = []

    try:
        tracker_store.set_scan_accepted(root, scan_id, approved)
        update["status"] = "ACCEPTED" if approved else "REJECTED"
        tracker_store.write_update(touched[0], update)

        if approved:
            for item in update.get("data") or []:
                action = _action_for(item["id"], actions)
                if action is None:
                    continue
                if action == "CREATE":
                    state.create(item, titles)
                elif action == "CONFIRM":
                    state.confirm(item)
                elif action == "UNLINK":
                    state.unlink(item)
                elif action == "DELETE":
                    state.delete(item)
                elif action == "COMPLETE":
                    state.complete(item)
                applied.append({"id": item["id"], "action": action})
            tracker_store.save_codebase_tasks(root, state.codebase_tasks)
            tracker_store.save_tracked_tasks(root, state.tracked_tasks)
    except Exception:
        _restore_snapshot(snapshot)
        raise

    written = [path for path in touched if path.exists()]
    commit_sha = _commit_store_mutation(
        data_root, written, snapshot, "process_scan_results", project_id
    )
    verdict = "approved" if approved else "rejected"
    _append_activity_log(
        data_root,
        _build_activity_entry(
            "process_scan_results",
            project_id,
            f"update {update_id} {verdict}; {len(applied)} actions applied",
            commit_sha,
        ),
    )
    logger.info(
        "project %s: update %d %s with %d actions", project_id, update_id, verdict, len(applied)
    )
    return {
        "update": update,
        "applied": applied,
        "history": state.history,
        "commitSha": commit_sha,
    }
