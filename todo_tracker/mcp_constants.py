"""Shared constants for tracker endpoints."""

from __future__ import annotations

ACTIVITY_LOG_FILENAME = "activity.log"
PROJECTS_DIRNAME = "projects"
PROJECT_FILENAME = "project.json"
CODEBASE_TASKS_FILENAME = "codebase_tasks.json"
TRACKED_TASKS_FILENAME = "tasks.json"
SCANS_DIRNAME = "scans"
UPDATES_DIRNAME = "updates"

UPDATE_STATUSES = {"PENDING", "ACCEPTED", "REJECTED", "IGNORED"}
APPROVAL_ACTIONS = ("CREATE", "CONFIRM", "UNLINK", "DELETE", "COMPLETE", "IGNORE")
