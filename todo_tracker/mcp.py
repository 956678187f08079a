"""Tool handler registration."""

# ruff: noqa: F401

from __future__ import annotations

from fastapi import FastAPI

from todo_tracker.mcp_constants import ACTIVITY_LOG_FILENAME
from todo_tracker.mcp_router import mcp_router

# Import modules to register routes with the shared router.
from todo_tracker import (
    mcp_activity,
    mcp_core,
    mcp_projects,
    mcp_scans,
    mcp_tools_endpoint,
)

# Re-export endpoints for tests and direct imports.
from todo_tracker.mcp_activity import read_activity_log
from todo_tracker.mcp_core import diff_tasks, parse_file
from todo_tracker.mcp_projects import (
    create_project,
    get_project,
    list_projects,
    save_scan_config,
)
from todo_tracker.mcp_scans import (
    get_pending_updates,
    get_scan_history,
    list_project_tasks,
    process_scan_results,
    scan_project,
)
from todo_tracker.mcp_tools_endpoint import list_tool_schemas


def register_mcp_handlers(app: FastAPI) -> None:
    """Attach tool routes to the FastAPI application."""
    app.include_router(mcp_router)
