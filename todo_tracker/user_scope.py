"""Request-scoped user identity and data root helpers."""

from __future__ import annotations

import re
from pathlib import Path

from fastapi import Request

from todo_tracker.config import DEFAULT_MAX_FILE_BYTES, DEFAULT_SCAN_WORKERS
from todo_tracker.errors import TrackerError

USER_ID_HEADER = "X-Todo-Tracker-User-Id"
SERVICE_TOKEN_HEADER = "X-Todo-Tracker-Service-Token"
AUTH_EXEMPT_PATHS = {"/health"}

_VALID_USER_ID = re.compile(r"^[A-Za-z0-9_]{3,128}$")


def normalize_user_id(raw_user_id: str) -> str:
    """Normalize and validate a user id from request context."""
    if not isinstance(raw_user_id, str):
        raise TrackerError(
            "INVALID_USER_ID",
            "User id must be a string.",
            {"type": type(raw_user_id).__name__},
        )

    normalized = raw_user_id.strip().replace("-", "")
    if not normalized:
        raise TrackerError(
            "AUTH_REQUIRED",
            "Missing required user identity header.",
            {"header": USER_ID_HEADER},
        )

    if not _VALID_USER_ID.fullmatch(normalized):
        raise TrackerError(
            "INVALID_USER_ID",
            "User id contains invalid characters.",
            {"user_id": raw_user_id},
        )
    return normalized


def resolve_user_data_root(base_root: Path, user_id: str) -> Path:
    """Resolve the data root that holds one user's projects."""
    return base_root / "users" / normalize_user_id(user_id)


def get_request_user_id(request: Request) -> str:
    """Read and cache normalized user id from request state/headers."""
    cached = getattr(request.state, "user_id", None)
    if isinstance(cached, str) and cached.strip():
        normalized = normalize_user_id(cached)
        request.state.user_id = normalized
        return normalized

    raw_user_id = request.headers.get(USER_ID_HEADER)
    if raw_user_id is None:
        raise TrackerError(
            "AUTH_REQUIRED",
            "Missing required user identity header.",
            {"header": USER_ID_HEADER},
        )

    normalized = normalize_user_id(raw_user_id)
    request.state.user_id = normalized
    return normalized


def _app_setting(request: Request, name: str):
    config = getattr(request.app.state, "config", None)
    if config is not None and hasattr(config, name):
        return getattr(config, name)
    return getattr(request.app.state, name, None)


def get_request_data_root(request: Request) -> Path:
    """Resolve and create the user-scoped data root for a request."""
    base_root = Path(_app_setting(request, "data_path"))
    scoped_root = resolve_user_data_root(base_root, get_request_user_id(request))
    scoped_root.mkdir(parents=True, exist_ok=True)
    return scoped_root


def get_request_repos_root(request: Request) -> Path:
    """Return the directory that project repository paths are relative to."""
    repos_path = _app_setting(request, "repos_path")
    if repos_path is None:
        repos_path = _app_setting(request, "data_path")
    return Path(repos_path)


def get_request_scan_settings(request: Request) -> tuple[int, int]:
    """Return ``(scan_workers, max_file_bytes)`` for the running app."""
    workers = _app_setting(request, "scan_workers") or DEFAULT_SCAN_WORKERS
    max_bytes = _app_setting(request, "max_file_bytes") or DEFAULT_MAX_FILE_BYTES
    return int(workers), int(max_bytes)
