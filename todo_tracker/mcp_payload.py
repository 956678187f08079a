"""Payload validation helpers for tool endpoints."""

from __future__ import annotations

import re
from typing import Any

from todo_tracker.errors import TrackerError

_PROJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise TrackerError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise TrackerError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_fields(payload: dict[str, Any], fields: list[str]) -> None:
    missing = [name for name in fields if name not in payload]
    if missing:
        raise TrackerError(
            "MISSING_FIELDS",
            f"{', '.join(missing)} required.",
            {"fields": missing},
        )


def _require_string(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise TrackerError(
            "INVALID_TYPE",
            f"{field} must be a non-empty string.",
            {field: str(value)},
        )
    return value.strip()


def _optional_string(payload: dict[str, Any], field: str) -> str | None:
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TrackerError(
            "INVALID_TYPE",
            f"{field} must be a string.",
            {field: str(value)},
        )
    return value.strip() or None


def _require_project_id(payload: dict[str, Any]) -> str:
    _require_fields(payload, ["project_id"])
    project_id = payload["project_id"]
    if not isinstance(project_id, str) or not _PROJECT_ID_PATTERN.fullmatch(project_id):
        raise TrackerError(
            "INVALID_PROJECT_ID",
            "project_id must be 1-64 letters, digits, dashes or underscores.",
            {"project_id": str(project_id)},
        )
    return project_id
