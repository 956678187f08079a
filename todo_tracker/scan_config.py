"""Scan configuration parsing and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from todo_tracker.errors import TrackerError
from todo_tracker.mcp_payload import _reject_unknown_fields
from todo_tracker.path_filter import validate_ignore_patterns
from todo_tracker.scan_types import ScanConfig, TagMatcher

DEFAULT_SCAN_CONFIG = ScanConfig(
    tags=(
        TagMatcher(name="TODO", match=("TODO:", "TODO ", "@todo")),
        TagMatcher(name="FIXME", match=("FIXME:", "FIXME ")),
        TagMatcher(name="HACK", match=("HACK:", "HACK ")),
        TagMatcher(name="BUG", match=("BUG:",)),
        TagMatcher(name="NOTE", match=("NOTE:",)),
    ),
    ignore=(
        r"node_modules",
        r"(^|/)\.git/",
        r"(^|/)dist/",
        r"(^|/)build/",
        r"(^|/)\.venv/",
        r"__pycache__",
        r"\.lock$",
        r"package-lock\.json$",
    ),
)


def parse_scan_config(raw: Any) -> ScanConfig:
    """Validate an untrusted config object and build a ``ScanConfig``."""
    if not isinstance(raw, dict):
        raise TrackerError(
            "INVALID_TYPE",
            "config must be an object.",
            {"type": type(raw).__name__},
        )
    _reject_unknown_fields(raw, {"tags", "ignore"})

    raw_tags = raw.get("tags", [])
    raw_ignore = raw.get("ignore", [])
    if not isinstance(raw_tags, list):
        raise TrackerError(
            "INVALID_TYPE",
            "config.tags must be a list.",
            {"tags": str(raw_tags)},
        )
    if not isinstance(raw_ignore, list) or not all(
        isinstance(pattern, str) for pattern in raw_ignore
    ):
        raise TrackerError(
            "INVALID_TYPE",
            "config.ignore must be a list of strings.",
            {"ignore": str(raw_ignore)},
        )

    tags: list[TagMatcher] = []
    seen_names: set[str] = set()
    for index, raw_tag in enumerate(raw_tags):
        tag = _parse_tag(raw_tag, index)
        if tag.name in seen_names:
            raise TrackerError(
                "INVALID_CONFIG",
                "Tag names must be unique.",
                {"name": tag.name},
            )
        seen_names.add(tag.name)
        tags.append(tag)

    validate_ignore_patterns(raw_ignore)
    return ScanConfig(tags=tuple(tags), ignore=tuple(raw_ignore))


def _parse_tag(raw_tag: Any, index: int) -> TagMatcher:
    if not isinstance(raw_tag, dict):
        raise TrackerError(
            "INVALID_TYPE",
            "Each tag must be an object.",
            {"index": index},
        )
    _reject_unknown_fields(raw_tag, {"name", "match"})

    name = raw_tag.get("name")
    if not isinstance(name, str) or not name.strip():
        raise TrackerError(
            "INVALID_CONFIG",
            "Tag name must be a non-empty string.",
            {"index": index},
        )

    match = raw_tag.get("match", [])
    if not isinstance(match, list) or not all(isinstance(item, str) for item in match):
        raise TrackerError(
            "INVALID_TYPE",
            "Tag match must be a list of strings.",
            {"name": name},
        )
    return TagMatcher(name=name.strip(), match=tuple(match))


def scan_config_to_dict(config: ScanConfig) -> dict[str, Any]:
    return {
        "tags": [tag.to_dict() for tag in config.tags],
        "ignore": list(config.ignore),
    }


def load_scan_config_file(path: Path | None) -> ScanConfig:
    """Read a JSON scan config from disk, or return the default config."""
    if path is None:
        return DEFAULT_SCAN_CONFIG
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TrackerError(
            "CONFIG_NOT_FOUND",
            "Scan config file could not be read.",
            {"path": str(path)},
        ) from exc
    except json.JSONDecodeError as exc:
        raise TrackerError(
            "INVALID_CONFIG",
            "Scan config file is not valid JSON.",
            {"path": str(path), "error": str(exc)},
        ) from exc
    return parse_scan_config(raw)
