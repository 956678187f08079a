"""Validation of the repository path a project points at."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from todo_tracker.errors import TrackerError


def validate_repo_path(repos_root: Path, raw_path: str) -> Path:
    """Return the repository directory for ``raw_path`` under ``repos_root``.

    The path must be relative, must name a directory below the root rather
    than the root itself, and may not pass through ``..``, ``.git`` or a
    symlink.
    """
    if not isinstance(raw_path, str):
        raise TrackerError(
            "INVALID_TYPE",
            "Repository path must be a string.",
            {"path": str(raw_path), "type": type(raw_path).__name__},
        )

    candidate = PurePosixPath(raw_path.replace("\\", "/").strip())
    if candidate.is_absolute():
        raise TrackerError(
            "ABSOLUTE_PATH",
            "Repository path must be relative to the repos root.",
            {"path": raw_path},
        )

    parts = [part for part in candidate.parts if part != "."]
    if not parts:
        raise TrackerError(
            "EMPTY_PATH",
            "Repository path must name a directory below the repos root.",
            {"path": raw_path},
        )
    if ".." in parts:
        raise TrackerError(
            "PATH_TRAVERSAL",
            "Path traversal is not allowed.",
            {"path": raw_path},
        )
    if ".git" in parts:
        raise TrackerError(
            "INVALID_REPO_PATH",
            "Repository path may not point inside a .git directory.",
            {"path": raw_path},
        )
    if _contains_symlink(repos_root, parts):
        raise TrackerError(
            "PATH_SYMLINK",
            "Symlinked repository paths are not allowed.",
            {"path": raw_path},
        )
    return repos_root.joinpath(*parts)


def _contains_symlink(root: Path, parts: list[str]) -> bool:
    current = root
    for segment in parts:
        current = current / segment
        if current.is_symlink():
            return True
    return False
