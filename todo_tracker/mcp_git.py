"""Git helpers for committing tracker store changes."""

from __future__ import annotations

import logging
from pathlib import Path

from dulwich import porcelain
from dulwich.repo import Repo

from todo_tracker.errors import TrackerError
from todo_tracker.mcp_utils import _restore_snapshot, _snapshot_files

logger = logging.getLogger(__name__)


def _ensure_git_repo(data_root: Path) -> Repo:
    git_dir = data_root / ".git"
    try:
        if git_dir.exists():
            return Repo(data_root)
        return porcelain.init(data_root)
    except Exception as exc:
        raise TrackerError(
            "GIT_ERROR",
            "Git repository could not be initialized.",
            {"path": str(data_root)},
        ) from exc


def _commit_changes(
    repo: Repo,
    relative_paths: list[Path],
    operation: str,
    target: str,
) -> str:
    repo.get_worktree().stage([path.as_posix() for path in relative_paths])
    commit_message = f"{operation}: {target}"
    commit_sha = porcelain.commit(repo, message=commit_message)
    if isinstance(commit_sha, bytes):
        return commit_sha.decode("ascii")
    return str(commit_sha)


def _commit_store_mutation(
    data_root: Path,
    touched_paths: list[Path],
    snapshot: dict[Path, str | None],
    operation: str,
    target: str,
) -> str:
    """Commit files already written under ``data_root``.

    On failure the files are restored from ``snapshot`` and a ``GIT_ERROR`` is
    raised.
    """
    relative_paths = [path.relative_to(data_root) for path in touched_paths]
    repo = None
    try:
        repo = _ensure_git_repo(data_root)
        return _commit_changes(repo, relative_paths, operation, target)
    except Exception as exc:
        logger.warning("commit for %s on %s failed; rolling back", operation, target)
        _restore_snapshot(snapshot)
        if repo is not None:
            try:
                repo.get_worktree().stage(
                    [path.as_posix() for path in relative_paths]
                )
            except Exception:
                logger.debug("re-staging after rollback failed", exc_info=True)
        raise TrackerError(
            "GIT_ERROR",
            "Git commit failed; mutation rolled back.",
            {"operation": operation, "target": target},
        ) from exc
