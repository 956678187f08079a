"""Scan orchestration: repository files in, pending diff update out."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Generator, Iterable

from todo_tracker import tracker_store
from todo_tracker.diff import generate_diff
from todo_tracker.mcp_activity import _append_activity_log, _build_activity_entry
from todo_tracker.mcp_git import _commit_store_mutation
from todo_tracker.mcp_utils import _restore_snapshot, _snapshot_files
from todo_tracker.parser import parse_file_content
from todo_tracker.path_filter import should_ignore_path, validate_ignore_patterns
from todo_tracker.paths import validate_repo_path
from todo_tracker.repo_source import (
    BranchInfo,
    RepoFile,
    list_branch_files,
    list_worktree_files,
)
from todo_tracker.scan_types import ParsedTask, ScanConfig

logger = logging.getLogger(__name__)


def scan_files(
    files: Iterable[RepoFile], config: ScanConfig, max_workers: int = 1
) -> list[ParsedTask]:
    """Extract tasks from every non-ignored file, concatenated in file order."""
    validate_ignore_patterns(config.ignore)
    kept = [item for item in files if not should_ignore_path(item.path, config.ignore)]

    def _parse(item: RepoFile) -> list[ParsedTask]:
        return parse_file_content(item.content, item.path, config)

    if max_workers > 1 and len(kept) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            per_file = list(executor.map(_parse, kept))
    else:
        per_file = [_parse(item) for item in kept]

    tasks = [task for file_tasks in per_file for task in file_tasks]
    logger.debug("extracted %d tasks from %d files", len(tasks), len(kept))
    return tasks


def read_repository(
    repo_root: Path, scan_branch: str | None, max_file_bytes: int
) -> tuple[list[RepoFile], BranchInfo]:
    """Read a branch through git when one is configured, else the working tree."""
    if scan_branch:
        return list_branch_files(repo_root, scan_branch, max_file_bytes)
    files = list_worktree_files(repo_root, max_file_bytes)
    return files, BranchInfo(branch=None, commit_sha=None, commit_msg=None)


def run_scan(
    data_root: Path,
    repos_root: Path,
    project_id: str,
    *,
    scan_workers: int = 1,
    max_file_bytes: int = 1024 * 1024,
) -> Generator[str, None, dict[str, Any]]:
    """Scan a project's repository and store a pending update.

    Yields progress messages and returns the stored update record. Older
    pending updates for the project are marked IGNORED.
    """
    yield "starting"
    project = tracker_store.load_project(data_root, project_id)

    yield "loading config"
    config = tracker_store.project_scan_config(project)
    repo_root = validate_repo_path(repos_root, project["repo_path"])

    yield "reading repository"
    files, branch_info = read_repository(
        repo_root, project.get("scan_branch"), max_file_bytes
    )

    yield "scanning repo"
    new_tasks = scan_files(files, config, max_workers=scan_workers)
    logger.info(
        "project %s: %d tasks in %d files", project_id, len(new_tasks), len(files)
    )

    root = tracker_store.project_root(data_root, project_id)
    scan_id, scan_file = tracker_store.next_scan_path(root)
    update_id, update_file = tracker_store.next_update_path(root)
    pending = tracker_store.list_updates(root, status="PENDING")
    pending_files = [tracker_store.update_path(root, item["id"]) for item in pending]
    touched = [scan_file, update_file, *pending_files]
    snapshot = _snapshot_files(touched)

    try:
        yield "saving scan"
        tracker_store.write_scan(scan_file, scan_id, new_tasks)

        yield "finding existing scan"
        accepted = tracker_store.latest_accepted_scan(root)
        old_id = accepted["id"] if accepted is not None else None
        old_tasks = (
            tracker_store.old_tasks_for_scan(root, old_id) if old_id is not None else []
        )

        yield "running diff"
        diffs = generate_diff(old_tasks, new_tasks)

        yield "saving update"
        for item, path in zip(pending, pending_files):
            item["status"] = "IGNORED"
            tracker_store.write_update(path, item)

        update = {
            "id": update_id,
            "project_id": project_id,
            "new_id": scan_id,
            "old_id": old_id,
            "status": "PENDING",
            "data": [diff.to_dict() for diff in diffs],
            "created_at": tracker_store.utc_now(),
            **branch_info.to_dict(),
        }
        tracker_store.write_update(update_file, update)
    except Exception:
        _restore_snapshot(snapshot)
        raise

    commit_sha = _commit_store_mutation(
        data_root, touched, snapshot, "scan_project", project_id
    )
    _append_activity_log(
        data_root,
        _build_activity_entry(
            "scan_project",
            project_id,
            f"scan {scan_id}: {len(diffs)} changes pending review",
            commit_sha,
        ),
    )
    logger.info(
        "project %s: stored update %d (%d diff entries, %d superseded)",
        project_id,
        update_id,
        len(diffs),
        len(pending),
    )

    yield "done"
    return update


def collect_scan(scan: Generator[str, None, dict[str, Any]]) -> tuple[list[str], dict[str, Any]]:
    """Drain a ``run_scan`` generator into its messages and final update."""
    progress: list[str] = []
    while True:
        try:
            progress.append(next(scan))
        except StopIteration as stop:
            return progress, stop.value
