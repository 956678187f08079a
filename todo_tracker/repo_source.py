"""Readers that turn a local repository into ``(path, content)`` pairs."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.object_store import iter_tree_contents
from dulwich.objects import S_ISGITLINK
from dulwich.repo import Repo

from todo_tracker.errors import TrackerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoFile:
    path: str
    content: str


@dataclass(frozen=True)
class BranchInfo:
    branch: str | None
    commit_sha: str | None
    commit_msg: str | None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "branch": self.branch,
            "commit_sha": self.commit_sha,
            "commit_msg": self.commit_msg,
        }


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def list_worktree_files(repo_root: Path, max_file_bytes: int) -> list[RepoFile]:
    """Read every regular file under ``repo_root``, skipping ``.git``."""
    if not repo_root.is_dir():
        raise TrackerError(
            "REPO_NOT_FOUND",
            "Repository directory does not exist.",
            {"path": str(repo_root)},
        )

    files: list[RepoFile] = []
    skipped = 0
    for root, dirnames, filenames in os.walk(repo_root, followlinks=False):
        root_path = Path(root)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if name != ".git" and not (root_path / name).is_symlink()
        )
        for filename in sorted(filenames):
            file_path = root_path / filename
            if file_path.is_symlink() or not file_path.is_file():
                continue
            if file_path.stat().st_size > max_file_bytes:
                skipped += 1
                continue
            files.append(
                RepoFile(
                    path=file_path.relative_to(repo_root).as_posix(),
                    content=_decode(file_path.read_bytes()),
                )
            )
    if skipped:
        logger.info("skipped %d files larger than %d bytes", skipped, max_file_bytes)
    files.sort(key=lambda item: item.path)
    return files


def _open_repo(repo_root: Path) -> Repo:
    try:
        return Repo(str(repo_root))
    except NotGitRepository as exc:
        raise TrackerError(
            "REPO_NOT_FOUND",
            "Path is not a git repository.",
            {"path": str(repo_root)},
        ) from exc


def _resolve_commit_sha(repo: Repo, branch: str | None) -> bytes:
    if branch is None:
        try:
            return repo.head()
        except KeyError as exc:
            raise TrackerError(
                "BRANCH_NOT_FOUND",
                "Repository has no commits on HEAD.",
                {"branch": "HEAD"},
            ) from exc

    ref_name = f"refs/heads/{branch}".encode("utf-8")
    try:
        return repo.refs[ref_name]
    except KeyError as exc:
        raise TrackerError(
            "BRANCH_NOT_FOUND",
            "Branch does not exist in repository.",
            {"branch": branch},
        ) from exc


def list_branch_files(
    repo_root: Path, branch: str | None, max_file_bytes: int
) -> tuple[list[RepoFile], BranchInfo]:
    """Read the committed tree of ``branch`` (``HEAD`` when None) through git."""
    if not repo_root.is_dir():
        raise TrackerError(
            "REPO_NOT_FOUND",
            "Repository directory does not exist.",
            {"path": str(repo_root)},
        )

    with _open_repo(repo_root) as repo:
        commit_sha = _resolve_commit_sha(repo, branch)
        try:
            commit = repo[commit_sha]
            entries = list(iter_tree_contents(repo.object_store, commit.tree))
        except (KeyError, AttributeError) as exc:
            raise TrackerError(
                "GIT_ERROR",
                "Repository tree could not be read.",
                {"path": str(repo_root), "branch": branch or "HEAD"},
            ) from exc

        files: list[RepoFile] = []
        for entry in entries:
            if S_ISGITLINK(entry.mode) or stat.S_ISLNK(entry.mode):
                continue
            blob = repo[entry.sha]
            data = blob.as_raw_string()
            if len(data) > max_file_bytes:
                continue
            files.append(RepoFile(path=_decode(entry.path), content=_decode(data)))

        info = BranchInfo(
            branch=branch,
            commit_sha=commit_sha.decode("ascii"),
            commit_msg=_decode(commit.message).strip() or None,
        )

    files.sort(key=lambda item: item.path)
    return files, info
