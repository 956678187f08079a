import os

import pytest
from dulwich import porcelain

from todo_tracker.errors import TrackerError
from todo_tracker.repo_source import list_branch_files, list_worktree_files

AUTHOR = b"Test Author <test@example.com>"


def _commit_all(repo_root, files, message):
    paths = []
    for relative, content in files.items():
        path = repo_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        paths.append(str(path))
    porcelain.add(str(repo_root), paths=paths)
    return porcelain.commit(
        str(repo_root), message=message, author=AUTHOR, committer=AUTHOR
    )


def test_list_worktree_files_reads_sorted_relative_paths(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "b.py").write_text("# TODO: b\n", encoding="utf-8")
    (tmp_path / "a.py").write_text("# TODO: a\n", encoding="utf-8")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")

    files = list_worktree_files(tmp_path, max_file_bytes=1024)

    assert [item.path for item in files] == ["a.py", "src/b.py"]
    assert files[0].content == "# TODO: a\n"


def test_list_worktree_files_skips_large_files_and_symlinks(tmp_path):
    (tmp_path / "small.py").write_text("ok\n", encoding="utf-8")
    (tmp_path / "large.py").write_text("x" * 200, encoding="utf-8")
    os.symlink(tmp_path / "small.py", tmp_path / "link.py")

    files = list_worktree_files(tmp_path, max_file_bytes=100)

    assert [item.path for item in files] == ["small.py"]


def test_list_worktree_files_replaces_undecodable_bytes(tmp_path):
    (tmp_path / "blob.bin").write_bytes(b"TODO: \xff\xfe data")

    files = list_worktree_files(tmp_path, max_file_bytes=1024)

    assert "\ufffd" in files[0].content


def test_list_worktree_files_requires_directory(tmp_path):
    with pytest.raises(TrackerError) as excinfo:
        list_worktree_files(tmp_path / "missing", max_file_bytes=1024)

    assert excinfo.value.error.code == "REPO_NOT_FOUND"


def test_list_branch_files_reads_committed_tree(tmp_path):
    porcelain.init(str(tmp_path))
    first = _commit_all(tmp_path, {"app.py": "# TODO: first\n"}, b"first")
    porcelain.branch_create(str(tmp_path), "release")
    _commit_all(tmp_path, {"app.py": "# TODO: second\n", "lib/x.py": "pass\n"}, b"second")
    (tmp_path / "untracked.py").write_text("# TODO: local\n", encoding="utf-8")

    release_files, release_info = list_branch_files(tmp_path, "release", 1024)
    head_files, head_info = list_branch_files(tmp_path, None, 1024)

    assert [(item.path, item.content) for item in release_files] == [
        ("app.py", "# TODO: first\n")
    ]
    assert release_info.branch == "release"
    assert release_info.commit_sha == first.decode("ascii")
    assert release_info.commit_msg == "first"
    assert [item.path for item in head_files] == ["app.py", "lib/x.py"]
    assert head_info.commit_msg == "second"


def test_list_branch_files_rejects_unknown_branch(tmp_path):
    porcelain.init(str(tmp_path))
    _commit_all(tmp_path, {"app.py": "pass\n"}, b"init")

    with pytest.raises(TrackerError) as excinfo:
        list_branch_files(tmp_path, "nope", 1024)

    assert excinfo.value.error.code == "BRANCH_NOT_FOUND"


def test_list_branch_files_rejects_plain_directory(tmp_path):
    with pytest.raises(TrackerError) as excinfo:
        list_branch_files(tmp_path, "main", 1024)

    assert excinfo.value.error.code == "REPO_NOT_FOUND"
