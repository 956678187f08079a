import json

import pytest

from todo_tracker import tracker_store
from todo_tracker.errors import TrackerError
from todo_tracker.repo_source import RepoFile
from todo_tracker.scan_types import ScanConfig, TagMatcher
from todo_tracker.scanner import collect_scan, run_scan, scan_files

CONFIG = ScanConfig(
    tags=(TagMatcher(name="TODO", match=("TODO:",)),),
    ignore=(r"^vendor/",),
)


def _setup_project(tmp_path, files, scan_branch=None):
    data_root = tmp_path / "data"
    repos_root = tmp_path / "repos"
    repo = repos_root / "app"
    for relative, content in files.items():
        path = repo / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    data_root.mkdir()
    project = tracker_store.build_project_record(
        "app", "App", "app", scan_branch, None
    )
    tracker_store.write_project(data_root, project)
    return data_root, repos_root, repo


def _shape(tasks):
    return [(task.file, task.line, task.tag, task.text) for task in tasks]


def test_scan_files_skips_ignored_paths_and_keeps_file_order():
    files = [
        RepoFile(path="a.py", content="# TODO: alpha one\n# TODO: alpha two\n"),
        RepoFile(path="vendor/lib.py", content="# TODO: vendored\n"),
        RepoFile(path="b.py", content="x = 1\n# TODO: beta one\n"),
    ]

    tasks = scan_files(files, CONFIG)

    assert _shape(tasks) == [
        ("a.py", 1, "TODO", "alpha one"),
        ("a.py", 2, "TODO", "alpha two"),
        ("b.py", 2, "TODO", "beta one"),
    ]


def test_scan_files_in_parallel_matches_serial_order():
    files = [
        RepoFile(path=f"f{index:02d}.py", content=f"# TODO: task {index}\n")
        for index in range(25)
    ]

    serial = scan_files(files, CONFIG, max_workers=1)
    parallel = scan_files(files, CONFIG, max_workers=8)

    assert _shape(parallel) == _shape(serial)


def test_scan_files_surfaces_invalid_ignore_pattern():
    config = ScanConfig(tags=CONFIG.tags, ignore=("[bad",))

    with pytest.raises(TrackerError) as excinfo:
        scan_files([RepoFile(path="a.py", content="")], config)

    assert excinfo.value.error.code == "INVALID_IGNORE_PATTERN"


def test_run_scan_stores_scan_and_pending_update(tmp_path):
    data_root, repos_root, _ = _setup_project(
        tmp_path,
        {
            "src/main.py": "# TODO: wire config\nprint('hi')\n",
            "node_modules/pkg/index.js": "// TODO: not ours\n",
        },
    )

    progress, update = collect_scan(run_scan(data_root, repos_root, "app"))

    assert progress[0] == "starting"
    assert progress[-1] == "done"
    assert "running diff" in progress
    assert update["status"] == "PENDING"
    assert update["old_id"] is None
    assert update["new_id"] == 1
    assert update["branch"] is None
    assert [item["type"] for item in update["data"]] == ["NEW"]
    assert update["data"][0]["data"]["new"]["file"] == "src/main.py"

    root = tracker_store.project_root(data_root, "app")
    scan = tracker_store.load_scan(root, 1)
    assert scan["accepted"] is None
    assert scan["tasks"][0]["text"] == "wire config"
    assert (data_root / ".git").is_dir()

    log_lines = (data_root / "activity.log").read_text(encoding="utf-8").splitlines()
    entry = json.loads(log_lines[-1])
    assert entry["operation"] == "scan_project"
    assert entry["project"] == "app"


def test_run_scan_supersedes_older_pending_updates(tmp_path):
    data_root, repos_root, _ = _setup_project(tmp_path, {"a.py": "# TODO: one\n"})

    _, first = collect_scan(run_scan(data_root, repos_root, "app"))
    _, second = collect_scan(run_scan(data_root, repos_root, "app"))

    root = tracker_store.project_root(data_root, "app")
    assert tracker_store.load_update(root, first["id"])["status"] == "IGNORED"
    assert second["status"] == "PENDING"
    # Nothing was accepted yet, so the second scan still diffs against nothing.
    assert second["old_id"] is None
    assert [item["type"] for item in second["data"]] == ["NEW"]
    assert [item["id"] for item in tracker_store.list_updates(root, "PENDING")] == [
        second["id"]
    ]


def test_run_scan_uses_stored_project_config(tmp_path):
    data_root, repos_root, _ = _setup_project(
        tmp_path, {"a.py": "# TODO: skip\n# HACK: keep\n"}
    )
    project = tracker_store.load_project(data_root, "app")
    project["config"] = {"tags": [{"name": "HACK", "match": ["HACK:"]}], "ignore": []}
    tracker_store.write_project(data_root, project)

    _, update = collect_scan(run_scan(data_root, repos_root, "app"))

    assert [(item["tag"], item["data"]["new"]["text"]) for item in update["data"]] == [
        ("HACK", "keep")
    ]


def test_run_scan_requires_existing_project(tmp_path):
    data_root = tmp_path / "data"
    data_root.mkdir()

    with pytest.raises(TrackerError) as excinfo:
        collect_scan(run_scan(data_root, tmp_path, "missing"))

    assert excinfo.value.error.code == "PROJECT_NOT_FOUND"


def test_run_scan_reports_missing_repository(tmp_path):
    data_root, repos_root, repo = _setup_project(tmp_path, {})
    assert not repo.exists()

    with pytest.raises(TrackerError) as excinfo:
        collect_scan(run_scan(data_root, repos_root, "app"))

    assert excinfo.value.error.code == "REPO_NOT_FOUND"
    root = tracker_store.project_root(data_root, "app")
    assert tracker_store.list_scans(root) == []
