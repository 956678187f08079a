"""Command line access to the scanner and the diff engine.

    todo-tracker parse <folder> [config.json] [--branch NAME]
    todo-tracker diff <old.json> <new.json>

Both commands print JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from todo_tracker.config import DEFAULT_MAX_FILE_BYTES, configure_logging
from todo_tracker.diff import generate_diff
from todo_tracker.errors import TrackerError
from todo_tracker.scan_config import load_scan_config_file
from todo_tracker.scan_types import ParsedTask
from todo_tracker.scanner import read_repository, scan_files

logger = logging.getLogger(__name__)


def _load_task_file(path: Path) -> list[ParsedTask]:
    if not path.is_file():
        raise FileNotFoundError(f"Task file not found: {path}")
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Task file must contain a JSON array: {path}")
    return [ParsedTask.from_dict(item) for item in raw if isinstance(item, dict)]


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_parse(args: argparse.Namespace) -> int:
    config = load_scan_config_file(args.config)
    files, _ = read_repository(args.folder, args.branch, args.max_file_bytes)
    tasks = scan_files(files, config, max_workers=args.workers)
    logger.info("found %d tasks in %d files", len(tasks), len(files))
    _print_json([task.to_dict() for task in tasks])
    return 0


def _run_diff(args: argparse.Namespace) -> int:
    old_tasks = _load_task_file(args.old)
    new_tasks = _load_task_file(args.new)
    _print_json([diff.to_dict() for diff in generate_diff(old_tasks, new_tasks)])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo-tracker",
        description="Extract tagged comments from a repository and diff scans.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level for messages on stderr.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Scan a folder for tasks.")
    parse_cmd.add_argument("folder", type=Path, help="Repository folder to scan.")
    parse_cmd.add_argument(
        "config",
        type=Path,
        nargs="?",
        default=None,
        help="JSON scan config with tags and ignore patterns.",
    )
    parse_cmd.add_argument(
        "--branch",
        default=None,
        help="Read this branch through git instead of the working tree.",
    )
    parse_cmd.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of threads used to parse files.",
    )
    parse_cmd.add_argument(
        "--max-file-bytes",
        type=int,
        default=DEFAULT_MAX_FILE_BYTES,
        help="Skip files larger than this many bytes.",
    )
    parse_cmd.set_defaults(handler=_run_parse)

    diff_cmd = subparsers.add_parser("diff", help="Diff two parsed task files.")
    diff_cmd.add_argument("old", type=Path, help="Previously accepted tasks (JSON).")
    diff_cmd.add_argument("new", type=Path, help="Newly parsed tasks (JSON).")
    diff_cmd.set_defaults(handler=_run_diff)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper())
    try:
        return args.handler(args)
    except TrackerError as exc:
        print(f"ERROR: {exc.error.code}: {exc}", file=sys.stderr)
        return 2
    except (FileNotFoundError, TypeError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
