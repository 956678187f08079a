"""Reconciliation of a new scan against the previously accepted task set."""

from __future__ import annotations

from typing import Sequence

from todo_tracker.scan_types import DiffInfo, DiffResult, ParsedTask


def same_text(a: str, b: str) -> bool:
    """Compare task texts ignoring only leading and trailing whitespace."""
    return a.strip() == b.strip()


def extract_diff_info(task: ParsedTask) -> DiffInfo:
    return DiffInfo(text=task.text, line=task.line, file=task.file, context=task.context)


def _find_text_match(
    old_tasks: Sequence[ParsedTask], claimed: set[int], new_task: ParsedTask
) -> int | None:
    for index, old_task in enumerate(old_tasks):
        if index in claimed:
            continue
        if same_text(old_task.text, new_task.text):
            return index
    return None


def _find_line_tag_match(
    old_tasks: Sequence[ParsedTask], claimed: set[int], new_task: ParsedTask
) -> int | None:
    # File is not part of this key: tasks on the same line of different files
    # can pair up as an UPDATE.
    for index, old_task in enumerate(old_tasks):
        if index in claimed:
            continue
        if (
            old_task.line == new_task.line
            and old_task.tag == new_task.tag
            and not same_text(old_task.text, new_task.text)
        ):
            return index
    return None


def generate_diff(
    old_tasks: Sequence[ParsedTask], new_tasks: Sequence[ParsedTask]
) -> list[DiffResult]:
    """Classify every task of both scans as SAME, MOVE, UPDATE, NEW or DELETE.

    Each new task, in order, claims the first unclaimed old task with the same
    text (SAME when line and file also match, MOVE otherwise). Failing that it
    claims the first unclaimed old task on the same line with the same tag
    (UPDATE), or becomes NEW. Old tasks left unclaimed are reported as DELETE
    after all new-task results, in their input order.

    Matching is greedy: an earlier new task can take a candidate a later one
    would also have matched. Neither input sequence is modified.
    """
    claimed: set[int] = set()
    results: list[DiffResult] = []

    for new_task in new_tasks:
        index = _find_text_match(old_tasks, claimed, new_task)
        if index is not None:
            claimed.add(index)
            old_task = old_tasks[index]
            unchanged = old_task.line == new_task.line and old_task.file == new_task.file
            results.append(
                DiffResult(
                    id=old_task.id,
                    tag=new_task.tag,
                    type="SAME" if unchanged else "MOVE",
                    old=extract_diff_info(old_task),
                    new=extract_diff_info(new_task),
                )
            )
            continue

        index = _find_line_tag_match(old_tasks, claimed, new_task)
        if index is not None:
            claimed.add(index)
            old_task = old_tasks[index]
            results.append(
                DiffResult(
                    id=old_task.id,
                    tag=new_task.tag,
                    type="UPDATE",
                    old=extract_diff_info(old_task),
                    new=extract_diff_info(new_task),
                )
            )
            continue

        results.append(
            DiffResult(
                id=new_task.id,
                tag=new_task.tag,
                type="NEW",
                new=extract_diff_info(new_task),
            )
        )

    for index, old_task in enumerate(old_tasks):
        if index in claimed:
            continue
        results.append(
            DiffResult(
                id=old_task.id,
                tag=old_task.tag,
                type="DELETE",
                old=extract_diff_info(old_task),
            )
        )
    return results
