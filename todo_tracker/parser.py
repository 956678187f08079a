"""Extraction of tagged tasks from file content."""

from __future__ import annotations

import re
import uuid
from typing import Sequence

from todo_tracker.matcher import match_line
from todo_tracker.scan_types import ParsedTask, ScanConfig

CONTEXT_BEFORE = 4
CONTEXT_AFTER = 6
MIN_TEXT_LENGTH = 3

_TRAILING_COMMENT_CLOSE = re.compile(r"\*/\s*$")


def _strip_comment_close(value: str) -> str:
    return _TRAILING_COMMENT_CLOSE.sub("", value).strip()


def extract_text(line: str, match_index: int, match_length: int) -> str:
    """Return the task description that follows the matched literal.

    When fewer than three characters follow the literal, the whole line is
    used instead so the task still says something readable.
    """
    stripped = _strip_comment_close(line[match_index + match_length :])
    if len(stripped) < MIN_TEXT_LENGTH:
        return _strip_comment_close(line)
    return stripped


def extract_context(
    lines: Sequence[str],
    line_index: int,
    before: int = CONTEXT_BEFORE,
    after: int = CONTEXT_AFTER,
) -> list[str]:
    start = max(0, line_index - before)
    end = min(len(lines), line_index + after)
    return list(lines[start:end])


def parse_file_content(
    content: str, file_path: str, config: ScanConfig
) -> list[ParsedTask]:
    """Parse one file into tasks, in line order."""
    lines = content.split("\n")
    tasks: list[ParsedTask] = []
    for index, line in enumerate(lines):
        match = match_line(line, config.tags)
        if match is None:
            continue
        tasks.append(
            ParsedTask(
                id=str(uuid.uuid4()),
                file=file_path,
                line=index + 1,
                tag=match.tag,
                text=extract_text(line, match.match_index, match.match_length),
                context=tuple(extract_context(lines, index)),
            )
        )
    return tasks
