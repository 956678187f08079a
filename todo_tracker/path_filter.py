"""Ignore-pattern filtering for repository paths."""

from __future__ import annotations

import re
from typing import Iterable

from todo_tracker.errors import TrackerError


def should_ignore_path(path: str, patterns: Iterable[str]) -> bool:
    """Return True when any pattern matches anywhere in ``path``.

    Patterns are regular expressions. An invalid one raises ``re.error``.
    """
    return any(re.search(pattern, path) for pattern in patterns)


def validate_ignore_patterns(patterns: Iterable[str]) -> None:
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise TrackerError(
                "INVALID_IGNORE_PATTERN",
                "Ignore pattern is not a valid regular expression.",
                {"pattern": pattern, "error": str(exc)},
            ) from exc
