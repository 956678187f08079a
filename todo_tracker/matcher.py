"""Tag matching for single source lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from todo_tracker.scan_types import TagMatcher


@dataclass(frozen=True)
class LineMatch:
    tag: str
    match_index: int
    match_length: int


def match_line(line: str, tags: Sequence[TagMatcher]) -> LineMatch | None:
    """Return the first configured literal found in ``line``.

    Tags are tried in configured order and literals in their listed order, so
    a tag listed earlier wins even when a later tag's literal appears earlier
    in the line. Empty literals never match.
    """
    for tag in tags:
        for literal in tag.match:
            if not literal:
                continue
            index = line.find(literal)
            if index == -1:
                continue
            return LineMatch(tag=tag.name, match_index=index, match_length=len(literal))
    return None
