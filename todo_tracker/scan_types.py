"""Value types shared by the scanner, the diff engine and the store."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Mapping

DiffType = Literal["SAME", "MOVE", "UPDATE", "NEW", "DELETE"]


@dataclass(frozen=True)
class TagMatcher:
    """A named tag and the literals that identify it, in priority order."""

    name: str
    match: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "match": list(self.match)}


@dataclass(frozen=True)
class ScanConfig:
    tags: tuple[TagMatcher, ...] = ()
    ignore: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedTask:
    """One tagged line found by a scan.

    ``id`` is generated per scan. Two scans never share ids for the same
    comment, so continuity between scans comes from the diff engine only.
    """

    id: str
    file: str
    line: int
    tag: str
    text: str
    context: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file": self.file,
            "line": self.line,
            "tag": self.tag,
            "text": self.text,
            "context": list(self.context),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ParsedTask":
        """Build a task from a stored or user-supplied record.

        Stored records may be sparse, so missing fields fall back to empty
        values rather than failing.
        """
        return cls(
            id=str(raw.get("id") or ""),
            file=str(raw.get("file") or ""),
            line=_line_number(raw.get("line")),
            tag=str(raw.get("tag") or "todo"),
            text=str(raw.get("text") or ""),
            context=tuple(context_to_list(raw.get("context"))),
        )


@dataclass(frozen=True)
class DiffInfo:
    text: str
    line: int
    file: str
    context: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "line": self.line,
            "file": self.file,
            "context": list(self.context),
        }


@dataclass(frozen=True)
class DiffResult:
    id: str
    tag: str
    type: DiffType
    old: DiffInfo | None = None
    new: DiffInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tag": self.tag,
            "type": self.type,
            "data": {
                "old": self.old.to_dict() if self.old is not None else None,
                "new": self.new.to_dict() if self.new is not None else None,
            },
        }


def _line_number(value: Any) -> int:
    """Read a 1-based line number; missing values become 0."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise TypeError("line must be an integer, not a boolean.")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"line must be a whole number: {value!r}")
    return int(value)


def context_to_list(context: Any) -> list[str]:
    """Normalize a stored context value into a list of lines."""
    if not context:
        return []
    if isinstance(context, (list, tuple)):
        return [
            str(item)
            for item in context
            if isinstance(item, (str, int, float)) and not isinstance(item, bool)
        ]
    if isinstance(context, str):
        try:
            parsed = json.loads(context)
        except json.JSONDecodeError:
            return [context]
        if isinstance(parsed, str):
            return [parsed]
        return context_to_list(parsed)
    return []
