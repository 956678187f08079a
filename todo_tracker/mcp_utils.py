"""Shared filesystem helpers for tracker endpoints."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def _atomic_write(target_path: Path, content: str) -> None:
    temp_path: Path | None = None
    target_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target_path.parent, delete=False
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


def _write_json(target_path: Path, payload: Any) -> None:
    _atomic_write(target_path, json.dumps(payload, indent=2, sort_keys=True) + "\n")


def _read_json(source_path: Path, default: Any = None) -> Any:
    if not source_path.exists():
        return default
    return json.loads(source_path.read_text(encoding="utf-8"))


def _snapshot_files(paths: list[Path]) -> dict[Path, str | None]:
    """Capture current contents so a failed mutation can be undone."""
    return {
        path: path.read_text(encoding="utf-8") if path.exists() else None
        for path in paths
    }


def _restore_snapshot(snapshot: dict[Path, str | None]) -> None:
    for path, content in snapshot.items():
        if content is None:
            try:
                if path.exists():
                    path.unlink()
            except OSError:
                pass
            continue
        _atomic_write(path, content)
