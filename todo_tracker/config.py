"""Configuration loading for the tracker service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TODO_TRACKER_"
DEFAULT_SCAN_WORKERS = 4
DEFAULT_MAX_FILE_BYTES = 1024 * 1024
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    data_path: Path
    repos_path: Path
    require_user_header: bool
    service_token: str | None
    log_level: str = "INFO"
    scan_workers: int = DEFAULT_SCAN_WORKERS
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        if "=" not in stripped:
            continue
        name, value = stripped.split("=", 1)
        name = name.strip()
        if name != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, key: str) -> str | None:
    raw_value = os.environ.get(key)
    if raw_value is None:
        raw_value = _read_dotenv_value(dotenv_path, key)
    if raw_value is None:
        return None
    return raw_value.strip() or None


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_positive_int(raw_value: str | None, *, default: int, key: str) -> int:
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be greater than zero.")
    return value


def _resolve_path(raw_path: str, dotenv_dir: Path) -> Path:
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = dotenv_dir / path
    return path.resolve()


def load_config() -> AppConfig:
    """Load configuration from the environment, falling back to ./.env."""
    cwd = Path.cwd()
    dotenv_path = cwd / ".env"

    data_key = f"{ENV_PREFIX}DATA_PATH"
    raw_data_path = _read_setting(dotenv_path, data_key)
    if not raw_data_path:
        raise ConfigError(
            f"{data_key} is required; set it to the tracker data root path."
        )
    data_path = _resolve_path(raw_data_path, cwd)

    repos_key = f"{ENV_PREFIX}REPOS_PATH"
    raw_repos_path = _read_setting(dotenv_path, repos_key)
    repos_path = _resolve_path(raw_repos_path, cwd) if raw_repos_path else data_path

    require_user_key = f"{ENV_PREFIX}REQUIRE_USER_HEADER"
    require_user_header = _read_bool(
        _read_setting(dotenv_path, require_user_key),
        default=True,
        key=require_user_key,
    )

    service_token = _read_setting(dotenv_path, f"{ENV_PREFIX}SERVICE_TOKEN")

    log_level_key = f"{ENV_PREFIX}LOG_LEVEL"
    log_level = (_read_setting(dotenv_path, log_level_key) or "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(
            f"{log_level_key} must be one of {', '.join(sorted(_LOG_LEVELS))}."
        )

    workers_key = f"{ENV_PREFIX}SCAN_WORKERS"
    scan_workers = _read_positive_int(
        _read_setting(dotenv_path, workers_key),
        default=DEFAULT_SCAN_WORKERS,
        key=workers_key,
    )

    max_bytes_key = f"{ENV_PREFIX}MAX_FILE_BYTES"
    max_file_bytes = _read_positive_int(
        _read_setting(dotenv_path, max_bytes_key),
        default=DEFAULT_MAX_FILE_BYTES,
        key=max_bytes_key,
    )

    return AppConfig(
        data_path=data_path,
        repos_path=repos_path,
        require_user_header=require_user_header,
        service_token=service_token,
        log_level=log_level,
        scan_workers=scan_workers,
        max_file_bytes=max_file_bytes,
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
