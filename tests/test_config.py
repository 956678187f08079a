import pytest

from todo_tracker.config import (
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_SCAN_WORKERS,
    ConfigError,
    load_config,
)

_KEYS = [
    "TODO_TRACKER_DATA_PATH",
    "TODO_TRACKER_REPOS_PATH",
    "TODO_TRACKER_REQUIRE_USER_HEADER",
    "TODO_TRACKER_SERVICE_TOKEN",
    "TODO_TRACKER_LOG_LEVEL",
    "TODO_TRACKER_SCAN_WORKERS",
    "TODO_TRACKER_MAX_FILE_BYTES",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_config_requires_data_path(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert "TODO_TRACKER_DATA_PATH" in str(excinfo.value)


def test_load_config_reads_env_with_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TODO_TRACKER_DATA_PATH", str(tmp_path))

    config = load_config()

    assert config.data_path == tmp_path.resolve()
    assert config.repos_path == tmp_path.resolve()
    assert config.require_user_header is True
    assert config.service_token is None
    assert config.log_level == "INFO"
    assert config.scan_workers == DEFAULT_SCAN_WORKERS
    assert config.max_file_bytes == DEFAULT_MAX_FILE_BYTES


def test_load_config_reads_dotenv_relative_paths(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "# tracker settings",
                'TODO_TRACKER_DATA_PATH="./data"',
                "export TODO_TRACKER_REPOS_PATH=./repos",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.data_path == (tmp_path / "data").resolve()
    assert config.repos_path == (tmp_path / "repos").resolve()


def test_load_config_prefers_env_over_dotenv(monkeypatch, tmp_path):
    env_root = tmp_path / "env"
    (tmp_path / ".env").write_text(
        f"TODO_TRACKER_DATA_PATH={tmp_path / 'dotenv'}\n", encoding="utf-8"
    )
    monkeypatch.setenv("TODO_TRACKER_DATA_PATH", str(env_root))
    monkeypatch.chdir(tmp_path)

    assert load_config().data_path == env_root.resolve()


def test_load_config_reads_service_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TODO_TRACKER_DATA_PATH", str(tmp_path))
    monkeypatch.setenv("TODO_TRACKER_REQUIRE_USER_HEADER", "off")
    monkeypatch.setenv("TODO_TRACKER_SERVICE_TOKEN", "secret")
    monkeypatch.setenv("TODO_TRACKER_LOG_LEVEL", "debug")
    monkeypatch.setenv("TODO_TRACKER_SCAN_WORKERS", "2")
    monkeypatch.setenv("TODO_TRACKER_MAX_FILE_BYTES", "4096")

    config = load_config()

    assert config.require_user_header is False
    assert config.service_token == "secret"
    assert config.log_level == "DEBUG"
    assert config.scan_workers == 2
    assert config.max_file_bytes == 4096


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("TODO_TRACKER_REQUIRE_USER_HEADER", "maybe"),
        ("TODO_TRACKER_LOG_LEVEL", "LOUD"),
        ("TODO_TRACKER_SCAN_WORKERS", "0"),
        ("TODO_TRACKER_MAX_FILE_BYTES", "lots"),
    ],
)
def test_load_config_rejects_invalid_values(monkeypatch, tmp_path, key, value):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TODO_TRACKER_DATA_PATH", str(tmp_path))
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert key in str(excinfo.value)
