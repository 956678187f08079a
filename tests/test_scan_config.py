import json

import pytest

from todo_tracker.errors import TrackerError
from todo_tracker.scan_config import (
    DEFAULT_SCAN_CONFIG,
    load_scan_config_file,
    parse_scan_config,
    scan_config_to_dict,
)
from todo_tracker.scan_types import TagMatcher


def test_parse_scan_config_builds_tags_in_order():
    config = parse_scan_config(
        {
            "tags": [
                {"name": "FIXME", "match": ["FIXME:"]},
                {"name": "TODO", "match": ["TODO:", "@todo"]},
            ],
            "ignore": ["node_modules"],
        }
    )

    assert config.tags == (
        TagMatcher(name="FIXME", match=("FIXME:",)),
        TagMatcher(name="TODO", match=("TODO:", "@todo")),
    )
    assert config.ignore == ("node_modules",)


def test_parse_scan_config_accepts_empty_object():
    config = parse_scan_config({})

    assert config.tags == ()
    assert config.ignore == ()


@pytest.mark.parametrize(
    ("raw", "code"),
    [
        ([], "INVALID_TYPE"),
        ({"tags": "TODO"}, "INVALID_TYPE"),
        ({"ignore": [1]}, "INVALID_TYPE"),
        ({"extra": True}, "UNKNOWN_FIELD"),
        ({"tags": [{"name": " ", "match": []}]}, "INVALID_CONFIG"),
        ({"tags": [{"name": "A", "match": "A"}]}, "INVALID_TYPE"),
        (
            {"tags": [{"name": "A", "match": ["a"]}, {"name": "A", "match": ["b"]}]},
            "INVALID_CONFIG",
        ),
        ({"ignore": ["(broken"]}, "INVALID_IGNORE_PATTERN"),
    ],
)
def test_parse_scan_config_rejects_bad_input(raw, code):
    with pytest.raises(TrackerError) as excinfo:
        parse_scan_config(raw)

    assert excinfo.value.error.code == code


def test_default_config_survives_serialization():
    assert parse_scan_config(scan_config_to_dict(DEFAULT_SCAN_CONFIG)) == DEFAULT_SCAN_CONFIG


def test_load_scan_config_file_defaults_without_path():
    assert load_scan_config_file(None) is DEFAULT_SCAN_CONFIG


def test_load_scan_config_file_reads_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"tags": [{"name": "HACK", "match": ["HACK:"]}]}),
        encoding="utf-8",
    )

    config = load_scan_config_file(path)

    assert [tag.name for tag in config.tags] == ["HACK"]


def test_load_scan_config_file_reports_missing_and_invalid(tmp_path):
    with pytest.raises(TrackerError) as missing:
        load_scan_config_file(tmp_path / "nope.json")
    assert missing.value.error.code == "CONFIG_NOT_FOUND"

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(TrackerError) as invalid:
        load_scan_config_file(broken)
    assert invalid.value.error.code == "INVALID_CONFIG"
