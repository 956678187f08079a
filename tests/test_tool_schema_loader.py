import json

import pytest

import todo_tracker.mcp  # noqa: F401  registers tool routes
from todo_tracker.mcp_router import mcp_router
from tools.mcp_tools import (
    TOOLS_JSON_PATH,
    ToolSchemaError,
    load_tool_definitions,
    tool_names,
)


def _write(tmp_path, payload):
    path = tmp_path / "tools.json"
    path.write_text(
        payload if isinstance(payload, str) else json.dumps(payload),
        encoding="utf-8",
    )
    return path


def _tool(name, properties=None, required=None):
    parameters = {"type": "object", "properties": properties or {}}
    if required is not None:
        parameters["required"] = required
    return {"type": "function", "function": {"name": name, "parameters": parameters}}


def test_load_tool_definitions_rejects_missing_file(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(tmp_path / "missing.json")


def test_load_tool_definitions_rejects_invalid_json(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(_write(tmp_path, "{not valid json"))


def test_load_tool_definitions_rejects_non_list(tmp_path):
    with pytest.raises(ToolSchemaError):
        load_tool_definitions(_write(tmp_path, {"type": "function"}))


def test_load_tool_definitions_rejects_duplicate_names(tmp_path):
    with pytest.raises(ToolSchemaError) as excinfo:
        load_tool_definitions(_write(tmp_path, [_tool("ping"), _tool("ping")]))

    assert "ping" in str(excinfo.value)


def test_load_tool_definitions_rejects_undeclared_required_fields(tmp_path):
    path = _write(tmp_path, [_tool("ping", {"a": {"type": "string"}}, ["a", "b"])])

    with pytest.raises(ToolSchemaError) as excinfo:
        load_tool_definitions(path)

    assert "b" in str(excinfo.value)


def test_load_tool_definitions_accepts_valid_schema(tmp_path):
    tools = load_tool_definitions(_write(tmp_path, [_tool("ping")]))

    assert tool_names(tools) == ["ping"]


def test_bundled_definitions_cover_every_tool_route():
    routes = {
        route.path[len("/tool:") :]
        for route in mcp_router.routes
        if getattr(route, "path", "").startswith("/tool:")
    }

    assert len(routes) == 12
    assert set(tool_names(load_tool_definitions(TOOLS_JSON_PATH))) == routes
