"""The tool catalog stays 1:1 with the dispatcher and the MCP server."""

import pytest
from jsonschema import Draft7Validator

from core.catalog import TOOL_CATALOG, get_tool_schema

EXPECTED_TOOLS = {
    "list_projects",
    "set_active_project",
    "get_service_health",
    "get_cloud_cost_breakdown",
    "trigger_deployment",
    "get_ci_pipeline_status",
    "test_iam_identity",
    "explore_logs",
    "manage_resource",
    "audit_security_findings",
    "get_optimization_recommendations",
    "check_quota_status",
    "generate_architecture_diagram",
}


def test_catalog_lists_every_tool_once():
    names = [tool.name for tool in TOOL_CATALOG]

    assert len(names) == len(set(names))
    assert set(names) == EXPECTED_TOOLS


def test_every_catalog_entry_has_a_handler_and_vice_versa(dispatcher):
    assert dispatcher.handler_names == {tool.name for tool in TOOL_CATALOG}


def test_dispatcher_lists_the_catalog(dispatcher):
    assert [t["name"] for t in dispatcher.list_tools()] == [t.name for t in TOOL_CATALOG]


@pytest.mark.parametrize("tool", TOOL_CATALOG, ids=lambda t: t.name)
def test_input_schemas_are_valid_draft7(tool):
    Draft7Validator.check_schema(dict(tool.input_schema))
    assert tool.input_schema["type"] == "object"
    assert tool.input_schema["additionalProperties"] is False
    assert tool.description


def test_get_tool_schema():
    assert get_tool_schema("manage_resource").input_schema["required"] == [
        "resourceType", "action", "resourceName", "location",
    ]
    assert get_tool_schema("nope") is None


def test_listed_schemas_are_copies(dispatcher):
    listed = dispatcher.list_tools()
    listed[0]["inputSchema"]["properties"]["injected"] = {"type": "string"}

    assert "injected" not in TOOL_CATALOG[0].input_schema["properties"]


def test_mcp_server_registers_every_catalog_tool():
    pytest.importorskip("fastmcp")
    from tools import mcp_server

    for name in EXPECTED_TOOLS:
        assert hasattr(mcp_server, name), name
