import pytest
from jsonschema.exceptions import SchemaError

from flowcatalog.tools.registry import Tool, ToolArgumentError, ToolRegistry, UnknownToolError, tool_registry


def _echo_handler(context=None, **kwargs):
    return {"context": context, "args": kwargs}


def test_registry_register_and_list():
    registry = ToolRegistry()
    tool = Tool(
        name="echo",
        description="Echo arguments back",
        input_schema={"type": "object", "properties": {"text": {"type": "string"}}},
        handler=_echo_handler,
        tool_id="test.echo",
    )
    registry.register(tool)
    tools = registry.list_tools()
    assert tools[0]["id"] == "test.echo"
    assert tools[0]["side_effects"] == "none"
    assert registry.get_tool("test.echo") is tool


def test_registry_execute_passes_context():
    registry = ToolRegistry()
    registry.register(
        Tool(name="echo", description="", input_schema={"type": "object"}, handler=_echo_handler)
    )
    result = registry.execute("echo", {"text": "hi"}, context="ctx")
    assert result == {"context": "ctx", "args": {"text": "hi"}}


def test_registry_execute_unknown_tool():
    registry = ToolRegistry()
    try:
        registry.execute("missing", {}, None)
    except ValueError as exc:
        assert "Unknown tool" in str(exc)
        assert isinstance(exc, UnknownToolError)
    else:
        raise AssertionError("Expected ValueError for unknown tool")


def test_registry_rejects_invalid_arguments():
    registry = ToolRegistry()
    registry.register(
        Tool(
            name="strict",
            description="",
            input_schema={"type": "object", "properties": {"n": {"type": "integer"}}, "required": ["n"]},
            handler=_echo_handler,
        )
    )
    with pytest.raises(ToolArgumentError) as excinfo:
        registry.execute("strict", {"n": "one"}, None)
    assert "n: 'one' is not of type 'integer'" in str(excinfo.value)
    with pytest.raises(ToolArgumentError):
        registry.execute("strict", {}, None)


def test_registry_rejects_invalid_schema():
    registry = ToolRegistry()
    with pytest.raises(SchemaError):
        registry.register(Tool(name="bad", description="", input_schema={"type": 42}, handler=_echo_handler))


def test_catalog_tools_are_registered():
    ids = {tool["id"] for tool in tool_registry.list_tools()}
    assert {
        "list_categories",
        "list_nodes",
        "search_nodes",
        "get_node_schema",
        "get_node_instance",
        "list_templates",
        "get_template",
        "find_compatible_nodes",
        "validate_flow",
        "generate_flow_skeleton",
        "flowise_test_connection",
        "flowise_list_chatflows",
        "flowise_get_chatflow",
        "flowise_create_chatflow",
        "flowise_update_chatflow",
        "flowise_delete_chatflow",
    } <= ids
