"""In-process registry for tool discovery and execution."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from jsonschema import Draft202012Validator


class UnknownToolError(ValueError):
    """No tool is registered under the requested id."""


class ToolArgumentError(ValueError):
    """Tool arguments do not match the tool's input schema."""


@dataclass
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Callable[..., Dict[str, Any]]
    side_effects: str = "none"
    tool_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def identifier(self) -> str:
        return self.tool_id or self.name


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        Draft202012Validator.check_schema(tool.input_schema)
        self._tools[tool.identifier] = tool

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": tool.identifier,
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema,
                "side_effects": tool.side_effects,
                "metadata": tool.metadata or {},
            }
            for tool in self._tools.values()
        ]

    def get_tool(self, tool_id: str) -> Optional[Tool]:
        return self._tools.get(tool_id)

    def execute(self, tool_id: str, args: Dict[str, Any], context: Any) -> Dict[str, Any]:
        tool = self.get_tool(tool_id)
        if not tool:
            raise UnknownToolError(f"Unknown tool: {tool_id}")
        errors = sorted(Draft202012Validator(tool.input_schema).iter_errors(args), key=lambda e: [str(p) for p in e.path])
        if errors:
            details = "; ".join(f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}" for err in errors)
            raise ToolArgumentError(f"Invalid arguments for {tool_id}: {details}")
        return tool.handler(context=context, **args)


tool_registry = ToolRegistry()
