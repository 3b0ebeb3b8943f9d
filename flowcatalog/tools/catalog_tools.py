"""Catalog query operations exposed as tools."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flowcatalog.builder import SKELETONS, build_node, find_compatible_definitions, generate_flow_skeleton
from flowcatalog.compat import TypeResolver
from flowcatalog.flowise_client import FlowiseClient
from flowcatalog.store import CatalogStore
from flowcatalog.tools.registry import Tool, ToolRegistry, tool_registry
from flowcatalog.utils.config import settings
from flowcatalog.validation import FlowValidator

logger = logging.getLogger(__name__)

TEMPLATE_KINDS = ["chatflow", "agentflow", "agentflowv2", "tool"]


@dataclass(frozen=True)
class CatalogContext:
    """Everything a tool handler may read; built once at startup."""

    store: CatalogStore
    resolver: TypeResolver
    validator: FlowValidator
    client: FlowiseClient


def build_context(store: CatalogStore, client: Optional[FlowiseClient] = None) -> CatalogContext:
    resolver = TypeResolver.with_extracted(store.type_chains())
    return CatalogContext(
        store=store,
        resolver=resolver,
        validator=FlowValidator(store, resolver),
        client=client or FlowiseClient(""),
    )


def tool_list_categories(context: CatalogContext) -> Dict[str, Any]:
    return {"categories": context.store.list_categories()}


def tool_list_nodes(context: CatalogContext, category: Optional[str] = None, search: Optional[str] = None) -> Dict[str, Any]:
    return {"nodes": context.store.list_definitions(category=category, search=search)}


def tool_search_nodes(context: CatalogContext, query: str, limit: int = 10) -> Dict[str, Any]:
    return {"nodes": context.store.search(query, limit=limit)}


def tool_get_node_schema(context: CatalogContext, name: str) -> Dict[str, Any]:
    definition = context.store.get(name)
    if definition is None:
        return {"error": f'Node "{name}" not found'}
    return definition.to_dict()


def tool_get_node_instance(
    context: CatalogContext,
    name: str,
    instance_id: Optional[str] = None,
    position: Optional[Dict[str, float]] = None,
    inputs: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    definition = context.store.find(name)
    if definition is None:
        return {"error": f'Node "{name}" not found'}
    return build_node(definition, instance_id or f"{definition.name}_0", position, inputs)


def tool_list_templates(context: CatalogContext, type: Optional[str] = None, search: Optional[str] = None) -> Dict[str, Any]:
    return {"templates": context.store.list_templates(kind=type, search=search)}


def tool_get_template(context: CatalogContext, name: str) -> Dict[str, Any]:
    template = context.store.get_template(name)
    if template is None:
        return {"error": f'Template "{name}" not found'}
    return template.to_dict()


def tool_find_compatible_nodes(context: CatalogContext, node_name: str, direction: str = "inputs") -> Dict[str, Any]:
    return find_compatible_definitions(context.store, context.resolver, node_name, direction)


def tool_validate_flow(context: CatalogContext, nodes: List[Any], edges: List[Any]) -> Dict[str, Any]:
    return context.validator.validate(nodes, edges).model_dump()


def tool_generate_flow_skeleton(context: CatalogContext, use_case: str, chat_model: Optional[str] = None) -> Dict[str, Any]:
    return generate_flow_skeleton(context.store, use_case, chat_model)


def tool_flowise_test_connection(context: CatalogContext) -> Dict[str, Any]:
    return context.client.test_connection()


def tool_flowise_list_chatflows(context: CatalogContext) -> Dict[str, Any]:
    return {"chatflows": context.client.list_chatflows()}


def tool_flowise_get_chatflow(context: CatalogContext, id: str) -> Dict[str, Any]:
    return context.client.get_chatflow(id)


def tool_flowise_create_chatflow(
    context: CatalogContext, name: str, nodes: List[Any], edges: List[Any], deployed: bool = False
) -> Dict[str, Any]:
    return context.client.create_chatflow(name, nodes, edges, deployed)


def tool_flowise_update_chatflow(
    context: CatalogContext,
    id: str,
    name: Optional[str] = None,
    nodes: Optional[List[Any]] = None,
    edges: Optional[List[Any]] = None,
    deployed: Optional[bool] = None,
) -> Dict[str, Any]:
    return context.client.update_chatflow(id, name=name, nodes=nodes, edges=edges, deployed=deployed)


def tool_flowise_delete_chatflow(context: CatalogContext, id: str) -> Dict[str, Any]:
    return context.client.delete_chatflow(id)


def _object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties, "additionalProperties": False}
    if required:
        schema["required"] = required
    return schema


_STRING = {"type": "string"}
_ARRAY = {"type": "array"}


def register_catalog_tools(registry: ToolRegistry) -> None:
    registry.register(
        Tool(
            name="list_categories",
            description="List all node categories with their node counts.",
            input_schema=_object({}),
            handler=tool_list_categories,
        )
    )
    registry.register(
        Tool(
            name="list_nodes",
            description="List nodes, optionally filtered by category or a search term.",
            input_schema=_object({"category": _STRING, "search": _STRING}),
            handler=tool_list_nodes,
        )
    )
    registry.register(
        Tool(
            name="search_nodes",
            description="Search nodes by name, label, description or category.",
            input_schema=_object({"query": _STRING, "limit": {"type": "integer", "minimum": 1}}, ["query"]),
            handler=tool_search_nodes,
        )
    )
    registry.register(
        Tool(
            name="get_node_schema",
            description="Get the full nested schema of a node: inputs, options, outputs and credential.",
            input_schema=_object({"name": _STRING}, ["name"]),
            handler=tool_get_node_schema,
        )
    )
    registry.register(
        Tool(
            name="get_node_instance",
            description="Build a ready-to-place node object with input and output handle ids.",
            input_schema=_object(
                {
                    "name": _STRING,
                    "instance_id": _STRING,
                    "position": {"type": "object", "properties": {"x": {"type": "number"}, "y": {"type": "number"}}},
                    "inputs": {"type": "object"},
                },
                ["name"],
            ),
            handler=tool_get_node_instance,
        )
    )
    registry.register(
        Tool(
            name="list_templates",
            description="List marketplace templates, optionally filtered by type or a search term.",
            input_schema=_object({"type": {"type": "string", "enum": TEMPLATE_KINDS}, "search": _STRING}),
            handler=tool_list_templates,
        )
    )
    registry.register(
        Tool(
            name="get_template",
            description="Get a marketplace template with its nodes and edges.",
            input_schema=_object({"name": _STRING}, ["name"]),
            handler=tool_get_template,
        )
    )
    registry.register(
        Tool(
            name="find_compatible_nodes",
            description="Find nodes that can feed a node's inputs, or consume its outputs.",
            input_schema=_object(
                {"node_name": _STRING, "direction": {"type": "string", "enum": ["inputs", "outputs"]}},
                ["node_name"],
            ),
            handler=tool_find_compatible_nodes,
        )
    )
    registry.register(
        Tool(
            name="validate_flow",
            description="Validate a flow's nodes and edges against the catalog.",
            input_schema=_object({"nodes": _ARRAY, "edges": _ARRAY}, ["nodes", "edges"]),
            handler=tool_validate_flow,
        )
    )
    registry.register(
        Tool(
            name="generate_flow_skeleton",
            description="Generate an example flow for a common use case.",
            input_schema=_object(
                {"use_case": {"type": "string", "enum": sorted(SKELETONS)}, "chat_model": _STRING},
                ["use_case"],
            ),
            handler=tool_generate_flow_skeleton,
        )
    )
    registry.register(
        Tool(
            name="flowise_test_connection",
            description="Check that the configured Flowise instance is reachable.",
            input_schema=_object({}),
            side_effects="network read",
            handler=tool_flowise_test_connection,
        )
    )
    registry.register(
        Tool(
            name="flowise_list_chatflows",
            description="List chatflows on the Flowise instance.",
            input_schema=_object({}),
            side_effects="network read",
            handler=tool_flowise_list_chatflows,
        )
    )
    registry.register(
        Tool(
            name="flowise_get_chatflow",
            description="Fetch one chatflow from the Flowise instance.",
            input_schema=_object({"id": _STRING}, ["id"]),
            side_effects="network read",
            handler=tool_flowise_get_chatflow,
        )
    )
    registry.register(
        Tool(
            name="flowise_create_chatflow",
            description="Create a chatflow on the Flowise instance from nodes and edges.",
            input_schema=_object(
                {"name": _STRING, "nodes": _ARRAY, "edges": _ARRAY, "deployed": {"type": "boolean"}},
                ["name", "nodes", "edges"],
            ),
            side_effects="creates a remote chatflow",
            handler=tool_flowise_create_chatflow,
        )
    )
    registry.register(
        Tool(
            name="flowise_update_chatflow",
            description="Update a chatflow's name, flow data or deployment flag.",
            input_schema=_object(
                {"id": _STRING, "name": _STRING, "nodes": _ARRAY, "edges": _ARRAY, "deployed": {"type": "boolean"}},
                ["id"],
            ),
            side_effects="updates a remote chatflow",
            handler=tool_flowise_update_chatflow,
        )
    )
    registry.register(
        Tool(
            name="flowise_delete_chatflow",
            description="Delete a chatflow from the Flowise instance.",
            input_schema=_object({"id": _STRING}, ["id"]),
            side_effects="deletes a remote chatflow",
            handler=tool_flowise_delete_chatflow,
        )
    )


def context_from_settings(config=settings) -> CatalogContext:
    """Open the configured store; raises ``StoreUnavailableError`` when it is missing."""
    store = CatalogStore.open(config.database_url)
    client = FlowiseClient(config.flowise_api_url, config.flowise_api_key, config.request_timeout)
    return build_context(store, client)


register_catalog_tools(tool_registry)
