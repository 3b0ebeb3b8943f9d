"""Instantiate definitions as flow nodes and edges, and assemble example flows."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flowcatalog.compat import TypeResolver
from flowcatalog.extraction.models import DefinitionSpec, InputFieldSpec, is_connector_kind
from flowcatalog.store import CatalogStore

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "chatOpenAI"

# use case -> (description, nodes as (id, definition, x, y), connections as (source id, target id, target input))
SKELETONS: Dict[str, Dict[str, Any]] = {
    "simple_chatbot": {
        "description": "A basic chatbot with memory",
        "nodes": [
            ("chatModel_0", None, 100, 200),
            ("memory_0", "bufferMemory", 100, 400),
            ("chain_0", "conversationChain", 400, 300),
        ],
        "connections": [
            ("chatModel_0", "chain_0", "model"),
            ("memory_0", "chain_0", "memory"),
        ],
    },
    "rag_chatbot": {
        "description": "Retrieval Augmented Generation chatbot",
        "nodes": [
            ("chatModel_0", None, 100, 100),
            ("embeddings_0", "openAIEmbeddings", 100, 300),
            ("vectorStore_0", "pinecone", 400, 300),
            ("retriever_0", "vectorStoreRetriever", 700, 300),
            ("memory_0", "bufferMemory", 400, 500),
            ("chain_0", "conversationalRetrievalQAChain", 1000, 300),
        ],
        "connections": [
            ("chatModel_0", "chain_0", "model"),
            ("embeddings_0", "vectorStore_0", "embeddings"),
            ("vectorStore_0", "retriever_0", "vectorStore"),
            ("retriever_0", "chain_0", "vectorStoreRetriever"),
            ("memory_0", "chain_0", "memory"),
        ],
    },
    "conversational_agent": {
        "description": "Agent with tools and memory",
        "nodes": [
            ("chatModel_0", None, 100, 200),
            ("memory_0", "bufferMemory", 100, 400),
            ("tool_0", "calculator", 400, 100),
            ("tool_1", "serpAPI", 400, 300),
            ("agent_0", "conversationalAgent", 700, 200),
        ],
        "connections": [
            ("chatModel_0", "agent_0", "model"),
            ("memory_0", "agent_0", "memory"),
            ("tool_0", "agent_0", "tools"),
            ("tool_1", "agent_0", "tools"),
        ],
    },
    "document_qa": {
        "description": "Document question answering",
        "nodes": [
            ("chatModel_0", None, 100, 100),
            ("embeddings_0", "openAIEmbeddings", 100, 300),
            ("docLoader_0", "pdfFile", 400, 100),
            ("textSplitter_0", "recursiveCharacterTextSplitter", 700, 100),
            ("vectorStore_0", "memoryVectorStore", 400, 300),
            ("chain_0", "retrievalQAChain", 700, 300),
        ],
        "connections": [
            ("chatModel_0", "chain_0", "model"),
            ("embeddings_0", "vectorStore_0", "embeddings"),
            ("docLoader_0", "textSplitter_0", "document"),
            ("textSplitter_0", "vectorStore_0", "document"),
            ("vectorStore_0", "chain_0", "vectorStoreRetriever"),
        ],
    },
    "api_agent": {
        "description": "Agent that can call APIs",
        "nodes": [
            ("chatModel_0", None, 100, 200),
            ("tool_0", "customTool", 400, 100),
            ("tool_1", "requestsGet", 400, 300),
            ("agent_0", "openAIFunctionAgent", 700, 200),
        ],
        "connections": [
            ("chatModel_0", "agent_0", "model"),
            ("tool_0", "agent_0", "tools"),
            ("tool_1", "agent_0", "tools"),
        ],
    },
    "multi_agent": {
        "description": "Multiple agents working together",
        "nodes": [
            ("chatModel_0", None, 100, 200),
            ("supervisor_0", "supervisor", 400, 200),
            ("worker_0", "worker", 700, 100),
            ("worker_1", "worker", 700, 300),
        ],
        "connections": [
            ("chatModel_0", "supervisor_0", "model"),
            ("supervisor_0", "worker_0", "supervisor"),
            ("supervisor_0", "worker_1", "supervisor"),
        ],
    },
}


def input_handle(node_id: str, field: InputFieldSpec) -> str:
    return f"{node_id}-input-{field.name}-{field.type}"


def output_handle(node_id: str, anchor_name: str, chain: List[str]) -> str:
    return f"{node_id}-output-{anchor_name}-{'|'.join(chain)}"


def build_node(
    definition: Optional[DefinitionSpec],
    node_id: str,
    position: Optional[Dict[str, float]] = None,
    input_values: Optional[Dict[str, Any]] = None,
    *,
    fallback_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a ready-to-place node object for ``definition``.

    When the definition is unknown a bare placeholder node named ``fallback_name``
    is returned instead.
    """
    position = position or {"x": 0, "y": 0}
    values = dict(input_values or {})
    if definition is None:
        name = fallback_name or node_id
        return {
            "id": node_id,
            "position": position,
            "type": "customNode",
            "data": {"id": node_id, "label": name, "name": name, "type": name, "inputs": values, "outputs": {}},
        }

    params: List[Dict[str, Any]] = []
    anchors: List[Dict[str, Any]] = []
    inputs: Dict[str, Any] = {}
    for field in definition.inputs:
        entry = {**field.to_dict(), "id": input_handle(node_id, field)}
        (anchors if is_connector_kind(field.type) else params).append(entry)
        if field.name in values:
            inputs[field.name] = values[field.name]
        elif field.default is not None:
            inputs[field.name] = field.default
        else:
            inputs[field.name] = ""

    output_anchors = [
        {
            "id": output_handle(node_id, anchor.name, anchor.base_classes),
            "name": anchor.name,
            "label": anchor.label,
            "description": anchor.description or "",
            "type": " | ".join(anchor.base_classes),
        }
        for anchor in definition.outputs
        if not anchor.hidden
    ]
    data = {
        "id": node_id,
        "label": definition.label,
        "version": definition.version,
        "name": definition.name,
        "type": definition.type,
        "baseClasses": list(definition.base_classes),
        "category": definition.category,
        "description": definition.description,
        "inputParams": params,
        "inputAnchors": anchors,
        "inputs": inputs,
        "outputAnchors": output_anchors,
        "outputs": {},
        "selected": False,
    }
    if definition.credential is not None:
        data["credential"] = ""
    return {
        "id": node_id,
        "position": position,
        "type": "agentFlow" if definition.is_agentflow else "customNode",
        "data": data,
    }


def build_edge(
    source_id: str,
    source: Optional[DefinitionSpec],
    target_id: str,
    target: Optional[DefinitionSpec],
    target_input: str,
) -> Dict[str, Any]:
    if source is None or target is None:
        return {
            "source": source_id,
            "target": target_id,
            "type": "buttonedge",
            "id": f"{source_id}-{target_id}",
            "data": {"label": ""},
        }
    anchor = source.outputs[0] if source.outputs else None
    chain = list(anchor.base_classes if anchor and anchor.base_classes else source.base_classes or [source.name])
    source_handle = output_handle(source_id, anchor.name if anchor else source.name, chain)
    field = next((item for item in target.inputs if item.name == target_input), None)
    target_type = field.type if field is not None else chain[0]
    target_handle = f"{target_id}-input-{target_input}-{target_type}"
    both_agentflow = source.is_agentflow and target.is_agentflow
    return {
        "source": source_id,
        "sourceHandle": source_handle,
        "target": target_id,
        "targetHandle": target_handle,
        "type": "agentFlow" if both_agentflow else "buttonedge",
        "id": f"{source_handle}-{target_handle}",
        "data": {"label": ""},
    }


def generate_flow_skeleton(store: CatalogStore, use_case: str, chat_model: Optional[str] = None) -> Dict[str, Any]:
    blueprint = SKELETONS.get(use_case)
    if blueprint is None:
        return {"error": f"Unknown use case: {use_case}. Available: {', '.join(SKELETONS)}"}
    model = chat_model or DEFAULT_CHAT_MODEL

    names = {node_id: name or model for node_id, name, _, _ in blueprint["nodes"]}
    definitions = {node_id: store.find(name) for node_id, name in names.items()}
    missing = sorted({names[node_id] for node_id, found in definitions.items() if found is None})
    if missing:
        logger.info("Skeleton %s references unknown definitions: %s", use_case, ", ".join(missing))

    nodes = [
        build_node(definitions[node_id], node_id, {"x": x, "y": y}, fallback_name=names[node_id])
        for node_id, _, x, y in blueprint["nodes"]
    ]
    edges = [
        build_edge(source_id, definitions[source_id], target_id, definitions[target_id], target_input)
        for source_id, target_id, target_input in blueprint["connections"]
    ]
    result: Dict[str, Any] = {"description": blueprint["description"], "nodes": nodes, "edges": edges}
    if missing:
        result["missing_definitions"] = missing
    return result


def find_compatible_definitions(
    store: CatalogStore,
    resolver: TypeResolver,
    name: str,
    direction: str = "inputs",
) -> Dict[str, Any]:
    """List definitions that can feed ``name``'s inputs, or consume its outputs."""
    definition = store.get(name)
    if definition is None:
        return {"error": f'Node "{name}" not found'}

    if direction == "inputs":
        wanted = [field.type for field in definition.inputs if is_connector_kind(field.type)]
        compatible = [
            {"name": other.name, "label": other.label, "category": other.category}
            for other in store.definitions.values()
            if any(resolver.any_compatible(other.base_classes, input_type) for input_type in wanted)
        ]
        return {"compatible_inputs": compatible}
    if direction == "outputs":
        compatible = [
            {"name": other.name, "label": other.label, "category": other.category}
            for other in store.definitions.values()
            if any(
                is_connector_kind(field.type) and resolver.any_compatible(definition.base_classes, field.type)
                for field in other.inputs
            )
        ]
        return {"compatible_outputs": compatible}
    return {"error": f"Unknown direction: {direction}. Use 'inputs' or 'outputs'"}
