"""Flow validation: node existence, edge endpoints, handle types, classification hints."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flowcatalog.compat import TypeResolver
from flowcatalog.extraction.models import DefinitionSpec
from flowcatalog.schemas import FlowValidationResult
from flowcatalog.store import CatalogStore

logger = logging.getLogger(__name__)

AGENTFLOW = "agentflow"
CHATFLOW = "chatflow"

# edge ``type`` expected between two nodes of the same classification
EXPECTED_EDGE_TAGS = {AGENTFLOW: "agentFlow", CHATFLOW: "buttonedge"}


@dataclass(frozen=True)
class Handle:
    node_id: str
    name: str
    types: List[str]


def parse_handle(handle: Any, direction: str) -> Optional[Handle]:
    """Decode ``<nodeId>-<direction>-<name>-<types>``; ``types`` is ``|``-separated."""
    if not isinstance(handle, str):
        return None
    marker = f"-{direction}-"
    index = handle.find(marker)
    if index <= 0:
        return None
    rest = handle[index + len(marker) :]
    name, sep, type_part = rest.rpartition("-")
    if not sep or not name or not type_part:
        return None
    types = [item for item in type_part.split("|") if item]
    if not types:
        return None
    return Handle(node_id=handle[:index], name=name, types=types)


def node_definition_name(node: Dict[str, Any]) -> Optional[str]:
    data = node.get("data")
    if isinstance(data, dict) and data.get("name"):
        return str(data["name"])
    for key in ("type", "name"):
        if node.get(key):
            return str(node[key])
    return None


def _is_identifier(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def classification(definition: DefinitionSpec) -> str:
    return AGENTFLOW if definition.is_agentflow else CHATFLOW


class FlowValidator:
    def __init__(self, store: CatalogStore, resolver: TypeResolver):
        self.store = store
        self.resolver = resolver

    def validate(self, nodes: List[Any], edges: List[Any]) -> FlowValidationResult:
        """Check a candidate flow. Problems are reported as data, never raised.

        Raises ``TypeError`` only when ``nodes`` or ``edges`` is not a list.
        """
        if not isinstance(nodes, list) or not isinstance(edges, list):
            raise TypeError("nodes and edges must be lists")
        errors: List[str] = []
        warnings: List[str] = []

        declared: set = set()
        resolved: Dict[str, DefinitionSpec] = {}
        for index, node in enumerate(nodes):
            if not isinstance(node, dict):
                errors.append(f"Node at index {index} is not an object")
                continue
            node_id = node.get("id")
            if not _is_identifier(node_id):
                errors.append(f"Node at index {index} has an invalid id")
                continue
            name = node_definition_name(node)
            if not name:
                errors.append(f"Node {node_id} has no name/type specified")
                continue
            if node_id in declared:
                warnings.append(f"Duplicate node id: {node_id}")
            declared.add(node_id)
            definition = self.store.get(name)
            if definition is None:
                errors.append(f'Node type "{name}" does not exist')
                continue
            resolved[node_id] = definition

        for index, edge in enumerate(edges):
            if not isinstance(edge, dict):
                errors.append(f"Edge at index {index} is not an object")
                continue
            if not _is_identifier(edge.get("source")) or not _is_identifier(edge.get("target")):
                errors.append(f"Edge at index {index} has an invalid source/target")
                continue
            self._check_edge(edge, declared, resolved, errors, warnings)

        logger.debug(
            "Validated flow",
            extra={"nodes": len(nodes), "edges": len(edges), "errors": len(errors), "warnings": len(warnings)},
        )
        return FlowValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def _check_edge(
        self,
        edge: Dict[str, Any],
        declared: set,
        resolved: Dict[str, DefinitionSpec],
        errors: List[str],
        warnings: List[str],
    ) -> None:
        source = edge.get("source")
        target = edge.get("target")
        edge_id = edge.get("id") or f"{source}->{target}"
        missing = False
        if source not in declared:
            errors.append(f"Edge references non-existent source node: {source}")
            missing = True
        if target not in declared:
            errors.append(f"Edge references non-existent target node: {target}")
            missing = True
        if missing:
            return
        source_def = resolved.get(source)
        target_def = resolved.get(target)
        if source_def is None or target_def is None:
            return

        source_handle = parse_handle(edge.get("sourceHandle"), "output")
        target_handle = parse_handle(edge.get("targetHandle"), "input")
        if source_handle and target_handle:
            source_type = source_handle.types[0]
            required = target_handle.types
            if not any(self.resolver.is_compatible(source_type, wanted) for wanted in required):
                candidates = source_handle.types + list(source_def.base_classes)
                if not any(self.resolver.any_compatible(candidates, wanted) for wanted in required):
                    errors.append(
                        f"Type mismatch on edge {edge_id}: {source_type} from {source} "
                        f"is not compatible with {'|'.join(required)} on {target}.{target_handle.name}"
                    )

        source_kind = classification(source_def)
        target_kind = classification(target_def)
        if source_kind != target_kind:
            warnings.append(
                f"Edge {edge_id} connects a {source_kind} node ({source_def.name}) "
                f"to a {target_kind} node ({target_def.name})"
            )
            return
        tag = edge.get("type")
        expected = EXPECTED_EDGE_TAGS[source_kind]
        if tag and tag != expected:
            warnings.append(f'Edge {edge_id} has type "{tag}"; {source_kind} edges use "{expected}"')
