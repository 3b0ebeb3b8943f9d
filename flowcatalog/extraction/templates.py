"""Marketplace flow templates and template-driven base-class enrichment."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List

from jsonschema import Draft202012Validator

from flowcatalog.extraction.models import DefinitionSpec, FlowTemplateSpec

logger = logging.getLogger(__name__)

# folder under the marketplace root -> template kind
TEMPLATE_FOLDERS = (
    ("chatflows", "chatflow"),
    ("agentflows", "agentflow"),
    ("agentflowsv2", "agentflowv2"),
    ("tools", "tool"),
)

TEMPLATE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "usecases": {"type": "array", "items": {"type": "string"}},
        "nodes": {"type": "array", "items": {"type": "object"}},
        "edges": {"type": "array", "items": {"type": "object"}},
    },
    "additionalProperties": True,
}

_VALIDATOR = Draft202012Validator(TEMPLATE_SCHEMA)


def template_errors(payload: object) -> List[str]:
    errors = []
    for err in sorted(_VALIDATOR.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        location = "/".join(str(part) for part in err.path) or "<root>"
        errors.append(f"{location}: {err.message}")
    return errors


def load_template(path: Path, kind: str) -> FlowTemplateSpec:
    """Load one template file. Raises ``ValueError`` for invalid JSON or shape."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path.name}: {exc}") from exc
    errors = template_errors(payload)
    if errors:
        raise ValueError(f"Template {path.name} failed validation: {'; '.join(errors)}")
    return FlowTemplateSpec(
        name=path.stem,
        kind=kind,
        description=payload.get("description") or "",
        usecases=list(payload.get("usecases") or []),
        nodes=list(payload.get("nodes") or []),
        edges=list(payload.get("edges") or []),
    )


def load_templates(marketplace_dir: str | Path) -> List[FlowTemplateSpec]:
    root = Path(marketplace_dir)
    templates: List[FlowTemplateSpec] = []
    for folder, kind in TEMPLATE_FOLDERS:
        folder_path = root / folder
        if not folder_path.is_dir():
            continue
        for path in sorted(folder_path.glob("*.json")):
            try:
                templates.append(load_template(path, kind))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping template %s: %s", path.name, exc)
    logger.info("Loaded %d templates", len(templates), extra={"marketplace_dir": str(root)})
    return templates


def collect_template_base_classes(templates: Iterable[FlowTemplateSpec]) -> Dict[str, List[str]]:
    """Map each node name seen in the templates to the longest ``baseClasses`` observed for it."""
    chains: Dict[str, List[str]] = {}
    for template in templates:
        for node in template.nodes:
            data = node.get("data") if isinstance(node, dict) else None
            if not isinstance(data, dict):
                continue
            name = data.get("name")
            base_classes = data.get("baseClasses")
            if not name or not isinstance(base_classes, list) or not base_classes:
                continue
            if len(base_classes) > len(chains.get(name, [])):
                chains[name] = [str(item) for item in base_classes]
    return chains


def enrich_base_classes(definitions: Iterable[DefinitionSpec], chains: Dict[str, List[str]]) -> int:
    """Replace a definition's chain with the template chain when the latter is strictly longer.

    Output anchors that mirrored the old chain follow the replacement. Returns the
    number of definitions changed.
    """
    enriched = 0
    for definition in definitions:
        chain = chains.get(definition.name)
        if not chain or len(chain) <= len(definition.base_classes):
            continue
        previous = definition.base_classes
        definition.base_classes = list(chain)
        for anchor in definition.outputs:
            if anchor.base_classes == previous:
                anchor.base_classes = list(chain)
        enriched += 1
    logger.info("Enriched %d definitions with template base classes", enriched)
    return enriched
