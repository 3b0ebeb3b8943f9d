"""Hierarchical normalizer: write assembled definitions into the relational store.

Each definition is written in its own transaction. Input fields are laid out in
pre-order by :func:`flatten_inputs`, so every row's id and parent id are known
before anything is inserted; rows go in with a single bulk ``INSERT`` per table.
A failure on one definition is rolled back and logged, and the batch moves on.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flowcatalog.db import Base
from flowcatalog.db_models import (
    Category,
    Credential,
    Definition,
    FlowTemplate,
    InputField,
    InputOption,
    OutputAnchor,
)
from flowcatalog.extraction.models import DefinitionSpec, FlowTemplateSpec, InputSlot, flatten_inputs

logger = logging.getLogger(__name__)

# Read-only convenience views over the catalog tables, recreated with the store
CATALOG_VIEWS = {
    "v_input_details": """
        SELECT
            f.*,
            d.category AS definition_category,
            d.is_agentflow,
            (SELECT COUNT(*) FROM input_options o WHERE o.input_field_id = f.id) AS options_count,
            (SELECT COUNT(*) FROM input_fields c WHERE c.parent_id = f.id) AS nested_count
        FROM input_fields f
        JOIN definitions d ON f.definition_name = d.name
    """,
    "v_definition_summary": """
        SELECT
            d.*,
            (SELECT COUNT(*) FROM input_fields f WHERE f.definition_name = d.name AND f.parent_id IS NULL) AS input_count,
            (SELECT COUNT(*) FROM output_anchors a WHERE a.definition_name = d.name) AS output_count,
            (SELECT COUNT(*) FROM credential_specs c WHERE c.definition_name = d.name) AS has_credential
        FROM definitions d
    """,
}


@dataclass
class WriteReport:
    written: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    templates: int = 0
    categories: Dict[str, int] = field(default_factory=dict)


def reset_store(session: Session) -> None:
    """Drop and recreate every catalog table and view."""
    connection = session.connection()
    for name in CATALOG_VIEWS:
        connection.execute(text(f"DROP VIEW IF EXISTS {name}"))
    Base.metadata.drop_all(bind=connection)
    Base.metadata.create_all(bind=connection)
    for name, query in CATALOG_VIEWS.items():
        connection.execute(text(f"CREATE VIEW {name} AS {query}"))
    session.commit()


def default_text(value: Any) -> Optional[str]:
    """Render a default value the way the component source would print it."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value)


def _next_id(session: Session, model) -> int:
    return (session.execute(select(func.max(model.id))).scalar() or 0) + 1


def _input_row(definition_name: str, slot: InputSlot, field_base: int) -> Dict[str, Any]:
    spec = slot.field
    return {
        "id": field_base + slot.index,
        "definition_name": definition_name,
        "parent_id": None if slot.parent_index is None else field_base + slot.parent_index,
        "name": spec.name,
        "label": spec.label,
        "type": spec.type,
        "description": spec.description,
        "placeholder": spec.placeholder,
        "rows": spec.rows,
        "warning": spec.warning,
        "default_value": default_text(spec.default),
        "is_optional": spec.optional,
        "is_additional_params": spec.additional_params,
        "is_hidden": spec.hidden,
        "load_method": spec.load_method,
        "load_config": spec.load_config,
        "load_previous_nodes": spec.load_previous_nodes,
        "accept_variable": spec.accept_variable,
        "accept_node_output": spec.accept_node_output_as_variable,
        "refresh": spec.refresh,
        "free_solo": spec.free_solo,
        "is_list": spec.is_list,
        "step": spec.step,
        "file_type": spec.file_type,
        "code_example": spec.code_example,
        "hide_code_execute": spec.hide_code_execute,
        "generate_instruction": spec.generate_instruction,
        "generate_doc_store_desc": spec.generate_doc_store_description,
        "hint": spec.hint,
        "tab_identifier": spec.tab_identifier,
        "datagrid": spec.datagrid,
        "show_condition": spec.show,
        "hide_condition": spec.hide,
        "credential_names": spec.credential_names,
        "sort_order": slot.sort_order,
    }


def _definition_row(spec: DefinitionSpec) -> Definition:
    return Definition(
        name=spec.name,
        label=spec.label,
        version=spec.version,
        type=spec.type or spec.name,
        icon=spec.icon or None,
        category=spec.category,
        description=spec.description,
        base_classes=list(spec.base_classes),
        file_path=spec.file_path,
        is_agentflow=spec.is_agentflow,
        color=spec.color,
        hide_input=spec.hide_input,
        hide_output=spec.hide_output,
        hint=spec.hint,
        documentation=spec.documentation,
        tags=list(spec.tags) or None,
        badge=spec.badge,
        deprecate_message=spec.deprecate_message,
        author=spec.author,
        warning=spec.warning,
    )


def write_definition(session: Session, spec: DefinitionSpec) -> Definition:
    """Write one definition with its input tree, options, anchors and credential.

    The caller owns the transaction; nothing is committed here.
    """
    row = _definition_row(spec)
    session.add(row)
    session.flush()

    slots = flatten_inputs(spec.inputs)
    if slots:
        field_base = _next_id(session, InputField)
        session.execute(insert(InputField), [_input_row(spec.name, slot, field_base) for slot in slots])
        option_rows = [
            {
                "input_field_id": field_base + slot.index,
                "label": option.label,
                "name": option.name,
                "description": option.description,
                "image_src": option.image_src,
                "sort_order": order,
            }
            for slot in slots
            for order, option in enumerate(slot.field.options)
        ]
        if option_rows:
            session.execute(insert(InputOption), option_rows)

    anchor_rows = [
        {
            "definition_name": spec.name,
            "name": anchor.name,
            "label": anchor.label,
            "type_chain": anchor.type_chain or None,
            "base_classes": list(anchor.base_classes),
            "description": anchor.description,
            "is_hidden": anchor.hidden,
            "is_anchor": anchor.is_anchor,
            "sort_order": order,
        }
        for order, anchor in enumerate(spec.outputs)
    ]
    if anchor_rows:
        session.execute(insert(OutputAnchor), anchor_rows)

    if spec.credential is not None:
        session.add(
            Credential(
                definition_name=spec.name,
                label=spec.credential.label,
                name=spec.credential.name,
                type=spec.credential.type,
                credential_names=list(spec.credential.credential_names),
            )
        )
    session.flush()
    return row


def write_templates(session: Session, templates: Iterable[FlowTemplateSpec]) -> int:
    rows = [
        {
            "name": template.name,
            "description": template.description,
            "kind": template.kind,
            "usecases": list(template.usecases),
            "nodes": template.nodes,
            "edges": template.edges,
        }
        for template in templates
    ]
    if rows:
        session.execute(insert(FlowTemplate), rows)
    session.commit()
    return len(rows)


def write_corpus(
    session: Session,
    definitions: Iterable[DefinitionSpec],
    templates: Iterable[FlowTemplateSpec] = (),
) -> WriteReport:
    """Replace the whole store with ``definitions`` and ``templates``."""
    reset_store(session)
    report = WriteReport()
    for spec in definitions:
        try:
            write_definition(session, spec)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to write definition", extra={"definition": spec.name})
            report.failed.append(spec.name)
            continue
        report.written.append(spec.name)

    counts = Counter(session.execute(select(Definition.category)).scalars().all())
    if counts:
        session.execute(insert(Category), [{"name": name, "count": count} for name, count in sorted(counts.items())])
        session.commit()
    report.categories = dict(sorted(counts.items()))
    report.templates = write_templates(session, templates)
    logger.info(
        "Wrote %d definitions (%d failed), %d categories, %d templates",
        len(report.written),
        len(report.failed),
        len(report.categories),
        report.templates,
    )
    return report


def corpus_stats(session: Session) -> Dict[str, int]:
    def count(stmt) -> int:
        return session.execute(stmt).scalar() or 0

    return {
        "definitions": count(select(func.count(Definition.id))),
        "agentflow_definitions": count(select(func.count(Definition.id)).where(Definition.is_agentflow.is_(True))),
        "categories": count(select(func.count(Category.id))),
        "top_level_inputs": count(select(func.count(InputField.id)).where(InputField.parent_id.is_(None))),
        "nested_inputs": count(select(func.count(InputField.id)).where(InputField.parent_id.is_not(None))),
        "options": count(select(func.count(InputOption.id))),
        "output_anchors": count(select(func.count(OutputAnchor.id))),
        "credentials": count(select(func.count(Credential.id))),
        "templates": count(select(func.count(FlowTemplate.id))),
    }
