"""Read-only in-memory snapshot of the normalized catalog."""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flowcatalog.db import make_engine
from flowcatalog.db_models import (
    Category,
    Credential,
    Definition,
    FlowTemplate,
    InputField,
    InputOption,
    OutputAnchor,
)
from flowcatalog.extraction.models import (
    CredentialSpec,
    DefinitionSpec,
    FlowTemplateSpec,
    InputFieldSpec,
    OptionSpec,
    OutputAnchorSpec,
)

logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """The relational store is missing or cannot be read."""


def require_store_file(database_url: str) -> None:
    """Raise ``StoreUnavailableError`` when a file-backed SQLite store does not exist."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        if not Path(url.database).is_file():
            raise StoreUnavailableError(f"Catalog database not found: {url.database}")


def _matches(needle: str, *haystack: Optional[str]) -> bool:
    return any(needle in (value or "").lower() for value in haystack)


class CatalogStore:
    """Definitions, categories and templates loaded once and never mutated."""

    def __init__(
        self,
        definitions: Iterable[DefinitionSpec],
        templates: Iterable[FlowTemplateSpec] = (),
        categories: Optional[Mapping[str, int]] = None,
    ):
        ordered = list(definitions)
        self._definitions: Mapping[str, DefinitionSpec] = MappingProxyType({d.name: d for d in ordered})
        self._lowercase = {d.name.lower(): d.name for d in ordered}
        if categories is None:
            categories = Counter(d.category for d in ordered)
        self._categories: Mapping[str, int] = MappingProxyType(dict(sorted(categories.items())))
        self._templates = tuple(templates)

    @classmethod
    def open(cls, database_url: str) -> "CatalogStore":
        """Load a snapshot from ``database_url``; raises ``StoreUnavailableError``."""
        require_store_file(database_url)
        engine = make_engine(database_url)
        try:
            with Session(engine) as session:
                return cls.load(session)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Catalog database unreadable: {exc}") from exc
        finally:
            engine.dispose()

    @classmethod
    def load(cls, session: Session) -> "CatalogStore":
        options: Dict[int, List[OptionSpec]] = defaultdict(list)
        for row in session.execute(select(InputOption).order_by(InputOption.input_field_id, InputOption.sort_order)).scalars():
            options[row.input_field_id].append(
                OptionSpec(label=row.label, name=row.name, description=row.description, image_src=row.image_src)
            )

        fields: Dict[int, InputFieldSpec] = {}
        top_level: Dict[str, List[tuple]] = defaultdict(list)
        nested: Dict[int, List[tuple]] = defaultdict(list)
        for row in session.execute(select(InputField).order_by(InputField.id)).scalars():
            spec = _input_spec(row, options.get(row.id, []))
            fields[row.id] = spec
            if row.parent_id is None:
                top_level[row.definition_name].append((row.sort_order, spec))
            else:
                nested[row.parent_id].append((row.sort_order, spec))
        for parent_id, children in nested.items():
            parent = fields.get(parent_id)
            if parent is not None:
                parent.children = [spec for _, spec in sorted(children, key=lambda item: item[0])]

        outputs: Dict[str, List[OutputAnchorSpec]] = defaultdict(list)
        for row in session.execute(select(OutputAnchor).order_by(OutputAnchor.definition_name, OutputAnchor.sort_order)).scalars():
            outputs[row.definition_name].append(
                OutputAnchorSpec(
                    name=row.name,
                    label=row.label,
                    base_classes=list(row.base_classes or []),
                    description=row.description,
                    hidden=row.is_hidden,
                    is_anchor=row.is_anchor,
                )
            )

        credentials = {
            row.definition_name: CredentialSpec(
                label=row.label, name=row.name, type=row.type, credential_names=list(row.credential_names or [])
            )
            for row in session.execute(select(Credential)).scalars()
        }

        definitions = []
        for row in session.execute(select(Definition).order_by(Definition.id)).scalars():
            spec = _definition_spec(row)
            spec.inputs = [item for _, item in sorted(top_level.get(row.name, []), key=lambda item: item[0])]
            spec.outputs = outputs.get(row.name, [])
            spec.credential = credentials.get(row.name)
            definitions.append(spec)

        categories = {row.name: row.count for row in session.execute(select(Category)).scalars()}
        templates = [
            FlowTemplateSpec(
                name=row.name,
                kind=row.kind,
                description=row.description or "",
                usecases=list(row.usecases or []),
                nodes=list(row.nodes or []),
                edges=list(row.edges or []),
            )
            for row in session.execute(select(FlowTemplate).order_by(FlowTemplate.id)).scalars()
        ]
        logger.info(
            "Loaded catalog snapshot",
            extra={"definitions": len(definitions), "templates": len(templates)},
        )
        return cls(definitions, templates, categories or None)

    @property
    def definitions(self) -> Mapping[str, DefinitionSpec]:
        return self._definitions

    @property
    def templates(self) -> tuple:
        return self._templates

    def get(self, name: str) -> Optional[DefinitionSpec]:
        return self._definitions.get(name)

    def find(self, name: str) -> Optional[DefinitionSpec]:
        """Exact lookup with a case-insensitive fallback."""
        found = self._definitions.get(name)
        if found is None and name:
            canonical = self._lowercase.get(name.lower())
            found = self._definitions.get(canonical) if canonical else None
        return found

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def list_categories(self) -> List[Dict[str, Any]]:
        return [{"name": name, "count": count} for name, count in self._categories.items()]

    def list_definitions(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        needle = (search or "").lower()
        selected = [
            d
            for d in self._definitions.values()
            if (not category or d.category == category) and (not needle or _matches(needle, d.name, d.label, d.description))
        ]
        selected.sort(key=lambda d: (d.category, d.label))
        return [d.summary() for d in selected]

    def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        needle = query.lower()
        results = []
        for d in self._definitions.values():
            if _matches(needle, d.name, d.label, d.description, d.category):
                summary = d.summary()
                summary.pop("type")
                results.append(summary)
                if len(results) >= limit:
                    break
        return results

    def list_templates(self, kind: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        needle = (search or "").lower()
        selected = [
            t
            for t in self._templates
            if (not kind or t.kind == kind) and (not needle or _matches(needle, t.name, t.description))
        ]
        selected.sort(key=lambda t: (t.kind, t.name))
        return [t.summary() for t in selected]

    def get_template(self, name: str) -> Optional[FlowTemplateSpec]:
        return next((t for t in self._templates if t.name == name), None)

    def type_chains(self) -> Dict[str, List[str]]:
        """Each definition's type tag mapped to its base-class chain."""
        chains: Dict[str, List[str]] = {}
        for d in self._definitions.values():
            if d.type and d.base_classes and len(d.base_classes) > len(chains.get(d.type, [])):
                chains[d.type] = list(d.base_classes)
        return chains


def _input_spec(row: InputField, options: List[OptionSpec]) -> InputFieldSpec:
    return InputFieldSpec(
        name=row.name,
        label=row.label,
        type=row.type,
        description=row.description,
        placeholder=row.placeholder,
        rows=row.rows,
        warning=row.warning,
        default=row.default_value,
        optional=row.is_optional,
        additional_params=row.is_additional_params,
        hidden=row.is_hidden,
        load_method=row.load_method,
        load_config=row.load_config,
        load_previous_nodes=row.load_previous_nodes,
        accept_variable=row.accept_variable,
        accept_node_output_as_variable=row.accept_node_output,
        refresh=row.refresh,
        free_solo=row.free_solo,
        is_list=row.is_list,
        step=row.step,
        file_type=row.file_type,
        code_example=row.code_example,
        hide_code_execute=row.hide_code_execute,
        generate_instruction=row.generate_instruction,
        generate_doc_store_description=row.generate_doc_store_desc,
        hint=row.hint,
        tab_identifier=row.tab_identifier,
        datagrid=row.datagrid,
        show=row.show_condition,
        hide=row.hide_condition,
        credential_names=row.credential_names,
        options=options,
    )


def _definition_spec(row: Definition) -> DefinitionSpec:
    return DefinitionSpec(
        name=row.name,
        label=row.label,
        version=row.version,
        type=row.type,
        icon=row.icon or "",
        category=row.category,
        description=row.description or "",
        base_classes=list(row.base_classes or []),
        file_path=row.file_path,
        color=row.color,
        hide_input=row.hide_input,
        hide_output=row.hide_output,
        hint=row.hint,
        documentation=row.documentation,
        tags=list(row.tags or []),
        badge=row.badge,
        deprecate_message=row.deprecate_message,
        author=row.author,
        warning=row.warning,
    )
