"""In-memory schema produced by the assembler and consumed by the normalizer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

AGENTFLOW_CATEGORY = "Agent Flows"

SCALAR_KINDS = frozenset({"string", "number", "boolean", "password", "json", "code", "file", "date", "folder"})
SELECTION_KINDS = frozenset({"options", "multiOptions", "asyncOptions", "asyncMultiOptions"})
STRUCTURAL_KINDS = frozenset({"array", "tabs", "datagrid"})
NESTING_KINDS = frozenset({"array", "tabs"})
CREDENTIAL_KIND = "credential"

# Fields that only make sense on leaf inputs; never kept on a nesting container.
LEAF_ONLY_FIELDS = ("rows", "placeholder", "generate_instruction", "generate_doc_store_description", "hide_code_execute")

ConditionValue = Union[str, bool, List[str]]

# InputFieldSpec attribute -> serialized key
_INPUT_KEYS = (
    ("description", "description"),
    ("placeholder", "placeholder"),
    ("rows", "rows"),
    ("warning", "warning"),
    ("default", "default"),
    ("optional", "optional"),
    ("additional_params", "additionalParams"),
    ("hidden", "hidden"),
    ("load_method", "loadMethod"),
    ("load_config", "loadConfig"),
    ("load_previous_nodes", "loadPreviousNodes"),
    ("accept_variable", "acceptVariable"),
    ("accept_node_output_as_variable", "acceptNodeOutputAsVariable"),
    ("refresh", "refresh"),
    ("free_solo", "freeSolo"),
    ("is_list", "list"),
    ("step", "step"),
    ("file_type", "fileType"),
    ("code_example", "codeExample"),
    ("hide_code_execute", "hideCodeExecute"),
    ("generate_instruction", "generateInstruction"),
    ("generate_doc_store_description", "generateDocStoreDescription"),
    ("hint", "hint"),
    ("tab_identifier", "tabIdentifier"),
    ("datagrid", "datagrid"),
    ("show", "show"),
    ("hide", "hide"),
    ("credential_names", "credentialNames"),
)


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def is_connector_kind(field_type: str) -> bool:
    """A type outside the value vocabulary names another definition's output type."""
    return field_type not in SCALAR_KINDS | SELECTION_KINDS | STRUCTURAL_KINDS and field_type != CREDENTIAL_KIND


@dataclass
class OptionSpec:
    label: str
    name: str
    description: Optional[str] = None
    image_src: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"label": self.label, "name": self.name, "description": self.description, "imageSrc": self.image_src})


@dataclass
class InputFieldSpec:
    name: str
    label: str
    type: str
    description: Optional[str] = None
    placeholder: Optional[str] = None
    rows: Optional[int] = None
    warning: Optional[str] = None
    default: Any = None
    optional: bool = False
    additional_params: bool = False
    hidden: bool = False
    load_method: Optional[str] = None
    load_config: bool = False
    load_previous_nodes: bool = False
    accept_variable: bool = False
    accept_node_output_as_variable: bool = False
    refresh: bool = False
    free_solo: bool = False
    is_list: bool = False
    step: Optional[float] = None
    file_type: Optional[str] = None
    code_example: Optional[str] = None
    hide_code_execute: bool = False
    generate_instruction: bool = False
    generate_doc_store_description: bool = False
    hint: Optional[Union[str, Dict[str, Any]]] = None
    tab_identifier: Optional[str] = None
    datagrid: Optional[List[Dict[str, Any]]] = None
    show: Optional[Dict[str, ConditionValue]] = None
    hide: Optional[Dict[str, ConditionValue]] = None
    credential_names: Optional[List[str]] = None
    options: List[OptionSpec] = field(default_factory=list)
    children: List["InputFieldSpec"] = field(default_factory=list)

    @property
    def is_nesting(self) -> bool:
        return self.type in NESTING_KINDS

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"label": self.label, "name": self.name, "type": self.type}
        for attr, key in _INPUT_KEYS:
            value = getattr(self, attr)
            if value is None or (value is False and attr != "default"):
                continue
            payload[key] = value
        if self.options:
            payload["options"] = [option.to_dict() for option in self.options]
        if self.children:
            payload[self.type] = [child.to_dict() for child in self.children]
        return payload


@dataclass
class OutputAnchorSpec:
    name: str
    label: str
    base_classes: List[str] = field(default_factory=list)
    description: Optional[str] = None
    hidden: bool = False
    is_anchor: bool = False

    @property
    def type_chain(self) -> str:
        return "|".join(self.base_classes)

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "label": self.label,
                "baseClasses": list(self.base_classes),
                "description": self.description,
                "hidden": self.hidden or None,
                "isAnchor": self.is_anchor or None,
            }
        )


@dataclass
class CredentialSpec:
    label: str = "Connect Credential"
    name: str = "credential"
    type: str = CREDENTIAL_KIND
    credential_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "name": self.name, "type": self.type, "credentialNames": list(self.credential_names)}


@dataclass
class DefinitionSpec:
    name: str
    label: str
    version: float = 1.0
    type: str = ""
    icon: str = ""
    category: str = "Unknown"
    description: str = ""
    base_classes: List[str] = field(default_factory=list)
    file_path: Optional[str] = None
    color: Optional[str] = None
    hide_input: bool = False
    hide_output: bool = False
    hint: Optional[str] = None
    documentation: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    badge: Optional[str] = None
    deprecate_message: Optional[str] = None
    author: Optional[str] = None
    warning: Optional[str] = None
    inputs: List[InputFieldSpec] = field(default_factory=list)
    outputs: List[OutputAnchorSpec] = field(default_factory=list)
    credential: Optional[CredentialSpec] = None

    @property
    def is_agentflow(self) -> bool:
        return self.category == AGENTFLOW_CATEGORY

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "category": self.category,
            "description": self.description,
            "type": self.type,
        }

    def to_dict(self) -> Dict[str, Any]:
        payload = _compact(
            {
                "name": self.name,
                "label": self.label,
                "version": self.version,
                "type": self.type,
                "icon": self.icon or None,
                "category": self.category,
                "description": self.description,
                "baseClasses": list(self.base_classes),
                "filePath": self.file_path,
                "color": self.color,
                "hideInput": self.hide_input or None,
                "hideOutput": self.hide_output or None,
                "hint": self.hint,
                "documentation": self.documentation,
                "tags": list(self.tags) or None,
                "badge": self.badge,
                "deprecateMessage": self.deprecate_message,
                "author": self.author,
                "warning": self.warning,
            }
        )
        payload["isAgentflow"] = self.is_agentflow
        payload["credential"] = self.credential.to_dict() if self.credential else None
        payload["inputs"] = [spec.to_dict() for spec in self.inputs]
        payload["outputs"] = [anchor.to_dict() for anchor in self.outputs]
        return payload


@dataclass
class FlowTemplateSpec:
    name: str
    kind: str
    description: str = ""
    usecases: List[str] = field(default_factory=list)
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    edges: List[Dict[str, Any]] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "type": self.kind, "usecases": list(self.usecases)}

    def to_dict(self) -> Dict[str, Any]:
        return {**self.summary(), "nodes": self.nodes, "edges": self.edges}


@dataclass(frozen=True)
class InputSlot:
    """One InputField placed in the flattened arena.

    ``index`` is the field's position in document (pre-order) order across the
    whole definition; ``parent_index`` points at the owning container's slot.
    """

    index: int
    parent_index: Optional[int]
    sort_order: int
    field: InputFieldSpec


def flatten_inputs(inputs: List[InputFieldSpec]) -> List[InputSlot]:
    """Lay an InputField tree out in pre-order so every parent precedes its children."""
    slots: List[InputSlot] = []

    def visit(fields: List[InputFieldSpec], parent_index: Optional[int]) -> None:
        for sort_order, spec in enumerate(fields):
            index = len(slots)
            slots.append(InputSlot(index=index, parent_index=parent_index, sort_order=sort_order, field=spec))
            if spec.children:
                visit(spec.children, index)

    visit(inputs, None)
    return slots
