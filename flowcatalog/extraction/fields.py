"""Field extraction from a single parsed object literal.

Every lookup is scoped to the object's own top-level keys, so values that
belong to nested children are never attributed to their container.
Intermediate results are one of four shapes (``Scalar``, ``StringList``,
``ConditionalMap``, ``ChildList``); anything that does not fit the shape a
key is declared with is dropped before the typed spec is built.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from flowcatalog.extraction.literal import ArrayLiteral, Literal, ObjectLiteral, RawExpr, Scalar, to_python
from flowcatalog.extraction.models import (
    LEAF_ONLY_FIELDS,
    SELECTION_KINDS,
    ConditionValue,
    CredentialSpec,
    InputFieldSpec,
    OptionSpec,
    OutputAnchorSpec,
)


@dataclass(frozen=True)
class StringList:
    items: Tuple[str, ...]


@dataclass(frozen=True)
class ConditionalMap:
    conditions: Tuple[Tuple[str, ConditionValue], ...]

    def as_dict(self) -> Dict[str, ConditionValue]:
        return {key: list(value) if isinstance(value, tuple) else value for key, value in self.conditions}


@dataclass(frozen=True)
class ChildList:
    children: Tuple[ObjectLiteral, ...]


FieldValue = Union[Scalar, StringList, ConditionalMap, ChildList]

# literal key -> (spec attribute, expected scalar kind)
_INPUT_SCALARS: Dict[str, Tuple[str, type]] = {
    "label": ("label", str),
    "name": ("name", str),
    "type": ("type", str),
    "description": ("description", str),
    "placeholder": ("placeholder", str),
    "warning": ("warning", str),
    "loadMethod": ("load_method", str),
    "fileType": ("file_type", str),
    "codeExample": ("code_example", str),
    "tabIdentifier": ("tab_identifier", str),
    "rows": ("rows", int),
    "step": ("step", float),
    "optional": ("optional", bool),
    "additionalParams": ("additional_params", bool),
    "hidden": ("hidden", bool),
    "loadConfig": ("load_config", bool),
    "loadPreviousNodes": ("load_previous_nodes", bool),
    "acceptVariable": ("accept_variable", bool),
    "acceptNodeOutputAsVariable": ("accept_node_output_as_variable", bool),
    "refresh": ("refresh", bool),
    "freeSolo": ("free_solo", bool),
    "list": ("is_list", bool),
    "hideCodeExecute": ("hide_code_execute", bool),
    "generateInstruction": ("generate_instruction", bool),
    "generateDocStoreDescription": ("generate_doc_store_description", bool),
}

_CHILD_KEYS = {"array": "array", "tabs": "tabs"}


def coerce_scalar(node: Optional[Literal], kind: type) -> Any:
    """Return the scalar value of ``node`` when it matches ``kind``, else ``None``."""
    if not isinstance(node, Scalar) or node.value is None:
        return None
    value = node.value
    if kind is bool:
        return value if isinstance(value, bool) else None
    if isinstance(value, bool):
        return None
    if kind is str:
        return value if isinstance(value, str) else None
    if isinstance(value, (int, float)):
        return int(value) if kind is int else float(value)
    return None


def extract_scalar(obj: ObjectLiteral, key: str, kind: type = str) -> Any:
    return coerce_scalar(obj.get(key), kind)


def extract_string_list(obj: ObjectLiteral, key: str) -> Optional[StringList]:
    node = obj.get(key)
    if not isinstance(node, ArrayLiteral):
        return None
    return StringList(tuple(item.value for item in node if isinstance(item, Scalar) and isinstance(item.value, str)))


def extract_conditional_map(obj: ObjectLiteral, key: str) -> Optional[ConditionalMap]:
    """Parse a ``show``/``hide`` predicate map of field -> string | [strings] | boolean."""
    node = obj.get(key)
    if not isinstance(node, ObjectLiteral):
        return None
    conditions: List[Tuple[str, ConditionValue]] = []
    for field_name, value in node.entries:
        if isinstance(value, Scalar) and isinstance(value.value, (str, bool)):
            conditions.append((field_name, value.value))
        elif isinstance(value, ArrayLiteral):
            items = tuple(item.value for item in value if isinstance(item, Scalar) and isinstance(item.value, str))
            conditions.append((field_name, items))
    if not conditions:
        return None
    return ConditionalMap(tuple(conditions))


def extract_child_list(obj: ObjectLiteral, key: str) -> Optional[ChildList]:
    node = obj.get(key)
    if not isinstance(node, ArrayLiteral):
        return None
    return ChildList(tuple(item for item in node if isinstance(item, ObjectLiteral)))


def extract_field_values(obj: ObjectLiteral) -> Dict[str, FieldValue]:
    """Resolve every known InputField key of ``obj`` into its declared shape."""
    values: Dict[str, FieldValue] = {}
    for key, (_, kind) in _INPUT_SCALARS.items():
        value = extract_scalar(obj, key, kind)
        if value is not None:
            values[key] = Scalar(value)
    for key in ("show", "hide"):
        condition = extract_conditional_map(obj, key)
        if condition is not None:
            values[key] = condition
    credential_names = extract_string_list(obj, "credentialNames")
    if credential_names is not None:
        values["credentialNames"] = credential_names
    for key in ("options", *_CHILD_KEYS):
        children = extract_child_list(obj, key)
        if children is not None:
            values[key] = children
    return values


def default_value(node: Optional[Literal]) -> Any:
    """Default values keep scalars as-is and structured literals as plain data."""
    if node is None or isinstance(node, RawExpr):
        return None
    if isinstance(node, Scalar):
        return node.value
    return to_python(node)


def build_option(obj: ObjectLiteral) -> Optional[OptionSpec]:
    label = extract_scalar(obj, "label")
    name = extract_scalar(obj, "name")
    if not label or not name:
        return None
    return OptionSpec(
        label=label,
        name=name,
        description=extract_scalar(obj, "description"),
        image_src=extract_scalar(obj, "imageSrc"),
    )


def build_input_field(obj: ObjectLiteral) -> Optional[InputFieldSpec]:
    """Build one InputField (and, recursively, its children) from an object literal.

    Returns ``None`` when the literal lacks a ``name`` or ``type``.
    """
    values = extract_field_values(obj)
    name = _scalar(values, "name")
    field_type = _scalar(values, "type")
    if not name or not field_type:
        return None

    spec = InputFieldSpec(name=name, label=_scalar(values, "label") or "", type=field_type)
    for key, (attr, _) in _INPUT_SCALARS.items():
        if key in ("label", "name", "type"):
            continue
        value = _scalar(values, key)
        if value is not None:
            setattr(spec, attr, value)

    spec.default = default_value(obj.get("default"))
    hint = obj.get("hint")
    if isinstance(hint, (Scalar, ObjectLiteral)):
        spec.hint = default_value(hint)
    datagrid = extract_child_list(obj, "datagrid")
    if datagrid is not None:
        spec.datagrid = [to_python(column) for column in datagrid.children]

    show = values.get("show")
    if isinstance(show, ConditionalMap):
        spec.show = show.as_dict()
    hide = values.get("hide")
    if isinstance(hide, ConditionalMap):
        spec.hide = hide.as_dict()
    credential_names = values.get("credentialNames")
    if isinstance(credential_names, StringList):
        spec.credential_names = list(credential_names.items)

    if spec.is_nesting:
        children = values.get(_CHILD_KEYS[spec.type])
        if isinstance(children, ChildList):
            spec.children = [child for child in map(build_input_field, children.children) if child is not None]
        _discard_leaf_only(spec)
    elif spec.type in SELECTION_KINDS:
        options = values.get("options")
        if isinstance(options, ChildList):
            spec.options = [option for option in map(build_option, options.children) if option is not None]
    return spec


def build_output_anchor(obj: ObjectLiteral, own_type: str) -> Optional[OutputAnchorSpec]:
    name = extract_scalar(obj, "name")
    if not name:
        return None
    return OutputAnchorSpec(
        name=name,
        label=extract_scalar(obj, "label") or name,
        base_classes=resolve_base_classes(obj.get("baseClasses"), own_type),
        description=extract_scalar(obj, "description"),
        hidden=bool(extract_scalar(obj, "hidden", bool)),
        is_anchor=bool(extract_scalar(obj, "isAnchor", bool)),
    )


def build_credential(obj: ObjectLiteral) -> CredentialSpec:
    spec = CredentialSpec(
        label=extract_scalar(obj, "label") or "Connect Credential",
        name=extract_scalar(obj, "name") or "credential",
        type=extract_scalar(obj, "type") or "credential",
    )
    names = extract_string_list(obj, "credentialNames")
    if names is not None:
        spec.credential_names = list(names.items)
    return spec


def resolve_base_classes(node: Optional[Literal], own_type: str) -> List[str]:
    """Harvest a base-class chain; a ``this.type`` reference becomes the leading element."""
    if not isinstance(node, ArrayLiteral):
        return []
    chain: List[str] = []
    if any(isinstance(item, RawExpr) and item.text == "this.type" for item in node):
        chain.append(own_type)
    chain.extend(item.value for item in node if isinstance(item, Scalar) and isinstance(item.value, str))
    return chain


def _scalar(values: Dict[str, FieldValue], key: str) -> Any:
    value = values.get(key)
    return value.value if isinstance(value, Scalar) else None


def _discard_leaf_only(spec: InputFieldSpec) -> None:
    for attr in LEAF_ONLY_FIELDS:
        default = False if isinstance(getattr(spec, attr), bool) else None
        setattr(spec, attr, default)
