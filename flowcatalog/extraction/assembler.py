"""Assemble definitions from component source files."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from flowcatalog.extraction.comments import strip_comments
from flowcatalog.extraction.fields import (
    build_credential,
    build_input_field,
    build_output_anchor,
    coerce_scalar,
    resolve_base_classes,
)
from flowcatalog.extraction.literal import (
    ArrayLiteral,
    Literal,
    LiteralSyntaxError,
    ObjectLiteral,
    Scalar,
    parse_literal,
    parse_value_at,
)
from flowcatalog.extraction.models import (
    DefinitionSpec,
    InputFieldSpec,
    OutputAnchorSpec,
)
from flowcatalog.extraction.scanner import extract_balanced, split_top_level_objects
from flowcatalog.utils.file_utils import read_text_file

logger = logging.getLogger(__name__)

NODE_SENTINEL = "implements INode"
DEFAULT_VERSION = 1.0


def _assignment(prop: str) -> re.Pattern[str]:
    return re.compile(rf"\bthis\.{prop}\s*=(?!=)\s*")


def _assigned_value(text: str, prop: str) -> Optional[Literal]:
    match = _assignment(prop).search(text)
    if not match:
        return None
    try:
        value, _ = parse_value_at(text, match.end())
    except LiteralSyntaxError:
        logger.debug("Unparseable value for this.%s", prop)
        return None
    return value


def _assigned_scalar(text: str, prop: str, kind: type = str):
    return coerce_scalar(_assigned_value(text, prop), kind)


def _assigned_span(text: str, prop: str, open_char: str) -> Optional[str]:
    """Return the balanced literal assigned to ``this.<prop>``, brackets included."""
    match = _assignment(prop).search(text)
    if not match or not text.startswith(open_char, match.end()):
        return None
    span = extract_balanced(text, match.end(), open_char)
    if span is None:
        return None
    return text[span.open_pos : span.close_pos + 1]


def _object_literals(array_literal: str) -> List[ObjectLiteral]:
    objects: List[ObjectLiteral] = []
    for chunk in split_top_level_objects(array_literal[1:-1]):
        try:
            node = parse_literal(chunk)
        except LiteralSyntaxError as exc:
            logger.warning("Skipping malformed object literal: %s", exc)
            continue
        if isinstance(node, ObjectLiteral):
            objects.append(node)
    return objects


def _string_list(text: str, prop: str) -> List[str]:
    value = _assigned_value(text, prop)
    if not isinstance(value, ArrayLiteral):
        return []
    return [item.value for item in value if isinstance(item, Scalar) and isinstance(item.value, str)]


def _version(text: str, file_path: Optional[str]) -> float:
    version = _assigned_scalar(text, "version", float)
    if version is None:
        return DEFAULT_VERSION
    if version < 0:
        logger.warning("Ignoring negative version %s", version, extra={"file_path": file_path})
        return DEFAULT_VERSION
    return version


def _base_classes(text: str, own_type: str) -> List[str]:
    literal = _assigned_span(text, "baseClasses", "[")
    chain: List[str] = []
    if literal is not None:
        try:
            chain = resolve_base_classes(parse_literal(literal), own_type)
        except LiteralSyntaxError:
            logger.debug("Unparseable baseClasses literal for %s", own_type)
    return chain or [own_type]


def _inputs(text: str) -> List[InputFieldSpec]:
    literal = _assigned_span(text, "inputs", "[")
    if literal is None:
        return []
    return [spec for spec in map(build_input_field, _object_literals(literal)) if spec is not None]


def _outputs(text: str, definition: DefinitionSpec) -> List[OutputAnchorSpec]:
    literal = _assigned_span(text, "outputs", "[")
    anchors: List[OutputAnchorSpec] = []
    if literal is not None:
        for obj in _object_literals(literal):
            anchor = build_output_anchor(obj, definition.type)
            if anchor is None:
                continue
            if not anchor.base_classes:
                anchor.base_classes = list(definition.base_classes)
            anchors.append(anchor)
    if not anchors:
        anchors.append(
            OutputAnchorSpec(
                name=definition.name,
                label=definition.label,
                base_classes=list(definition.base_classes),
            )
        )
    return anchors


def assemble_definition(source: str, file_path: Optional[str] = None) -> Optional[DefinitionSpec]:
    """Extract one definition from a component source unit.

    Returns ``None`` when the unit does not declare a component or when the
    identity fields (name, label) are missing. Optional fields that fail to
    parse are left unset.
    """
    if NODE_SENTINEL not in source:
        return None
    text = strip_comments(source)

    name = _assigned_scalar(text, "name")
    label = _assigned_scalar(text, "label")
    if not name or not label:
        logger.info("Skipping component without name/label", extra={"file_path": file_path})
        return None

    definition = DefinitionSpec(
        name=name,
        label=label,
        version=_version(text, file_path),
        type=_assigned_scalar(text, "type") or name,
        icon=_assigned_scalar(text, "icon") or "",
        category=_assigned_scalar(text, "category") or "Unknown",
        description=_assigned_scalar(text, "description") or "",
        file_path=file_path,
        color=_assigned_scalar(text, "color"),
        hide_input=bool(_assigned_scalar(text, "hideInput", bool)),
        hide_output=bool(_assigned_scalar(text, "hideOutput", bool)),
        hint=_assigned_scalar(text, "hint"),
        documentation=_assigned_scalar(text, "documentation"),
        tags=_string_list(text, "tags"),
        badge=_assigned_scalar(text, "badge"),
        deprecate_message=_assigned_scalar(text, "deprecateMessage"),
        author=_assigned_scalar(text, "author"),
        warning=_assigned_scalar(text, "warning"),
    )
    definition.base_classes = _base_classes(text, definition.type)
    definition.inputs = _inputs(text)
    definition.outputs = _outputs(text, definition)

    credential = _assigned_span(text, "credential", "{")
    if credential is not None:
        try:
            node = parse_literal(credential)
        except LiteralSyntaxError as exc:
            logger.warning("Ignoring malformed credential for %s: %s", name, exc)
        else:
            if isinstance(node, ObjectLiteral):
                definition.credential = build_credential(node)
    return definition


@dataclass
class ExtractionReport:
    definitions: List[DefinitionSpec] = field(default_factory=list)
    scanned: int = 0
    skipped: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def categories(self) -> List[str]:
        return sorted({d.category for d in self.definitions})


def discover_sources(root: str | Path, pattern: str = "**/*.ts") -> List[Path]:
    base = Path(root)
    if not base.is_dir():
        raise FileNotFoundError(f"Source directory not found: {root}")
    return sorted(p for p in base.glob(pattern) if p.is_file())


def extract_corpus(paths: Iterable[Path], root: str | Path | None = None) -> ExtractionReport:
    """Run the assembler over every source unit; failures are logged and skipped."""
    report = ExtractionReport()
    base = Path(root) if root is not None else None
    for path in paths:
        report.scanned += 1
        rel = str(path.relative_to(base)) if base is not None else str(path)
        try:
            source = read_text_file(path)
            definition = assemble_definition(source, file_path=rel)
        except ValueError as exc:
            logger.warning("Skipping unreadable source %s: %s", rel, exc)
            report.failed.append(rel)
            continue
        except Exception:
            logger.exception("Failed to extract definition", extra={"file_path": rel})
            report.failed.append(rel)
            continue
        if definition is None:
            report.skipped += 1
            continue
        report.definitions.append(definition)
    logger.info(
        "Extracted %d definitions from %d files across %d categories",
        len(report.definitions),
        report.scanned,
        len(report.categories),
    )
    return report
