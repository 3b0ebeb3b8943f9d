"""Recursive-descent parser for object/array literals embedded in source text.

The parser understands just enough of the literal grammar to build a tagged
tree of :class:`Scalar`, :class:`ArrayLiteral` and :class:`ObjectLiteral`
nodes. Anything that is not a literal (identifiers, calls, arrow functions,
template expressions) is captured verbatim as :class:`RawExpr` by skipping to
the next top-level separator, so field lookups always stay within the scope
of the object that declares them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple, Union

from flowcatalog.extraction.comments import QUOTES

_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_IDENT = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_CAST = re.compile(r"(?:as|satisfies)\b")
_INTERPOLATION = re.compile(r"(?<!\\)\$\{")
_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": None}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_OPENERS = "([{"
_CLOSERS = ")]}"


class LiteralSyntaxError(ValueError):
    """Raised when literal text ends early or is structurally malformed."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at offset {position}")
        self.position = position


@dataclass(frozen=True)
class Scalar:
    value: Union[str, int, float, bool, None]


@dataclass(frozen=True)
class RawExpr:
    text: str


@dataclass(frozen=True)
class ArrayLiteral:
    items: Tuple["Literal", ...]

    def __iter__(self) -> Iterator["Literal"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ObjectLiteral:
    entries: Tuple[Tuple[str, "Literal"], ...]

    def get(self, key: str) -> Optional["Literal"]:
        """Value of the first entry named ``key``; later duplicates are ignored."""
        for name, value in self.entries:
            if name == key:
                return value
        return None

    def keys(self) -> list[str]:
        return [name for name, _ in self.entries]

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.entries)


Literal = Union[Scalar, RawExpr, ArrayLiteral, ObjectLiteral]


def parse_literal(text: str) -> Literal:
    """Parse ``text`` as exactly one literal value."""
    parser = _Parser(text)
    value = parser.parse_value()
    parser.skip_ws()
    if parser.peek() == ";":
        parser.pos += 1
        parser.skip_ws()
    if not parser.at_end():
        raise LiteralSyntaxError("Unexpected trailing content", parser.pos)
    return value


def parse_value_at(text: str, pos: int) -> Tuple[Literal, int]:
    """Parse one literal value starting at ``pos``; return it and the end offset."""
    parser = _Parser(text, pos)
    value = parser.parse_value()
    return value, parser.pos


def to_python(node: Literal) -> Any:
    """Convert a literal tree to plain Python values (raw expressions become their text)."""
    if isinstance(node, Scalar):
        return node.value
    if isinstance(node, RawExpr):
        return node.text
    if isinstance(node, ArrayLiteral):
        return [to_python(item) for item in node.items]
    return {name: to_python(value) for name, value in node.entries}


class _Parser:
    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_ws(self) -> None:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = len(text) if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                self.pos = len(text) if close == -1 else close + 2
            else:
                return

    def parse_value(self) -> Literal:
        self.skip_ws()
        if self.at_end():
            raise LiteralSyntaxError("Expected a value", self.pos)
        start = self.pos
        char = self.peek()
        if char == "{":
            return self._parse_object()
        if char == "[":
            return self._parse_array()
        if char in QUOTES:
            return self._parse_string_chain(start)
        number = _NUMBER.match(self.text, self.pos)
        if number and not _IDENT.match(self.text, number.end()):
            self.pos = number.end()
            if self._at_separator():
                token = number.group(0)
                is_float = any(marker in token for marker in ".eE")
                return Scalar(float(token) if is_float else int(token))
            return self._raw_from(start)
        ident = _IDENT.match(self.text, self.pos)
        if ident and ident.group(0) in _KEYWORDS:
            self.pos = ident.end()
            if self._at_separator():
                return Scalar(_KEYWORDS[ident.group(0)])
        return self._raw_from(start)

    def _at_separator(self) -> bool:
        """True when the value just read is complete: a separator, a line break or a cast follows."""
        start = self.pos
        self.skip_ws()
        if self.at_end() or self.peek() in ",;" or self.peek() in _CLOSERS:
            return True
        if "\n" in self.text[start : self.pos]:
            return True
        return bool(_CAST.match(self.text, self.pos))

    def _raw_from(self, start: int) -> RawExpr:
        self.pos = start
        self._skip_expression()
        return RawExpr(self.text[start : self.pos].strip())

    def _skip_expression(self) -> None:
        """Advance to the next top-level ``,``/``;`` or unmatched closer."""
        depth = 0
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in QUOTES:
                self._read_string()
                continue
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                if depth == 0:
                    return
                depth -= 1
            elif char in ",;" and depth == 0:
                return
            self.pos += 1
        if depth:
            raise LiteralSyntaxError("Unbalanced expression", self.pos)

    def _read_string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        parts: list[str] = []
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(parts)
            if char == "\\" and self.pos + 1 < len(text):
                escaped = text[self.pos + 1]
                if escaped != "\n":
                    parts.append(_ESCAPES.get(escaped, escaped))
                self.pos += 2
                continue
            parts.append(char)
            self.pos += 1
        raise LiteralSyntaxError("Unterminated string", self.pos)

    def _is_interpolated_template(self) -> bool:
        if self.peek() != "`":
            return False
        start = self.pos
        self._read_string()
        raw = self.text[start : self.pos]
        self.pos = start
        return bool(_INTERPOLATION.search(raw))

    def _parse_string_chain(self, start: int) -> Literal:
        if self._is_interpolated_template():
            return self._raw_from(start)
        value = self._read_string()
        while True:
            mark = self.pos
            self.skip_ws()
            if self.peek() != "+":
                self.pos = mark
                break
            self.pos += 1
            self.skip_ws()
            if self.peek() not in QUOTES or self._is_interpolated_template():
                return self._raw_from(start)
            value += self._read_string()
        if self._at_separator():
            return Scalar(value)
        return self._raw_from(start)

    def _parse_array(self) -> ArrayLiteral:
        self.pos += 1
        items: list[Literal] = []
        while True:
            self.skip_ws()
            if self.at_end():
                raise LiteralSyntaxError("Unterminated array", self.pos)
            if self.peek() == "]":
                self.pos += 1
                return ArrayLiteral(tuple(items))
            if self.peek() == ",":
                self.pos += 1
                continue
            if self.text.startswith("...", self.pos):
                items.append(self._raw_from(self.pos))
            else:
                items.append(self.parse_value())
            self._finish_element("]")

    def _parse_object(self) -> ObjectLiteral:
        self.pos += 1
        entries: list[Tuple[str, Literal]] = []
        while True:
            self.skip_ws()
            if self.at_end():
                raise LiteralSyntaxError("Unterminated object", self.pos)
            char = self.peek()
            if char == "}":
                self.pos += 1
                return ObjectLiteral(tuple(entries))
            if char == ",":
                self.pos += 1
                continue
            if self.text.startswith("...", self.pos):
                self._skip_expression()
                self._finish_element("}")
                continue
            key_start = self.pos
            key = self._read_key()
            self.skip_ws()
            if self.peek() == ":":
                self.pos += 1
                entries.append((key, self.parse_value()))
            elif self.peek() in (",", "}"):
                entries.append((key, RawExpr(key)))
            else:
                # method shorthand or accessor: keep the source text
                entries.append((key, self._raw_from(key_start)))
            self._finish_element("}")

    def _read_key(self) -> str:
        char = self.peek()
        if char in QUOTES:
            return self._read_string()
        if char == "[":
            start = self.pos
            self.pos += 1
            self._skip_expression()
            if self.peek() != "]":
                raise LiteralSyntaxError("Unterminated computed key", self.pos)
            self.pos += 1
            return self.text[start : self.pos]
        match = _IDENT.match(self.text, self.pos) or _NUMBER.match(self.text, self.pos)
        if not match:
            raise LiteralSyntaxError(f"Unexpected character {char!r} in object key", self.pos)
        self.pos = match.end()
        return match.group(0)

    def _finish_element(self, closer: str) -> None:
        """Consume the separator after an element, discarding trailing casts like ``as const``."""
        self.skip_ws()
        char = self.peek()
        if char == "," or char == closer:
            return
        if self.at_end():
            raise LiteralSyntaxError(f"Expected ',' or {closer!r}", self.pos)
        self._skip_expression()
        if self.peek() not in (",", closer):
            raise LiteralSyntaxError(f"Expected ',' or {closer!r}", self.pos)
