"""Bracket matching and top-level object segmentation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from flowcatalog.extraction.comments import QUOTES

NOT_FOUND = -1

CLOSERS = {"[": "]", "{": "}", "(": ")"}


@dataclass(frozen=True)
class Span:
    """A balanced bracketed region: ``open_pos`` and ``close_pos`` index the brackets."""

    open_pos: int
    close_pos: int
    body: str


def find_matching_bracket(text: str, start: int, open_char: str, close_char: str) -> int:
    """Return the index of the bracket closing the one just before ``start``.

    ``start`` must point immediately after an opening ``open_char``. Quoted spans
    are opaque and a backslash skips the following character, so neither escaped
    quotes nor brackets inside strings affect the depth. Returns ``NOT_FOUND``
    when the text ends before the bracket is closed.
    """
    depth = 1
    pos = start
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in QUOTES:
            pos += 1
            while pos < length and text[pos] != char:
                if text[pos] == "\\":
                    pos += 1
                pos += 1
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return NOT_FOUND


def extract_balanced(text: str, start: int, open_char: str) -> Optional[Span]:
    """Find the first ``open_char`` at or after ``start`` and slice out its balanced body."""
    close_char = CLOSERS[open_char]
    open_pos = text.find(open_char, start)
    if open_pos == NOT_FOUND:
        return None
    close_pos = find_matching_bracket(text, open_pos + 1, open_char, close_char)
    if close_pos == NOT_FOUND:
        return None
    return Span(open_pos=open_pos, close_pos=close_pos, body=text[open_pos + 1 : close_pos])


def split_top_level_objects(array_body: str) -> List[str]:
    """Split the body of an array literal into its top-level object literals.

    Each returned string includes its own braces. Filler between objects
    (commas, identifiers, spreads) is skipped, and scanning resumes strictly
    after the end of the previous object so nested objects are never split out.
    """
    objects: List[str] = []
    pos = 0
    while pos < len(array_body):
        obj_start = _next_unquoted(array_body, pos, "{")
        if obj_start == NOT_FOUND:
            break
        close_pos = find_matching_bracket(array_body, obj_start + 1, "{", "}")
        if close_pos == NOT_FOUND:
            break
        objects.append(array_body[obj_start : close_pos + 1])
        pos = close_pos + 1
    return objects


def _next_unquoted(text: str, start: int, target: str) -> int:
    pos = start
    length = len(text)
    while pos < length:
        char = text[pos]
        if char == target:
            return pos
        if char in QUOTES:
            pos += 1
            while pos < length and text[pos] != char:
                if text[pos] == "\\":
                    pos += 1
                pos += 1
        pos += 1
    return NOT_FOUND
