"""Comment stripping that leaves string-literal contents untouched."""
from __future__ import annotations

QUOTES = ("'", '"', "`")


def strip_comments(text: str) -> str:
    """Remove ``// line`` and ``/* block */`` comments from source text.

    Quoted spans (single, double and backtick) are copied verbatim, so a
    ``//`` inside a URL string survives. Line comments keep their trailing
    newline; block comments collapse to a single space.
    """
    out: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in QUOTES:
            end = _skip_quoted(text, pos)
            out.append(text[pos:end])
            pos = end
            continue
        if char == "/" and pos + 1 < length:
            nxt = text[pos + 1]
            if nxt == "/":
                newline = text.find("\n", pos + 2)
                pos = length if newline == -1 else newline
                continue
            if nxt == "*":
                close = text.find("*/", pos + 2)
                pos = length if close == -1 else close + 2
                out.append(" ")
                continue
        out.append(char)
        pos += 1
    return "".join(out)


def _skip_quoted(text: str, start: int) -> int:
    """Return the index just past the quoted span opened at ``start``."""
    quote = text[start]
    pos = start + 1
    length = len(text)
    while pos < length and text[pos] != quote:
        if text[pos] == "\\":
            pos += 1
        pos += 1
    return min(pos + 1, length)
