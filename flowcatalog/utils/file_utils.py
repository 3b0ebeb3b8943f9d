"""File utilities."""
from __future__ import annotations

from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


# Asset extensions found next to component sources; never decoded as text
BINARY_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".bmp",
    ".ico",
    ".webp",
    ".svg",
    ".zip",
    ".tar",
    ".gz",
    ".woff",
    ".woff2",
    ".ttf",
    ".pdf",
}


def looks_binary(path: Path) -> bool:
    """Heuristic check whether a file is binary by extension and by inspecting bytes."""
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    try:
        with open(path, "rb") as fh:
            chunk = fh.read(512)
    except OSError:
        return True
    if not chunk:
        return False
    if b"\x00" in chunk:
        return True
    return chunk.startswith((b"\x89PNG", b"\xff\xd8\xff", b"GIF8", b"PK\x03\x04"))


def read_text_file(path: str | Path) -> str:
    """Read one component source unit as UTF-8.

    Raises ``ValueError`` for binary files so the corpus walk can skip them.
    Undecodable bytes in a text file are dropped rather than failing the unit.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    if looks_binary(p):
        raise ValueError(f"Binary file: {p.name}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return p.read_text(encoding="utf-8", errors="ignore")
