"""Small IO helpers for envfile.

Reads go through one function so every caller resolves encodings the same
way; writes are atomic to avoid partially-written report files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    """Read a text file with the given codec.

    Raises `OSError` for unreadable paths, `LookupError` for unknown codec
    names and `UnicodeDecodeError` for undecodable content.
    """

    with Path(path).open("r", encoding=encoding, newline="") as f:
        return f.read()


def write_json(path: Path, data: Any, *, indent: int = 2) -> None:
    """Write a JSON file (pretty-printed by default)."""

    _atomic_write(path, json.dumps(data, ensure_ascii=False, indent=indent) + "\n")


def _atomic_write(path: Path, payload: str) -> None:
    """Write via a temp file to avoid corrupting outputs on partial writes."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(payload)
    tmp_path.replace(path)
