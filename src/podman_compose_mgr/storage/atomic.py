"""Atomic filesystem write helpers."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
import os
import tempfile


def atomic_write_text(path: Path, content: str) -> None:
    """Write text atomically using a temp file + rename."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


def atomic_write_lines(path: Path, lines: Iterable[str]) -> int:
    """Write one line per entry atomically and return the line count."""

    materialized = list(lines)
    body = "".join(f"{line}\n" for line in materialized)
    atomic_write_text(path, body)
    return len(materialized)
