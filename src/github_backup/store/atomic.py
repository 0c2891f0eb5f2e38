"""Canonical JSON rendering and crash-safe file replacement.

Records and the sync state are rendered with sorted keys, two-space
indentation and a trailing newline, so rewriting unchanged content yields
byte-identical files. Files are replaced by writing a temporary sibling
and renaming it over the target: a reader (or a crash) sees either the
old file or the new one, never a truncated mix.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def dump_json(data: Any) -> bytes:
    """Render ``data`` as canonical UTF-8 JSON."""
    text = json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def write_atomic(path: Path, content: bytes) -> None:
    """Replace ``path`` with ``content`` atomically.

    Raises:
        OSError: If the temporary file cannot be written or renamed. The
            target is left untouched and the temporary file is removed.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def read_bytes(path: Path) -> bytes | None:
    """Read a file, returning None if it does not exist."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
