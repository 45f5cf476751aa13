"""Durable JSON file helpers shared by every store.

All writes go through ``atomic_write_text``: write to a temp file in the
same directory, fsync, then ``os.replace`` over the target.  A crash
mid-write leaves either the old file or the new one, never a torn JSON
document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from vibelog.errors import StoreReadError

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> None:
    """Atomically replace *path* with *content* (UTF-8)."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(content))


def write_new_text(path: Path, content: str) -> bool:
    """Atomically write *path* only if it does not exist yet.

    Returns ``False`` without touching anything when the file is already
    present.  Used for immutable records.
    """
    path = Path(path)
    if path.exists():
        return False
    atomic_write_text(path, content)
    return True


def read_json(path: Path) -> Any:
    """Load a JSON document, raising ``StoreReadError`` on any failure."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreReadError(f"Cannot read {path}: {exc}") from exc
