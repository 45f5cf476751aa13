"""Content fingerprinting for log batches.

The fingerprint is what gets anchored on the ledger, so it must be
byte-identical across runs, processes and platforms.  The projection and
serialization are frozen, which keeps hashes of previously anchored
checkpoints verifiable:

- projection per entry: ``id``, ``timestamp``, ``message``, ``commit``
  (hash only, if present), ``diff`` (if present), in that key order
- compact JSON separators (",", ":"), no ASCII escaping, UTF-8 bytes
- SHA-256, rendered as ``0x`` + 64 lowercase hex characters
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Sequence
from typing import Any

from vibelog.models.log import LogEntry

HASH_PREFIX = "0x"
HASH_HEX_LENGTH = 64


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def project_entry(entry: LogEntry) -> dict[str, Any]:
    """Canonical projection of one entry.

    AI commentary, commit metadata other than the hash, and any future
    optional fields are excluded from content identity.
    """
    projection: dict[str, Any] = {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "message": entry.message,
    }
    if entry.commit_ref is not None:
        projection["commit"] = entry.commit_ref.hash
    if entry.change_stats is not None:
        stats = entry.change_stats
        projection["diff"] = {
            "filesChanged": stats.files_changed,
            "linesAdded": stats.lines_added,
            "linesDeleted": stats.lines_deleted,
            "files": list(stats.files),
        }
    return projection


def canonical_batch_bytes(entries: Iterable[LogEntry]) -> bytes:
    """Serialize the ordered projections deterministically."""
    return json.dumps(
        [project_entry(e) for e in entries],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def fingerprint(entries: Sequence[LogEntry]) -> str:
    """Deterministic content hash of an ordered batch of log entries.

    Order matters: the same entries in a different order produce a
    different fingerprint.  The empty batch is valid and hashes ``[]``.
    """
    return f"{HASH_PREFIX}{sha256_hex(canonical_batch_bytes(entries))}"


EMPTY_FINGERPRINT = fingerprint([])


def normalize_hash(value: str) -> str:
    """Lowercase and ensure the ``0x`` prefix."""
    value = value.strip().lower()
    if not value.startswith(HASH_PREFIX):
        value = HASH_PREFIX + value
    return value


def hashes_equal(a: str, b: str) -> bool:
    """Case-insensitive exact comparison of two fingerprints."""
    return normalize_hash(a) == normalize_hash(b)


def hash_prefix(value: str, length: int = 18) -> str:
    """Short form used in reports (``0x`` + 16 hex chars by default)."""
    return value[:length] if value else ""


def hash_to_bytes32(value: str) -> bytes:
    """Convert a fingerprint to the 32 raw bytes the ledger stores."""
    raw = bytes.fromhex(normalize_hash(value)[len(HASH_PREFIX):])
    if len(raw) != 32:
        raise ValueError(f"Expected a 32-byte hash, got {len(raw)} bytes")
    return raw


def is_zero_hash(value: str) -> bool:
    return int(normalize_hash(value), 16) == 0
