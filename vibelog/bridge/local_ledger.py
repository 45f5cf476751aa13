"""SQLite-backed local ledger — an append-only stand-in for the contract.

Used when no chain is configured (``VIBELOG_LEDGER_BACKEND=local``) and
throughout the test suite.  It enforces the same rules as the VibeProof
contract (bounded summary, non-zero 32-byte hash) and keeps one ordered
list of checkpoints per subject key.

Two storage modes:

1. **File** (``db_path`` provided): persistent across processes.
2. **In-memory** (``db_path`` is None): volatile, one connection.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from vibelog.bridge.ledger_gateway import (
    DEFAULT_GAS_ESTIMATE,
    LedgerError,
    LedgerNetworkError,
    preflight,
)
from vibelog.core.hasher import HASH_PREFIX
from vibelog.core.sanitize import MAX_SUMMARY_LENGTH
from vibelog.models.checkpoint import LedgerReceipt
from vibelog.models.verification import OnchainCheckpoint

logger = logging.getLogger(__name__)

_CREATE_LEDGER = """
CREATE TABLE IF NOT EXISTS checkpoints (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_key   TEXT NOT NULL,
    log_hash      BLOB NOT NULL,
    summary       TEXT NOT NULL,
    timestamp     INTEGER NOT NULL,
    session_count INTEGER NOT NULL
);
"""

_CREATE_IDX_SUBJECT = """
CREATE INDEX IF NOT EXISTS idx_subject ON checkpoints(subject_key, id);
"""


class LocalLedger:
    """Append-only checkpoint ledger in SQLite.

    Parameters
    ----------
    subject_key:
        The key every ``submit`` is attributed to (the builder address).
    db_path:
        SQLite file.  ``None`` keeps the ledger in memory.
    gas_per_submit:
        Gas reported in each receipt.
    fee_gwei:
        Fee reported by ``current_fee_gwei``.
    clock:
        Returns the current time in seconds.  Injected for tests.
    """

    def __init__(
        self,
        subject_key: str,
        db_path: Path | None = None,
        *,
        gas_per_submit: int = DEFAULT_GAS_ESTIMATE,
        fee_gwei: float = 3.0,
        max_summary_length: int = MAX_SUMMARY_LENGTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._subject_key = subject_key
        self._gas = gas_per_submit
        self._fee_gwei = fee_gwei
        self._max_summary_length = max_summary_length
        self._clock = clock
        if db_path is not None:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(db_path) if db_path is not None else ":memory:")
        self._db.execute(_CREATE_LEDGER)
        self._db.execute(_CREATE_IDX_SUBJECT)
        self._db.commit()
        logger.debug("LocalLedger opened at %s", db_path or ":memory:")

    @property
    def subject_key(self) -> str:
        return self._subject_key

    # ------------------------------------------------------------------
    # LedgerGateway
    # ------------------------------------------------------------------

    def estimate_cost(self, summary: str, content_hash: str) -> int:
        return self._gas

    def submit(self, summary: str, content_hash: str) -> LedgerReceipt:
        raw_hash = preflight(summary, content_hash, max_length=self._max_summary_length)
        batch_no = self.count(self._subject_key) + 1
        try:
            cursor = self._db.execute(
                "INSERT INTO checkpoints (subject_key, log_hash, summary, timestamp, session_count) "
                "VALUES (?, ?, ?, ?, ?)",
                (self._subject_key, raw_hash, summary, int(self._clock()), batch_no),
            )
            self._db.commit()
        except sqlite3.Error as exc:
            raise LedgerNetworkError(f"local ledger write failed: {exc}") from exc

        row_id = cursor.lastrowid or 0
        logger.debug("LocalLedger: anchored %s as row %d", content_hash[:18], row_id)
        return LedgerReceipt(
            tx_id=f"{HASH_PREFIX}{row_id:064x}",
            block_ref=row_id,
            gas_used=str(self._gas),
            cost="0",
        )

    def count(self, subject_key: str) -> int:
        row = self._query(
            "SELECT COUNT(*) FROM checkpoints WHERE subject_key = ?", (subject_key,)
        ).fetchone()
        return row[0] if row else 0

    def lookup(self, subject_key: str, index: int) -> OnchainCheckpoint:
        if index < 0:
            raise LedgerNetworkError(f"index {index} out of range")
        row = self._query(
            "SELECT log_hash, summary, timestamp, session_count FROM checkpoints "
            "WHERE subject_key = ? ORDER BY id ASC LIMIT 1 OFFSET ?",
            (subject_key, index),
        ).fetchone()
        if row is None:
            raise LedgerNetworkError(f"index {index} out of range for {subject_key}")
        log_hash, summary, timestamp, session_count = row
        return OnchainCheckpoint(
            hash=HASH_PREFIX + bytes(log_hash).hex(),
            summary=summary,
            timestamp=timestamp,
            batch_size=session_count,
        )

    # ------------------------------------------------------------------
    # FeeSource
    # ------------------------------------------------------------------

    def current_fee_gwei(self) -> float:
        return self._fee_gwei

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
        try:
            return self._db.execute(sql, params)
        except sqlite3.Error as exc:
            raise LedgerError(f"local ledger read failed: {exc}") from exc

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> LocalLedger:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LocalLedger(subject_key={self._subject_key!r})"
