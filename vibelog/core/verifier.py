"""Verification Engine — reconcile local checkpoints against the ledger.

Checkpoints are matched by position: the i-th local checkpoint (in id
order) is compared with ledger entry i for the same subject key.  The
comparison is exact and case-insensitive on the full hash; prefixes are
only kept for display.

With a Log Store attached, each checkpoint's batch is re-read and
re-fingerprinted.  That catches log files edited after anchoring, which a
stored-hash comparison alone cannot see.

Verification is read-only.  It never writes to the stores or the ledger.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from vibelog.bridge.ledger_gateway import LedgerError, LedgerGateway
from vibelog.core.hasher import fingerprint, hash_prefix, hashes_equal
from vibelog.core.log_store import LogStore
from vibelog.errors import StoreReadError, VerificationAbortedError
from vibelog.models.checkpoint import Checkpoint
from vibelog.models.verification import (
    CheckpointVerdict,
    CheckpointVerification,
    VerificationReport,
)

logger = logging.getLogger(__name__)


class VerificationEngine:
    """Compares local checkpoint records with ledger records.

    Parameters
    ----------
    gateway:
        Ledger to query.  Only ``count`` and ``lookup`` are used.
    log_store:
        When given, every checkpoint's batch is re-fingerprinted from the
        stored log files (content audit).
    """

    def __init__(self, gateway: LedgerGateway, log_store: LogStore | None = None) -> None:
        self._gateway = gateway
        self._log_store = log_store

    def verify(
        self, local_checkpoints: Sequence[Checkpoint], subject_key: str
    ) -> VerificationReport:
        """Run the full comparison and return the report.

        Raises
        ------
        VerificationAbortedError
            If the ledger cannot report how many checkpoints it holds.
        """
        try:
            onchain_count = self._gateway.count(subject_key)
        except LedgerError as exc:
            raise VerificationAbortedError(
                f"Could not read checkpoint count for {subject_key}: {exc}"
            ) from exc
        logger.debug(
            "Verifying %d local checkpoint(s) against %d on the ledger",
            len(local_checkpoints),
            onchain_count,
        )

        results = [
            self._verify_one(index, checkpoint, subject_key, onchain_count)
            for index, checkpoint in enumerate(local_checkpoints)
        ]
        return VerificationReport(
            subject_key=subject_key,
            local_count=len(local_checkpoints),
            onchain_count=onchain_count,
            results=results,
        )

    # ------------------------------------------------------------------
    # Per-checkpoint
    # ------------------------------------------------------------------

    def _verify_one(
        self, index: int, checkpoint: Checkpoint, subject_key: str, onchain_count: int
    ) -> CheckpointVerification:
        row = {
            "index": index,
            "checkpoint_id": checkpoint.id,
            "summary": checkpoint.summary,
            "created_at": checkpoint.created_at,
            "local_hash_prefix": hash_prefix(checkpoint.content_hash),
        }

        if index >= onchain_count:
            return CheckpointVerification(**row, verdict=CheckpointVerdict.NOT_FOUND)

        try:
            onchain = self._gateway.lookup(subject_key, index)
        except LedgerError as exc:
            logger.warning("Lookup of ledger index %d failed: %s", index, exc)
            return CheckpointVerification(
                **row, verdict=CheckpointVerdict.VERIFICATION_ERROR, error=str(exc)
            )

        row["onchain_hash_prefix"] = hash_prefix(onchain.hash)
        if not hashes_equal(checkpoint.content_hash, onchain.hash):
            return CheckpointVerification(**row, verdict=CheckpointVerdict.HASH_MISMATCH)

        if self._log_store is None:
            return CheckpointVerification(**row, verdict=CheckpointVerdict.VERIFIED)
        return self._audit(checkpoint, row)

    def _audit(self, checkpoint: Checkpoint, row: dict) -> CheckpointVerification:
        """Re-fingerprint the included logs and compare with the stored hash."""
        assert self._log_store is not None
        entries = []
        for log_id in checkpoint.included_log_ids:
            try:
                entry = self._log_store.get(log_id)
            except StoreReadError as exc:
                return CheckpointVerification(
                    **row, verdict=CheckpointVerdict.CONTENT_MISMATCH, error=str(exc)
                )
            if entry is None:
                return CheckpointVerification(
                    **row,
                    verdict=CheckpointVerdict.CONTENT_MISMATCH,
                    error=f"log {log_id} is missing",
                )
            entries.append(entry)

        recomputed = fingerprint(entries)
        row["recomputed_hash_prefix"] = hash_prefix(recomputed)
        if hashes_equal(recomputed, checkpoint.content_hash):
            return CheckpointVerification(**row, verdict=CheckpointVerdict.VERIFIED)
        return CheckpointVerification(
            **row,
            verdict=CheckpointVerdict.CONTENT_MISMATCH,
            error="log files no longer match the anchored hash",
        )
