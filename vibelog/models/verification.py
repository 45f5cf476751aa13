"""Verification report models — the auditable output of ``vibe verify``.

The report is a proof artifact, not a boolean: it keeps per-checkpoint
detail so a reader can see exactly which index disagreed and how.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CheckpointVerdict(str, Enum):
    """Outcome of comparing one local checkpoint against the ledger."""

    VERIFIED = "verified"
    HASH_MISMATCH = "hash_mismatch"
    NOT_FOUND = "not_found"
    VERIFICATION_ERROR = "verification_error"
    # stored hash matches the ledger but the log files no longer hash to it
    CONTENT_MISMATCH = "content_mismatch"


class AggregateVerdict(str, Enum):
    CONFIRMED = "confirmed"
    INCOMPLETE = "incomplete"


class OnchainCheckpoint(BaseModel):
    """A checkpoint record as reported by the ledger."""

    model_config = ConfigDict(frozen=True)

    hash: str
    summary: str = ""
    timestamp: int = 0
    batch_size: int = 0


class CheckpointVerification(BaseModel):
    """Per-checkpoint detail row."""

    model_config = ConfigDict(frozen=True)

    index: int  # 0-based ledger position
    checkpoint_id: str
    summary: str = ""
    created_at: int = 0
    local_hash_prefix: str = ""
    onchain_hash_prefix: str = ""
    recomputed_hash_prefix: str = ""
    verdict: CheckpointVerdict
    error: str | None = None


class VerificationReport(BaseModel):
    """Result of reconciling local checkpoints against the ledger."""

    model_config = ConfigDict(frozen=True)

    subject_key: str
    local_count: int
    onchain_count: int
    results: list[CheckpointVerification] = []
    checked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def verdict(self) -> AggregateVerdict:
        """CONFIRMED iff every local checkpoint verified."""
        if all(r.verdict == CheckpointVerdict.VERIFIED for r in self.results):
            return AggregateVerdict.CONFIRMED
        return AggregateVerdict.INCOMPLETE

    @property
    def extra_onchain(self) -> int:
        """Ledger entries with no local counterpart."""
        return max(0, self.onchain_count - self.local_count)

    def count(self, verdict: CheckpointVerdict) -> int:
        return sum(1 for r in self.results if r.verdict == verdict)
