"""Offline queue models and the queued-checkpoint state machine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vibelog.models.log import LogEntry


class QueueStatus(str, Enum):
    """Lifecycle of a checkpoint waiting for ledger submission."""

    PENDING = "pending"  # enqueued, never attempted
    SYNCING = "syncing"  # attempt in flight
    FAILED = "failed"  # attempt failed, retryable
    REJECTED = "rejected"  # ledger refused the payload, terminal


# Enforced by OfflineQueue.  SYNCING is only entered from PENDING or FAILED.
VALID_QUEUE_TRANSITIONS: dict[QueueStatus, set[QueueStatus]] = {
    QueueStatus.PENDING: {QueueStatus.SYNCING, QueueStatus.FAILED, QueueStatus.REJECTED},
    QueueStatus.SYNCING: {QueueStatus.FAILED, QueueStatus.REJECTED},
    QueueStatus.FAILED: {QueueStatus.SYNCING, QueueStatus.REJECTED},
    QueueStatus.REJECTED: set(),  # terminal
}

RETRYABLE_STATUSES: frozenset[QueueStatus] = frozenset(
    {QueueStatus.PENDING, QueueStatus.FAILED}
)


class QueuedCheckpoint(BaseModel):
    """A checkpoint whose ledger submission has not succeeded yet.

    Holds full log entries rather than ids so the batch can be re-hashed
    and resubmitted later.  Mutable: status and retry bookkeeping change
    in place and are persisted by the queue after each change.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: int = Field(alias="timestamp")
    summary: str
    included_logs: list[LogEntry] = Field(default_factory=list, alias="logs")
    status: QueueStatus = QueueStatus.PENDING
    retry_count: int = Field(default=0, alias="retries")
    last_error: str | None = Field(default=None, alias="error")
    # set once a transaction was sent for this batch; confirm it, never resend
    sent_tx_id: str | None = Field(default=None, alias="txHash")

    @property
    def log_ids(self) -> list[str]:
        return [entry.id for entry in self.included_logs]

    @property
    def batch_cutoff(self) -> int:
        return max((entry.timestamp for entry in self.included_logs), default=self.created_at)
