"""VibeLog data models — Pydantic v2, camelCase on disk."""

from vibelog.models.checkpoint import Checkpoint, LedgerReceipt
from vibelog.models.log import AIContext, ChangeStats, CommitRef, LogEntry
from vibelog.models.queue import (
    RETRYABLE_STATUSES,
    VALID_QUEUE_TRANSITIONS,
    QueuedCheckpoint,
    QueueStatus,
)
from vibelog.models.state import NETWORKS, NetworkConfig, ProjectState, ProjectStats
from vibelog.models.verification import (
    AggregateVerdict,
    CheckpointVerdict,
    CheckpointVerification,
    OnchainCheckpoint,
    VerificationReport,
)

__all__ = [
    # log
    "AIContext",
    "ChangeStats",
    "CommitRef",
    "LogEntry",
    # checkpoint
    "Checkpoint",
    "LedgerReceipt",
    # queue
    "QueueStatus",
    "QueuedCheckpoint",
    "VALID_QUEUE_TRANSITIONS",
    "RETRYABLE_STATUSES",
    # state
    "NETWORKS",
    "NetworkConfig",
    "ProjectState",
    "ProjectStats",
    # verification
    "AggregateVerdict",
    "CheckpointVerdict",
    "CheckpointVerification",
    "OnchainCheckpoint",
    "VerificationReport",
]
