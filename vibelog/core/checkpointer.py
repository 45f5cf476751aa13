"""Checkpoint Service — the control flow from pending logs to an anchored
checkpoint.

    pending logs ──fingerprint──> draft ──submit──> ledger
                                    │                 │ ok
                                    │ LedgerError     v
                                    v           Checkpoint Store (record,
                              Offline Queue      advance watermark)
                              (if requested)

A batch is never silently dropped: a failed submission either lands in
the Offline Queue or surfaces as ``SubmissionFailure``, depending on what
the caller asked for.  Logs held by a live queue item are excluded from
new batches, so no log is attested twice.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from vibelog.bridge.ledger_gateway import (
    LedgerError,
    LedgerGateway,
    LedgerUnavailableError,
    LedgerUnconfirmedError,
    ReceiptSource,
)
from vibelog.core.hasher import fingerprint
from vibelog.core.rate_limit import RateLimiter
from vibelog.core.sanitize import MAX_SUMMARY_LENGTH, sanitize_summary
from vibelog.core.verifier import VerificationEngine
from vibelog.core.workspace import Workspace
from vibelog.errors import (
    NoPendingLogsError,
    RateLimitExceededError,
    SubmissionFailure,
)
from vibelog.models.checkpoint import Checkpoint, LedgerReceipt
from vibelog.models.log import LogEntry
from vibelog.models.queue import QueuedCheckpoint
from vibelog.models.verification import VerificationReport

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class CheckpointDraft(BaseModel):
    """A prepared, not yet submitted checkpoint."""

    model_config = ConfigDict(frozen=True)

    summary: str
    entries: list[LogEntry]
    content_hash: str
    estimated_gas: int
    had_sensitive_data: bool = False
    truncated: bool = False

    @property
    def batch_cutoff(self) -> int:
        return max(e.timestamp for e in self.entries)

    @property
    def log_ids(self) -> list[str]:
        return [e.id for e in self.entries]


class CheckpointOutcome(BaseModel):
    """Result of a submission: either a recorded checkpoint or a queue id."""

    model_config = ConfigDict(frozen=True)

    checkpoint: Checkpoint | None = None
    queued_id: str | None = None
    error: str | None = None

    @property
    def queued(self) -> bool:
        return self.queued_id is not None


class SyncReport(BaseModel):
    """What one pass over the Offline Queue did."""

    model_config = ConfigDict(frozen=True)

    recovered: list[str] = []
    synced: list[Checkpoint] = []
    failed: dict[str, str] = {}
    rejected: dict[str, str] = {}
    already_recorded: list[str] = []
    rate_limited: bool = False

    @property
    def attempted(self) -> int:
        return len(self.synced) + len(self.failed) + len(self.rejected)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CheckpointService:
    """Wires the stores, the queue and the ledger gateway together.

    Parameters
    ----------
    workspace:
        An initialized workspace.
    gateway:
        Ledger backend.
    rate_limiter:
        Consulted before every ledger submission.  ``None`` disables it.
    clock:
        Returns the current time in seconds.  Used for checkpoint
        timestamps.
    max_summary_length:
        Cap applied by summary sanitization.
    """

    def __init__(
        self,
        workspace: Workspace,
        gateway: LedgerGateway,
        *,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], float] = time.time,
        max_summary_length: int = MAX_SUMMARY_LENGTH,
    ) -> None:
        self._ws = workspace
        self._gateway = gateway
        self._rate_limiter = rate_limiter
        self._clock = clock
        self._max_summary_length = max_summary_length
        # Repair a watermark left behind by a crash between the two writes.
        if workspace.is_initialized:
            workspace.checkpoints.reconcile()

    @property
    def subject_key(self) -> str:
        return self._ws.state.load().builder_address

    @property
    def gateway(self) -> LedgerGateway:
        return self._gateway

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def pending_logs(self) -> list[LogEntry]:
        """Logs newer than the watermark and not held by the Offline Queue."""
        return self._ws.pending_logs()

    def prepare(self, summary: str) -> CheckpointDraft:
        """Sanitize the summary, select pending logs and fingerprint them.

        Raises
        ------
        NoPendingLogsError
            Nothing new since the last checkpoint.
        ValueError
            The summary is empty once sanitized.
        """
        sanitized = sanitize_summary(summary, self._max_summary_length)
        if not sanitized.text:
            raise ValueError("Checkpoint summary is empty")
        if sanitized.had_sensitive_data:
            logger.warning("Sensitive data redacted from checkpoint summary")

        entries = self.pending_logs()
        if not entries:
            raise NoPendingLogsError("No new logs since the last checkpoint")

        content_hash = fingerprint(entries)
        return CheckpointDraft(
            summary=sanitized.text,
            entries=entries,
            content_hash=content_hash,
            estimated_gas=self._gateway.estimate_cost(sanitized.text, content_hash),
            had_sensitive_data=sanitized.had_sensitive_data,
            truncated=sanitized.truncated,
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, draft: CheckpointDraft, *, queue_on_failure: bool) -> CheckpointOutcome:
        """Anchor *draft* and record it, or queue it on a retryable failure.

        A permanent rejection is never queued: the payload would fail the
        same way on every retry.  Its logs stay pending.
        A transaction that was sent but not confirmed is always queued, with
        its tx id, so sync confirms it instead of anchoring it twice.

        Raises
        ------
        RateLimitExceededError
            Too many submissions inside the rate window.
        SubmissionFailure
            The ledger call failed and the batch was not queued.
        """
        self._check_rate()
        try:
            receipt = self._gateway.submit(draft.summary, draft.content_hash)
        except LedgerUnconfirmedError as exc:
            # Already sent: queue for confirmation regardless of queue_on_failure.
            queued_id = self._ws.queue.enqueue(
                draft.summary, draft.entries, sent_tx_id=exc.tx_id
            )
            logger.warning("%s; queued as %s for confirmation", exc, queued_id)
            return CheckpointOutcome(queued_id=queued_id, error=str(exc))
        except LedgerError as exc:
            if queue_on_failure and exc.retryable:
                queued_id = self._ws.queue.enqueue(draft.summary, draft.entries)
                logger.warning("Submission failed (%s); queued as %s", exc, queued_id)
                return CheckpointOutcome(queued_id=queued_id, error=str(exc))
            raise SubmissionFailure(
                f"Ledger submission failed: {exc}", retryable=exc.retryable
            ) from exc

        checkpoint = self._record(
            draft.summary, draft.content_hash, draft.log_ids, draft.batch_cutoff, receipt
        )
        return CheckpointOutcome(checkpoint=checkpoint)

    def create_checkpoint(
        self, summary: str, *, queue_on_failure: bool = False
    ) -> CheckpointOutcome:
        """``prepare`` then ``submit`` in one call."""
        return self.submit(self.prepare(summary), queue_on_failure=queue_on_failure)

    def sync_queue(self) -> SyncReport:
        """Replay queued batches one at a time, oldest first."""
        queue = self._ws.queue
        recovered = queue.recover_interrupted()
        recorded_hashes = {c.content_hash.lower() for c in self._ws.checkpoints.all()}

        synced: list[Checkpoint] = []
        failed: dict[str, str] = {}
        rejected: dict[str, str] = {}
        already_recorded: list[str] = []
        rate_limited = False

        for item in queue.list_pending():
            content_hash = fingerprint(item.included_logs)
            if content_hash in recorded_hashes:
                # Anchored and recorded before a crash; only the dequeue was lost.
                queue.dequeue(item.id)
                already_recorded.append(item.id)
                continue
            if item.sent_tx_id is None and not self._rate_allows():
                rate_limited = True
                break

            queue.mark_syncing(item.id)
            try:
                if item.sent_tx_id is not None:
                    receipt = self._confirm_sent(item.sent_tx_id)
                else:
                    receipt = self._gateway.submit(item.summary, content_hash)
            except LedgerUnconfirmedError as exc:
                queue.mark_failed(item.id, str(exc), sent_tx_id=exc.tx_id)
                failed[item.id] = str(exc)
                continue
            except LedgerError as exc:
                if exc.retryable:
                    queue.mark_failed(item.id, str(exc))
                    failed[item.id] = str(exc)
                else:
                    queue.mark_rejected(item.id, str(exc))
                    rejected[item.id] = str(exc)
                continue

            synced.append(self._record_queued(item, content_hash, receipt))
            recorded_hashes.add(content_hash)
            queue.dequeue(item.id)

        return SyncReport(
            recovered=recovered,
            synced=synced,
            failed=failed,
            rejected=rejected,
            already_recorded=already_recorded,
            rate_limited=rate_limited,
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, *, audit_content: bool = True) -> VerificationReport:
        """Compare every recorded checkpoint with the ledger."""
        engine = VerificationEngine(
            self._gateway, self._ws.logs if audit_content else None
        )
        return engine.verify(self._ws.checkpoints.all(), self.subject_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _rate_allows(self) -> bool:
        if self._rate_limiter is None:
            return True
        return self._rate_limiter.allow(self.subject_key)

    def _confirm_sent(self, tx_id: str) -> LedgerReceipt:
        """Receipt of a transaction sent earlier; never resends it."""
        if not isinstance(self._gateway, ReceiptSource):
            raise LedgerUnavailableError(
                f"this ledger backend cannot look up sent transaction {tx_id}"
            )
        receipt = self._gateway.receipt(tx_id)
        if receipt is None:
            raise LedgerUnconfirmedError(
                f"transaction {tx_id} not confirmed yet", tx_id=tx_id
            )
        return receipt

    def _check_rate(self) -> None:
        if self._rate_limiter is None:
            return
        result = self._rate_limiter.check(self.subject_key)
        if not result.allowed:
            raise RateLimitExceededError(result.retry_after)

    def _record_queued(
        self, item: QueuedCheckpoint, content_hash: str, receipt: LedgerReceipt
    ) -> Checkpoint:
        return self._record(
            item.summary, content_hash, item.log_ids, item.batch_cutoff, receipt
        )

    def _record(
        self,
        summary: str,
        content_hash: str,
        log_ids: list[str],
        batch_cutoff: int,
        receipt: LedgerReceipt,
    ) -> Checkpoint:
        checkpoint = Checkpoint(
            id=self._ws.checkpoints.next_id(),
            created_at=int(self._clock()),
            summary=summary,
            content_hash=content_hash,
            included_log_ids=log_ids,
            batch_cutoff=batch_cutoff,
            ledger_receipt=receipt,
        )
        return self._ws.checkpoints.record(checkpoint)
