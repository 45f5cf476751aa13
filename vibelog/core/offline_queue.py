"""Durable offline queue for checkpoints whose ledger submission failed.

Layout: ``{data_dir}/offline-queue.json`` — a JSON list of queued items.

Every mutation rewrites the file atomically before returning, so a crash
at any point leaves a readable queue.  Status changes follow
``VALID_QUEUE_TRANSITIONS``; ``rejected`` is terminal and marks payloads
the ledger will never accept.

An unreadable queue file does not take the tool down: it is moved aside
(``offline-queue.json.corrupt-<ts>``) and the queue starts empty.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from vibelog.core.storage import atomic_write_text
from vibelog.errors import InvalidQueueTransitionError, QueueItemNotFoundError
from vibelog.models.log import LogEntry
from vibelog.models.queue import (
    RETRYABLE_STATUSES,
    VALID_QUEUE_TRANSITIONS,
    QueuedCheckpoint,
    QueueStatus,
)

logger = logging.getLogger(__name__)

_ITEMS = TypeAdapter(list[QueuedCheckpoint])
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

INTERRUPTED_ERROR = "interrupted during submission"


class OfflineQueue:
    """Retry buffer for failed checkpoint submissions.

    Parameters
    ----------
    path:
        Location of the queue file.  Its parent directory must exist.
    clock:
        Returns the current time in seconds.  Injected for tests.
    """

    def __init__(self, path: Path, *, clock: Callable[[], float] = time.time) -> None:
        self._path = Path(path)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[QueuedCheckpoint]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _ITEMS.validate_python(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            self._quarantine(exc)
            return []

    def _quarantine(self, exc: Exception) -> None:
        target = self._path.with_name(f"{self._path.name}.corrupt-{int(self._clock())}")
        try:
            self._path.replace(target)
        except OSError as move_exc:
            logger.warning(
                "Offline queue %s is unreadable (%s) and could not be moved aside (%s); "
                "treating as empty",
                self._path,
                exc,
                move_exc,
            )
            return
        logger.warning(
            "Offline queue %s is unreadable (%s); moved to %s and treating as empty",
            self._path,
            exc,
            target,
        )

    def _save(self, items: list[QueuedCheckpoint]) -> None:
        payload = _ITEMS.dump_json(items, by_alias=True, exclude_none=True, indent=2)
        atomic_write_text(self._path, payload.decode("utf-8") + "\n")

    def _find(self, items: list[QueuedCheckpoint], item_id: str) -> QueuedCheckpoint:
        for item in items:
            if item.id == item_id:
                return item
        raise QueueItemNotFoundError(f"Queued checkpoint {item_id} not found")

    def _new_id(self) -> str:
        millis = int(self._clock() * 1000)
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
        return f"offline-{millis}-{suffix}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(
        self,
        summary: str,
        entries: Sequence[LogEntry],
        *,
        sent_tx_id: str | None = None,
    ) -> str:
        """Queue a batch for later submission.  Returns the queue id.

        *sent_tx_id* marks a batch whose transaction already went out; sync
        confirms it by receipt instead of submitting again.
        """
        items = self._load()
        taken = {item.id for item in items}
        item_id = self._new_id()
        while item_id in taken:
            item_id = self._new_id()

        items.append(
            QueuedCheckpoint(
                id=item_id,
                created_at=int(self._clock()),
                summary=summary,
                included_logs=list(entries),
                sent_tx_id=sent_tx_id,
            )
        )
        self._save(items)
        logger.info("Queued %s (%d logs) for later submission", item_id, len(entries))
        return item_id

    def all(self) -> list[QueuedCheckpoint]:
        return self._load()

    def get(self, item_id: str) -> QueuedCheckpoint:
        return self._find(self._load(), item_id)

    def list_pending(self) -> list[QueuedCheckpoint]:
        """Items eligible for a retry (``pending`` or ``failed``), oldest first."""
        return [item for item in self._load() if item.status in RETRYABLE_STATUSES]

    def queued_log_ids(self) -> set[str]:
        """Ids of every log held by a non-rejected queue item."""
        return {
            log_id
            for item in self._load()
            if item.status != QueueStatus.REJECTED
            for log_id in item.log_ids
        }

    def mark_syncing(self, item_id: str) -> QueuedCheckpoint:
        return self._transition(item_id, QueueStatus.SYNCING)

    def mark_failed(
        self, item_id: str, error: str, *, sent_tx_id: str | None = None
    ) -> QueuedCheckpoint:
        """Record a failed attempt.  Increments ``retry_count`` once.

        A *sent_tx_id* is kept on the item for later confirmation.
        """
        return self._transition(
            item_id, QueueStatus.FAILED, error=error, sent_tx_id=sent_tx_id
        )

    def mark_rejected(self, item_id: str, error: str) -> QueuedCheckpoint:
        """Record a permanent rejection.  The item will not be retried."""
        return self._transition(item_id, QueueStatus.REJECTED, error=error)

    def dequeue(self, item_id: str) -> QueuedCheckpoint:
        """Remove an item (after a successful submission)."""
        items = self._load()
        item = self._find(items, item_id)
        items.remove(item)
        self._save(items)
        logger.info("Dequeued %s", item_id)
        return item

    def clear(self) -> int:
        """Drop every item.  Returns how many were removed."""
        items = self._load()
        self._save([])
        return len(items)

    def recover_interrupted(self) -> list[str]:
        """Move items stuck in ``syncing`` to ``failed``.

        ``syncing`` with no attempt in flight means the process died
        mid-submission.  The submission may or may not have reached the
        ledger; the item becomes retryable and ``vibe verify`` will show
        whether a duplicate was anchored.
        """
        items = self._load()
        recovered: list[str] = []
        for item in items:
            if item.status == QueueStatus.SYNCING:
                item.status = QueueStatus.FAILED
                item.retry_count += 1
                item.last_error = INTERRUPTED_ERROR
                recovered.append(item.id)
        if recovered:
            self._save(items)
            logger.warning(
                "Recovered %d interrupted submission(s): %s",
                len(recovered),
                ", ".join(recovered),
            )
        return recovered

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(
        self,
        item_id: str,
        target: QueueStatus,
        *,
        error: str | None = None,
        sent_tx_id: str | None = None,
    ) -> QueuedCheckpoint:
        items = self._load()
        item = self._find(items, item_id)
        allowed = VALID_QUEUE_TRANSITIONS.get(item.status, set())
        if target not in allowed:
            raise InvalidQueueTransitionError(
                f"Cannot move {item_id} from {item.status.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        previous = item.status
        item.status = target
        if target in (QueueStatus.FAILED, QueueStatus.REJECTED):
            item.retry_count += 1
            item.last_error = error
        if sent_tx_id is not None:
            item.sent_tx_id = sent_tx_id
        self._save(items)
        logger.info("Queue %s: %s -> %s", item_id, previous.value, target.value)
        return item
