"""Append-only Checkpoint Store and the watermark it owns.

Layout: ``{data_dir}/checkpoints/{checkpoint_id}.json``.

Recording a checkpoint touches two files: the immutable checkpoint record
and the watermark inside ``config.json``.  They cannot be written in one
atomic step, so the write order is fixed instead:

1. the checkpoint record (atomic, never overwritten)
2. the state file (atomic)

The checkpoint record is the source of truth.  ``watermark()`` is the max
of the stored watermark and every record's ``batch_cutoff``, so a crash
between steps 1 and 2 can never cause a log to be selected again or
dropped from all future batches.  ``reconcile()`` rewrites the cached
watermark and counters after such a crash.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from vibelog.core.state_store import StateStore
from vibelog.core.storage import read_json, write_new_text
from vibelog.errors import CheckpointExistsError, NotInitializedError, StoreReadError
from vibelog.models.checkpoint import Checkpoint

logger = logging.getLogger(__name__)


def _id_order(path: Path) -> tuple[int, str]:
    """Numeric order, so checkpoint_1000 sorts after checkpoint_999."""
    suffix = path.stem.removeprefix("checkpoint_")
    return (int(suffix) if suffix.isdigit() else 0, path.stem)


def _gas_of(checkpoint: Checkpoint) -> int:
    try:
        return int(checkpoint.ledger_receipt.gas_used or 0)
    except ValueError:
        logger.warning(
            "Checkpoint %s has non-integer gas_used %r; counted as 0",
            checkpoint.id,
            checkpoint.ledger_receipt.gas_used,
        )
        return 0


class CheckpointStore:
    """Immutable checkpoint records plus the pending-logs watermark.

    Parameters
    ----------
    checkpoints_dir:
        Directory holding one JSON file per checkpoint.
    state_store:
        Where the watermark and aggregate counters live.
    """

    def __init__(self, checkpoints_dir: Path, state_store: StateStore) -> None:
        self._dir = Path(checkpoints_dir)
        self._state = state_store

    def _require_dir(self) -> None:
        if not self._dir.is_dir():
            raise NotInitializedError(self._dir)

    def _path(self, checkpoint_id: str) -> Path:
        return self._dir / f"{checkpoint_id}.json"

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------

    def next_id(self) -> str:
        """``checkpoint_{count+1}`` zero-padded to three digits."""
        return f"checkpoint_{self.count() + 1:03d}"

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record(self, checkpoint: Checkpoint) -> Checkpoint:
        """Persist *checkpoint*, then advance the watermark and counters.

        The watermark only moves forward: a late-synced batch with an
        older cutoff leaves it where it is.
        """
        self._require_dir()
        if not write_new_text(self._path(checkpoint.id), checkpoint.to_json() + "\n"):
            raise CheckpointExistsError(f"Checkpoint {checkpoint.id} already exists")

        state = self._state.load()
        stats = state.stats.model_copy(
            update={
                "total_checkpoints": state.stats.total_checkpoints + 1,
                "total_gas_spent": str(int(state.stats.total_gas_spent or 0) + _gas_of(checkpoint)),
            }
        )
        self._state.save(
            state.model_copy(
                update={
                    "last_checkpoint": max(state.last_checkpoint, checkpoint.cutoff),
                    "stats": stats,
                }
            )
        )
        logger.info(
            "Recorded %s (%d logs, cutoff=%d, hash=%s)",
            checkpoint.id,
            len(checkpoint.included_log_ids),
            checkpoint.cutoff,
            checkpoint.content_hash[:18],
        )
        return checkpoint

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def all(self) -> list[Checkpoint]:
        """Every checkpoint, ordered by id (equivalently, ledger order)."""
        self._require_dir()
        paths = sorted(self._dir.glob("checkpoint_*.json"), key=_id_order)
        return [self._load(p) for p in paths]

    def get(self, checkpoint_id: str) -> Checkpoint | None:
        self._require_dir()
        path = self._path(checkpoint_id)
        return self._load(path) if path.exists() else None

    def count(self) -> int:
        self._require_dir()
        return sum(1 for _ in self._dir.glob("checkpoint_*.json"))

    def attested_log_ids(self) -> set[str]:
        """Ids of every log included in a recorded checkpoint."""
        return {log_id for c in self.all() for log_id in c.included_log_ids}

    def watermark(self) -> int:
        """Effective watermark: stored value or the newest recorded cutoff."""
        stored = self._state.load().last_checkpoint
        return max([stored, *(c.cutoff for c in self.all())])

    def reconcile(self) -> bool:
        """Repair the cached watermark and counters from the records.

        Returns ``True`` if the state file had to be rewritten.
        """
        checkpoints = self.all()
        state = self._state.load()
        watermark = max([state.last_checkpoint, *(c.cutoff for c in checkpoints)])
        total_checkpoints = max(state.stats.total_checkpoints, len(checkpoints))
        if watermark == state.last_checkpoint and total_checkpoints == state.stats.total_checkpoints:
            return False

        logger.warning(
            "State out of step with checkpoint records: watermark %d -> %d, "
            "checkpoints %d -> %d",
            state.last_checkpoint,
            watermark,
            state.stats.total_checkpoints,
            total_checkpoints,
        )
        if total_checkpoints == state.stats.total_checkpoints:
            gas = int(state.stats.total_gas_spent or 0)
        else:
            gas = sum(_gas_of(c) for c in checkpoints)
        stats = state.stats.model_copy(
            update={"total_checkpoints": total_checkpoints, "total_gas_spent": str(gas)}
        )
        self._state.save(
            state.model_copy(update={"last_checkpoint": watermark, "stats": stats})
        )
        return True

    @staticmethod
    def _load(path: Path) -> Checkpoint:
        try:
            return Checkpoint.model_validate(read_json(path))
        except ValidationError as exc:
            raise StoreReadError(f"Malformed checkpoint {path}: {exc}") from exc
