"""Tests for the Checkpoint Store — immutable records and the watermark."""

from __future__ import annotations

import json

import pytest

from vibelog.core.workspace import Workspace
from vibelog.errors import CheckpointExistsError
from vibelog.models.checkpoint import Checkpoint, LedgerReceipt


def _checkpoint(cp_id: str, cutoff: int, gas: str = "21000") -> Checkpoint:
    return Checkpoint(
        id=cp_id,
        created_at=cutoff + 5,
        summary=f"batch up to {cutoff}",
        content_hash="0x" + f"{cutoff:064x}",
        included_log_ids=[f"log_{cutoff}"],
        batch_cutoff=cutoff,
        ledger_receipt=LedgerReceipt(tx_id="0xabc", block_ref=1, gas_used=gas),
    )


class TestCheckpointStore:
    def test_next_id_zero_padded(self, workspace: Workspace):
        store = workspace.checkpoints
        assert store.next_id() == "checkpoint_001"
        store.record(_checkpoint("checkpoint_001", 100))
        assert store.next_id() == "checkpoint_002"

    def test_record_advances_watermark_and_stats(self, workspace: Workspace):
        workspace.checkpoints.record(_checkpoint("checkpoint_001", 200, gas="50000"))
        state = workspace.state.load()
        assert state.last_checkpoint == 200
        assert state.stats.total_checkpoints == 1
        assert state.stats.total_gas_spent == "50000"

    def test_gas_accumulates(self, workspace: Workspace):
        workspace.checkpoints.record(_checkpoint("checkpoint_001", 100, gas="100"))
        workspace.checkpoints.record(_checkpoint("checkpoint_002", 200, gas="250"))
        assert workspace.state.load().stats.total_gas_spent == "350"

    def test_watermark_never_decreases(self, workspace: Workspace):
        store = workspace.checkpoints
        store.record(_checkpoint("checkpoint_001", 300))
        store.record(_checkpoint("checkpoint_002", 150))  # late-synced older batch
        assert workspace.state.load().last_checkpoint == 300
        assert store.watermark() == 300

    def test_record_never_overwrites(self, workspace: Workspace):
        store = workspace.checkpoints
        store.record(_checkpoint("checkpoint_001", 100))
        with pytest.raises(CheckpointExistsError):
            store.record(_checkpoint("checkpoint_001", 999))
        assert store.get("checkpoint_001").batch_cutoff == 100
        assert workspace.state.load().stats.total_checkpoints == 1

    def test_on_disk_keys(self, workspace: Workspace):
        workspace.checkpoints.record(_checkpoint("checkpoint_001", 100))
        raw = json.loads((workspace.root / "checkpoints" / "checkpoint_001.json").read_text())
        assert raw["logHash"].startswith("0x")
        assert raw["logs"] == ["log_100"]
        assert raw["blockchain"]["txHash"] == "0xabc"
        assert raw["blockchain"]["blockNumber"] == 1

    def test_all_sorted_numerically(self, workspace: Workspace):
        store = workspace.checkpoints
        for n in (2, 10, 1):
            store.record(_checkpoint(f"checkpoint_{n:03d}", n * 10))
        store.record(_checkpoint("checkpoint_1000", 5000))
        assert [c.id for c in store.all()] == [
            "checkpoint_001",
            "checkpoint_002",
            "checkpoint_010",
            "checkpoint_1000",
        ]

    def test_legacy_record_without_cutoff_uses_timestamp(self, workspace: Workspace):
        legacy = {
            "id": "checkpoint_001",
            "timestamp": 777,
            "summary": "old",
            "logHash": "0x" + "11" * 32,
            "logs": [],
            "blockchain": {"txHash": "0x1", "blockNumber": 1, "gasUsed": "0"},
        }
        (workspace.root / "checkpoints" / "checkpoint_001.json").write_text(json.dumps(legacy))
        assert workspace.checkpoints.get("checkpoint_001").cutoff == 777
        assert workspace.checkpoints.watermark() == 777

    def test_reconcile_noop_when_consistent(self, workspace: Workspace):
        workspace.checkpoints.record(_checkpoint("checkpoint_001", 100))
        assert workspace.checkpoints.reconcile() is False
