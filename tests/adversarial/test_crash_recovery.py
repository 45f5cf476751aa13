"""Adversarial tests — crashes between writes and corrupt durable state.

Simulates:
1. A crash after the checkpoint record but before the state update
2. A crash while a queue item was mid-submission
3. A crash after a queued batch was anchored and recorded but before dequeue
4. A corrupted queue file
"""

from __future__ import annotations

import json

from vibelog.bridge.ledger_gateway import LedgerNetworkError
from vibelog.core.checkpointer import CheckpointService
from vibelog.core.offline_queue import INTERRUPTED_ERROR
from vibelog.core.workspace import Workspace
from vibelog.models.queue import QueueStatus
from vibelog.models.verification import AggregateVerdict


class TestStateCrash:
    def test_stale_watermark_repaired(self, workspace: Workspace, service: CheckpointService, flaky_ledger, clock):
        workspace.logs.create("a", timestamp=100)
        workspace.logs.create("b", timestamp=200)
        before = workspace.state.path.read_text()
        service.create_checkpoint("batch")

        # Roll the state file back: the checkpoint record survived, the state write did not.
        workspace.state.path.write_text(before)
        assert workspace.state.load().last_checkpoint == 0

        # Effective watermark still follows the record.
        assert workspace.checkpoints.watermark() == 200
        assert workspace.pending_logs() == []

        assert workspace.checkpoints.reconcile() is True
        state = workspace.state.load()
        assert state.last_checkpoint == 200
        assert state.stats.total_checkpoints == 1
        assert state.stats.total_gas_spent == str(flaky_ledger.inner.estimate_cost("", ""))

    def test_service_startup_reconciles(self, workspace: Workspace, service: CheckpointService, flaky_ledger, clock):
        workspace.logs.create("a", timestamp=100)
        before = workspace.state.path.read_text()
        service.create_checkpoint("batch")
        workspace.state.path.write_text(before)

        CheckpointService(workspace, flaky_ledger, clock=clock)

        assert workspace.state.load().last_checkpoint == 100


class TestQueueCrash:
    def test_interrupted_submission_recovered_on_sync(self, workspace: Workspace, service: CheckpointService, flaky_ledger):
        workspace.logs.create("a", timestamp=100)
        flaky_ledger.fail_with = LedgerNetworkError("down")
        item_id = service.create_checkpoint("batch", queue_on_failure=True).queued_id
        workspace.queue.mark_syncing(item_id)  # process died here

        report = service.sync_queue()

        assert report.recovered == [item_id]
        item = workspace.queue.get(item_id)
        assert item.status == QueueStatus.FAILED
        assert item.retry_count == 2
        assert item.last_error == "down"

    def test_interrupted_then_successful_sync(self, workspace: Workspace, service: CheckpointService, flaky_ledger):
        workspace.logs.create("a", timestamp=100)
        flaky_ledger.fail_with = LedgerNetworkError("down")
        item_id = service.create_checkpoint("batch", queue_on_failure=True).queued_id
        workspace.queue.mark_syncing(item_id)
        flaky_ledger.fail_with = None

        report = service.sync_queue()

        assert report.recovered == [item_id]
        assert len(report.synced) == 1
        assert workspace.queue.all() == []

    def test_lost_dequeue_does_not_double_anchor(self, workspace: Workspace, service: CheckpointService, flaky_ledger, builder):
        workspace.logs.create("a", timestamp=100)
        flaky_ledger.fail_with = LedgerNetworkError("down")
        service.create_checkpoint("batch", queue_on_failure=True)
        flaky_ledger.fail_with = None
        service.sync_queue()
        assert flaky_ledger.submit_calls == 2

        # Put the item back as if the dequeue write had been lost.
        assert workspace.queue.all() == []
        raw_path = workspace.queue.path
        workspace.queue.enqueue("batch", [workspace.logs.get("log_100")])

        report = service.sync_queue()

        assert len(report.already_recorded) == 1
        assert report.synced == []
        assert flaky_ledger.submit_calls == 2
        assert flaky_ledger.count(builder) == 1
        assert json.loads(raw_path.read_text()) == []
        assert service.verify().verdict == AggregateVerdict.CONFIRMED


class TestQueueCorruption:
    def test_corrupt_queue_moved_aside(self, workspace: Workspace, clock):
        workspace.queue.path.write_text("{{{ definitely not json")

        assert workspace.queue.all() == []
        assert not workspace.queue.path.exists()
        aside = workspace.root / f"offline-queue.json.corrupt-{int(clock())}"
        assert aside.read_text() == "{{{ definitely not json"

    def test_schema_violation_moved_aside(self, workspace: Workspace):
        workspace.queue.path.write_text(json.dumps([{"id": "offline-1-x"}]))
        assert workspace.queue.list_pending() == []
        assert list(workspace.root.glob("offline-queue.json.corrupt-*"))

    def test_queue_usable_after_corruption(self, workspace: Workspace, make_entry):
        workspace.queue.path.write_text("garbage")
        item_id = workspace.queue.enqueue("fresh", [make_entry(1)])
        assert [i.id for i in workspace.queue.all()] == [item_id]

    def test_corrupt_queue_logs_warning(self, workspace: Workspace, caplog):
        workspace.queue.path.write_text("garbage")
        with caplog.at_level("WARNING", logger="vibelog.core.offline_queue"):
            workspace.queue.all()
        assert "unreadable" in caplog.text

    def test_interrupted_constant(self):
        assert INTERRUPTED_ERROR == "interrupted during submission"
