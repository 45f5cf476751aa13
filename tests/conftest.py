"""Shared test fixtures for VibeLog."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from vibelog.bridge.ledger_gateway import LedgerError
from vibelog.bridge.local_ledger import LocalLedger
from vibelog.core.checkpointer import CheckpointService
from vibelog.core.workspace import Workspace
from vibelog.models.checkpoint import LedgerReceipt
from vibelog.models.log import LogEntry
from vibelog.models.verification import OnchainCheckpoint

BUILDER = "0xb0b0000000000000000000000000000000000001"


class FakeClock:
    """Manually advanced clock, usable wherever ``time.time`` is injected."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyLedger:
    """Wraps a LocalLedger and fails ``submit`` while ``fail_with`` is set.

    ``confirmed`` maps sent tx ids to the receipts ``receipt`` reports.
    """

    def __init__(self, inner: LocalLedger) -> None:
        self.inner = inner
        self.fail_with: LedgerError | None = None
        self.submit_calls = 0
        self.confirmed: dict[str, LedgerReceipt] = {}

    def estimate_cost(self, summary: str, content_hash: str) -> int:
        return self.inner.estimate_cost(summary, content_hash)

    def submit(self, summary: str, content_hash: str) -> LedgerReceipt:
        self.submit_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.inner.submit(summary, content_hash)

    def count(self, subject_key: str) -> int:
        return self.inner.count(subject_key)

    def lookup(self, subject_key: str, index: int) -> OnchainCheckpoint:
        return self.inner.lookup(subject_key, index)

    def current_fee_gwei(self) -> float:
        return self.inner.current_fee_gwei()

    def receipt(self, tx_id: str) -> LedgerReceipt | None:
        return self.confirmed.get(tx_id)


@pytest.fixture
def builder() -> str:
    """Subject key every test workspace is initialized with."""
    return BUILDER


@pytest.fixture
def clock() -> FakeClock:
    """Provide a deterministic clock starting at a fixed epoch second."""
    return FakeClock()


@pytest.fixture
def workspace(tmp_path: Path, clock: FakeClock) -> Workspace:
    """Provide an initialized workspace in a temp directory."""
    ws = Workspace(tmp_path / ".vibelog", clock=clock)
    ws.initialize(builder_address=BUILDER)
    return ws


@pytest.fixture
def local_ledger(clock: FakeClock) -> Iterator[LocalLedger]:
    """Provide an in-memory local ledger attributed to BUILDER."""
    ledger = LocalLedger(BUILDER, clock=clock)
    yield ledger
    ledger.close()


@pytest.fixture
def flaky_ledger(local_ledger: LocalLedger) -> FlakyLedger:
    return FlakyLedger(local_ledger)


@pytest.fixture
def service(workspace: Workspace, flaky_ledger: FlakyLedger, clock: FakeClock) -> CheckpointService:
    """Provide a CheckpointService over the workspace and a flaky ledger."""
    return CheckpointService(workspace, flaky_ledger, clock=clock)


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    """Factory fixture: build a LogEntry with sensible defaults."""

    def _factory(timestamp: int = 100, **overrides: Any) -> LogEntry:
        defaults: dict[str, Any] = {
            "id": f"log_{timestamp}",
            "timestamp": timestamp,
            "message": f"work at {timestamp}",
        }
        defaults.update(overrides)
        return LogEntry(**defaults)

    return _factory
