"""Tests for the SQLite-backed local ledger."""

from __future__ import annotations

from pathlib import Path

import pytest

from vibelog.bridge.ledger_gateway import (
    DEFAULT_GAS_ESTIMATE,
    FeeSource,
    LedgerGateway,
    LedgerNetworkError,
    LedgerRejectedError,
)
from vibelog.bridge.local_ledger import LocalLedger

HASH_A = "0x" + "aa" * 32
HASH_B = "0x" + "bb" * 32


class TestLocalLedger:
    def test_satisfies_protocols(self, local_ledger: LocalLedger):
        assert isinstance(local_ledger, LedgerGateway)
        assert isinstance(local_ledger, FeeSource)

    def test_submit_then_lookup(self, local_ledger: LocalLedger, builder: str, clock):
        receipt = local_ledger.submit("first", HASH_A)
        assert receipt.tx_id.startswith("0x")
        assert len(receipt.tx_id) == 66
        assert receipt.gas_used == str(DEFAULT_GAS_ESTIMATE)

        assert local_ledger.count(builder) == 1
        record = local_ledger.lookup(builder, 0)
        assert record.hash == HASH_A
        assert record.summary == "first"
        assert record.timestamp == int(clock())

    def test_order_preserved(self, local_ledger: LocalLedger, builder: str):
        local_ledger.submit("one", HASH_A)
        local_ledger.submit("two", HASH_B)
        assert local_ledger.lookup(builder, 0).hash == HASH_A
        assert local_ledger.lookup(builder, 1).hash == HASH_B

    def test_count_per_subject(self, local_ledger: LocalLedger):
        local_ledger.submit("one", HASH_A)
        assert local_ledger.count("0xsomeone-else") == 0

    def test_lookup_out_of_range(self, local_ledger: LocalLedger, builder: str):
        with pytest.raises(LedgerNetworkError):
            local_ledger.lookup(builder, 0)
        with pytest.raises(LedgerNetworkError):
            local_ledger.lookup(builder, -1)

    def test_rejects_empty_summary(self, local_ledger: LocalLedger, builder: str):
        with pytest.raises(LedgerRejectedError, match="empty"):
            local_ledger.submit("", HASH_A)
        assert local_ledger.count(builder) == 0

    def test_rejects_long_summary(self, local_ledger: LocalLedger):
        with pytest.raises(LedgerRejectedError, match="too long"):
            local_ledger.submit("x" * 201, HASH_A)

    def test_rejects_zero_hash(self, local_ledger: LocalLedger):
        with pytest.raises(LedgerRejectedError, match="zero"):
            local_ledger.submit("s", "0x" + "0" * 64)

    def test_rejects_malformed_hash(self, local_ledger: LocalLedger):
        with pytest.raises(LedgerRejectedError, match="invalid hash"):
            local_ledger.submit("s", "0x1234")

    def test_persistent_file(self, tmp_path: Path, builder: str):
        db = tmp_path / "ledger.db"
        with LocalLedger(builder, db) as ledger:
            ledger.submit("persisted", HASH_A)
        with LocalLedger(builder, db) as reopened:
            assert reopened.count(builder) == 1
            assert reopened.lookup(builder, 0).summary == "persisted"

    def test_fee(self, builder: str):
        assert LocalLedger(builder, fee_gwei=7.5).current_fee_gwei() == 7.5
