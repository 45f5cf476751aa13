"""Tests for ledger error classification, pre-flight checks and the web3 bridge."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vibelog.bridge import chain
from vibelog.bridge.chain import VIBEPROOF_ABI, Web3LedgerGateway
from vibelog.bridge.ledger_gateway import (
    LedgerError,
    LedgerNetworkError,
    LedgerRejectedError,
    LedgerUnavailableError,
    LedgerUnconfirmedError,
    classify_error,
    preflight,
)


class TestClassifyError:
    def test_ledger_errors_pass_through(self):
        err = LedgerRejectedError("nope")
        assert classify_error(err) is err

    def test_revert_is_permanent(self):
        result = classify_error(RuntimeError("execution reverted: Summary too long"))
        assert isinstance(result, LedgerRejectedError)
        assert result.retryable is False

    def test_value_error_is_permanent(self):
        assert isinstance(classify_error(ValueError("bad")), LedgerRejectedError)

    def test_connection_error_is_retryable(self):
        result = classify_error(ConnectionError("connection refused"))
        assert isinstance(result, LedgerNetworkError)
        assert result.retryable is True

    def test_timeout_is_retryable(self):
        assert classify_error(TimeoutError()).retryable is True

    def test_all_are_ledger_errors(self):
        for exc in (OSError("x"), KeyError("y"), ValueError("z")):
            assert isinstance(classify_error(exc), LedgerError)


class TestPreflight:
    def test_returns_raw_bytes(self):
        assert preflight("ok", "0x" + "01" * 32) == b"\x01" * 32

    def test_custom_max_length(self):
        with pytest.raises(LedgerRejectedError):
            preflight("abcd", "0x" + "01" * 32, max_length=3)

    def test_unavailable_is_retryable(self):
        assert LedgerUnavailableError("x").retryable is True


class TestWeb3Gateway:
    def test_fails_closed_without_web3(self, monkeypatch):
        monkeypatch.setattr(chain, "_WEB3_AVAILABLE", False)
        with pytest.raises(LedgerUnavailableError, match="web3 is not installed"):
            Web3LedgerGateway("http://localhost:8545", "0x" + "12" * 20)

    def test_requires_contract_address(self, monkeypatch):
        monkeypatch.setattr(chain, "_WEB3_AVAILABLE", True)
        with pytest.raises(LedgerUnavailableError, match="contract address"):
            Web3LedgerGateway("http://localhost:8545", "")

    def test_abi_exposes_contract_surface(self):
        names = {item["name"] for item in VIBEPROOF_ABI}
        assert names == {"attestVibe", "getCheckpointCount", "getCheckpoint"}


class TestWeb3Submit:
    """Submission flow against a mocked web3 client."""

    TX_BYTES = bytes.fromhex("cd" * 32)
    CONTENT_HASH = "0x" + "12" * 32

    @pytest.fixture
    def gateway(self) -> Web3LedgerGateway:
        gw = Web3LedgerGateway.__new__(Web3LedgerGateway)
        gw._w3 = MagicMock()
        gw._contract = MagicMock()
        gw._account = MagicMock(address="0x" + "11" * 20)
        gw._chain_id = 97
        gw._receipt_timeout = 1.0
        gw._w3.eth.send_raw_transaction.return_value = self.TX_BYTES
        return gw

    def test_receipt_timeout_after_send_is_unconfirmed(self, gateway: Web3LedgerGateway):
        gateway._w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("120s elapsed")

        with pytest.raises(LedgerUnconfirmedError) as exc_info:
            gateway.submit("shipped", self.CONTENT_HASH)

        assert exc_info.value.tx_id == "0x" + "cd" * 32
        assert exc_info.value.retryable is True
        assert gateway._w3.eth.send_raw_transaction.call_count == 1

    def test_failure_before_send_is_plain_network_error(self, gateway: Web3LedgerGateway):
        gateway._w3.eth.get_transaction_count.side_effect = ConnectionError("node down")

        with pytest.raises(LedgerNetworkError) as exc_info:
            gateway.submit("shipped", self.CONTENT_HASH)

        assert not isinstance(exc_info.value, LedgerUnconfirmedError)
        gateway._w3.eth.send_raw_transaction.assert_not_called()

    def test_reverted_receipt_is_rejected(self, gateway: Web3LedgerGateway):
        gateway._w3.eth.get_transaction_receipt.return_value = {
            "transactionHash": self.TX_BYTES,
            "status": 0,
        }
        with pytest.raises(LedgerRejectedError, match="execution reverted"):
            gateway.receipt("0x" + "cd" * 32)
