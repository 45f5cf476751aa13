"""Web3 ledger gateway — the VibeProof contract through web3.py.

Bridge boundary
---------------
web3.py is an optional dependency (``pip install vibelog[chain]``).  When it
is missing, constructing ``Web3LedgerGateway`` fails closed with
``LedgerUnavailableError``; there is no fallback that pretends to anchor.

Contract surface used::

    attestVibe(string summary, bytes32 logHash)
    getCheckpointCount(address builder) -> uint256
    getCheckpoint(address builder, uint256 index)
        -> (bytes32 logHash, string summary, uint256 timestamp, uint256 sessionCount)

Every SDK exception leaving this module is passed through
``classify_error`` so callers only ever see ``LedgerError`` subclasses.
"""

from __future__ import annotations

import logging
from typing import Any

from vibelog.bridge.ledger_gateway import (
    DEFAULT_GAS_ESTIMATE,
    LedgerRejectedError,
    LedgerUnavailableError,
    LedgerUnconfirmedError,
    classify_error,
    preflight,
)
from vibelog.core.hasher import HASH_PREFIX
from vibelog.models.checkpoint import LedgerReceipt
from vibelog.models.verification import OnchainCheckpoint

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Try-import web3
# ---------------------------------------------------------------------------

_WEB3_AVAILABLE: bool = False
_Web3: Any = None
_TransactionNotFound: Any = None

try:
    from web3 import Web3 as _Web3  # type: ignore[import-untyped]
    from web3.exceptions import TransactionNotFound as _TransactionNotFound

    _WEB3_AVAILABLE = True
except ImportError:
    logger.debug("web3 not installed — Web3LedgerGateway unavailable.")


def is_web3_available() -> bool:
    """Return ``True`` if web3.py is importable."""
    return _WEB3_AVAILABLE


def _hex(value: Any) -> str:
    """``0x``-prefixed hex of a tx hash (bytes, HexBytes or str)."""
    text = value if isinstance(value, str) else bytes(value).hex()
    return text if text.startswith(HASH_PREFIX) else HASH_PREFIX + text


VIBEPROOF_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "attestVibe",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "summary", "type": "string"},
            {"name": "logHash", "type": "bytes32"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "getCheckpointCount",
        "stateMutability": "view",
        "inputs": [{"name": "builder", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getCheckpoint",
        "stateMutability": "view",
        "inputs": [
            {"name": "builder", "type": "address"},
            {"name": "index", "type": "uint256"},
        ],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "logHash", "type": "bytes32"},
                    {"name": "summary", "type": "string"},
                    {"name": "timestamp", "type": "uint256"},
                    {"name": "sessionCount", "type": "uint256"},
                ],
            }
        ],
    },
]

_ZERO_ADDRESS = "0x" + "0" * 40


class Web3LedgerGateway:
    """``LedgerGateway`` backed by an EVM JSON-RPC node.

    Parameters
    ----------
    rpc_url:
        JSON-RPC endpoint.
    contract_address:
        Deployed VibeProof contract.
    private_key:
        Signing key for ``submit``.  Read-only use (count/lookup) works
        without one.
    chain_id:
        EIP-155 chain id used when signing.
    receipt_timeout_seconds:
        Upper bound on waiting for a transaction receipt.
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        *,
        private_key: str | None = None,
        chain_id: int | None = None,
        receipt_timeout_seconds: float = 120.0,
    ) -> None:
        if not _WEB3_AVAILABLE:
            raise LedgerUnavailableError(
                "web3 is not installed. Install the chain extra: pip install 'vibelog[chain]'"
            )
        if not contract_address or contract_address.lower() == _ZERO_ADDRESS:
            raise LedgerUnavailableError(
                "No contract address configured. Set VIBELOG_CONTRACT_ADDRESS."
            )

        self._w3 = _Web3(_Web3.HTTPProvider(rpc_url))
        self._contract = self._w3.eth.contract(
            address=_Web3.to_checksum_address(contract_address),
            abi=VIBEPROOF_ABI,
        )
        self._account = (
            self._w3.eth.account.from_key(private_key) if private_key else None
        )
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout_seconds
        logger.info(
            "Web3LedgerGateway: rpc=%s contract=%s signer=%s",
            rpc_url,
            contract_address,
            self._account.address if self._account else "<read-only>",
        )

    @property
    def address(self) -> str | None:
        """Signer address, which is also the subject key for queries."""
        return self._account.address if self._account else None

    # ------------------------------------------------------------------
    # LedgerGateway
    # ------------------------------------------------------------------

    def estimate_cost(self, summary: str, content_hash: str) -> int:
        try:
            raw_hash = preflight(summary, content_hash)
            call = self._contract.functions.attestVibe(summary, raw_hash)
            params = {"from": self._account.address} if self._account else {}
            return int(call.estimate_gas(params))
        except Exception as exc:
            logger.warning(
                "Gas estimation failed (%s); using default %d", exc, DEFAULT_GAS_ESTIMATE
            )
            return DEFAULT_GAS_ESTIMATE

    def submit(self, summary: str, content_hash: str) -> LedgerReceipt:
        if self._account is None:
            raise LedgerUnavailableError(
                "No signing key configured. Set VIBELOG_PRIVATE_KEY or PRIVATE_KEY."
            )
        raw_hash = preflight(summary, content_hash)
        try:
            tx_params: dict[str, Any] = {
                "from": self._account.address,
                "nonce": self._w3.eth.get_transaction_count(self._account.address),
            }
            if self._chain_id is not None:
                tx_params["chainId"] = self._chain_id
            tx = self._contract.functions.attestVibe(summary, raw_hash).build_transaction(
                tx_params
            )
            signed = self._account.sign_transaction(tx)
            tx_id = _hex(self._w3.eth.send_raw_transaction(signed.raw_transaction))
        except Exception as exc:
            raise classify_error(exc) from exc

        logger.debug("Web3LedgerGateway: sent %s", tx_id)
        # From here on the transaction exists; a failure must not lead to a resend.
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_id, timeout=self._receipt_timeout
            )
        except Exception as exc:
            raise LedgerUnconfirmedError(
                f"transaction {tx_id} sent but not confirmed: {exc}", tx_id=tx_id
            ) from exc
        return self._to_receipt(receipt)

    def receipt(self, tx_id: str) -> LedgerReceipt | None:
        try:
            raw = self._w3.eth.get_transaction_receipt(tx_id)
        except _TransactionNotFound:
            return None
        except Exception as exc:
            raise classify_error(exc) from exc
        return self._to_receipt(raw)

    @staticmethod
    def _to_receipt(receipt: Any) -> LedgerReceipt:
        tx_id = _hex(receipt["transactionHash"])
        if receipt.get("status") == 0:
            raise LedgerRejectedError(f"execution reverted in tx {tx_id}")

        gas_used = int(receipt["gasUsed"])
        gas_price = int(receipt.get("effectiveGasPrice") or 0)
        return LedgerReceipt(
            tx_id=tx_id,
            block_ref=int(receipt["blockNumber"]),
            gas_used=str(gas_used),
            cost=str(_Web3.from_wei(gas_used * gas_price, "ether")),
        )

    def count(self, subject_key: str) -> int:
        try:
            address = _Web3.to_checksum_address(subject_key)
            return int(self._contract.functions.getCheckpointCount(address).call())
        except Exception as exc:
            raise classify_error(exc) from exc

    def lookup(self, subject_key: str, index: int) -> OnchainCheckpoint:
        try:
            address = _Web3.to_checksum_address(subject_key)
            log_hash, summary, timestamp, session_count = (
                self._contract.functions.getCheckpoint(address, index).call()
            )
        except Exception as exc:
            raise classify_error(exc) from exc
        return OnchainCheckpoint(
            hash=HASH_PREFIX + bytes(log_hash).hex(),
            summary=summary,
            timestamp=int(timestamp),
            batch_size=int(session_count),
        )

    # ------------------------------------------------------------------
    # FeeSource
    # ------------------------------------------------------------------

    def current_fee_gwei(self) -> float:
        try:
            return float(self._w3.eth.gas_price) / 1e9
        except Exception as exc:
            raise classify_error(exc) from exc
