"""Ledger Gateway contract — the narrow boundary to the anchoring ledger.

Bridge boundary
---------------
The core never talks to a chain SDK directly.  It depends on the
``LedgerGateway`` Protocol below; concrete backends live beside it:

1. **Web3LedgerGateway** (``vibelog.bridge.chain``): the VibeProof
   contract through web3.py.  Requires the ``chain`` extra.
2. **LocalLedger** (``vibelog.bridge.local_ledger``): SQLite-backed,
   append-only, enforces the same contract rules.  Offline use and tests.

Every backend raises ``LedgerError`` subclasses only.  SDK exceptions are
classified at this boundary into *retryable* (network, timeouts, funds)
and *permanent* (the contract rejected the payload) so the offline queue
never retries a payload that can never succeed.

``submit`` is NOT idempotent: calling it twice anchors two entries.  The
core only ever re-submits through the offline queue's explicit retry path,
and never re-submits a batch whose transaction was already sent
(``LedgerUnconfirmedError``).  Backends that implement ``ReceiptSource``
let the queue confirm such a batch later.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vibelog.core.hasher import hash_to_bytes32, is_zero_hash
from vibelog.core.sanitize import MAX_SUMMARY_LENGTH
from vibelog.models.checkpoint import LedgerReceipt
from vibelog.models.verification import OnchainCheckpoint

DEFAULT_GAS_ESTIMATE = 100_000


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LedgerError(RuntimeError):
    """Base class for ledger failures.  ``retryable`` drives queue policy."""

    retryable: bool = True


class LedgerNetworkError(LedgerError):
    """Transport failure, timeout or transient node error.  Retryable."""

    retryable = True


class LedgerRejectedError(LedgerError):
    """The ledger refused the payload.  Retrying cannot succeed."""

    retryable = False


class LedgerUnavailableError(LedgerError):
    """The backend is not installed or not configured."""

    retryable = True


class LedgerUnconfirmedError(LedgerNetworkError):
    """The transaction was sent but its receipt never arrived.

    It may still be mined.  Resubmitting blindly could anchor the batch
    twice, so the sent ``tx_id`` travels with the error and the queue item
    is confirmed by receipt instead of resubmitted.
    """

    def __init__(self, message: str, *, tx_id: str) -> None:
        super().__init__(message)
        self.tx_id = tx_id


# Substrings of SDK error messages that mean the payload itself is bad.
_PERMANENT_MARKERS: tuple[str, ...] = (
    "execution reverted",
    "summary too long",
    "empty summary",
    "invalid hash",
    "zero hash",
    "invalid argument",
    "could not identify the intended function",
)


def classify_error(exc: BaseException) -> LedgerError:
    """Map an arbitrary backend exception onto the ``LedgerError`` hierarchy."""
    if isinstance(exc, LedgerError):
        return exc
    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()
    if any(marker in lowered for marker in _PERMANENT_MARKERS):
        return LedgerRejectedError(message)
    if isinstance(exc, (ValueError, TypeError)):
        return LedgerRejectedError(message)
    return LedgerNetworkError(message)


def preflight(summary: str, content_hash: str, *, max_length: int = MAX_SUMMARY_LENGTH) -> bytes:
    """Client-side copy of the contract's input rules.

    Saves a wasted round trip; the ledger remains the authority.  Returns
    the 32 raw hash bytes on success.
    """
    if not summary:
        raise LedgerRejectedError("empty summary")
    if len(summary) > max_length:
        raise LedgerRejectedError(
            f"summary too long ({len(summary)} > {max_length} characters)"
        )
    try:
        raw = hash_to_bytes32(content_hash)
    except ValueError as exc:
        raise LedgerRejectedError(f"invalid hash: {exc}") from exc
    if is_zero_hash(content_hash):
        raise LedgerRejectedError("zero hash")
    return raw


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class LedgerGateway(Protocol):
    """What the checkpoint core needs from a ledger."""

    def estimate_cost(self, summary: str, content_hash: str) -> int:
        """Best-effort gas estimate.  Falls back to ``DEFAULT_GAS_ESTIMATE``."""
        ...

    def submit(self, summary: str, content_hash: str) -> LedgerReceipt:
        """Anchor ``(summary, content_hash)``.  Not idempotent."""
        ...

    def count(self, subject_key: str) -> int:
        """Number of checkpoints anchored for *subject_key*."""
        ...

    def lookup(self, subject_key: str, index: int) -> OnchainCheckpoint:
        """The checkpoint at 0-based *index* for *subject_key*."""
        ...


@runtime_checkable
class ReceiptSource(Protocol):
    """Backends that can look up an already sent transaction."""

    def receipt(self, tx_id: str) -> LedgerReceipt | None:
        """The receipt of *tx_id*, or ``None`` while it is not mined.

        Raises ``LedgerRejectedError`` if the transaction reverted.
        """
        ...


@runtime_checkable
class FeeSource(Protocol):
    """Anything that can report the current network fee."""

    def current_fee_gwei(self) -> float:
        ...
