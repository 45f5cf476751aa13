"""Bridge layer — the boundary between the checkpoint core and the ledger.

Modules
-------
ledger_gateway
    ``LedgerGateway`` Protocol, ``LedgerError`` hierarchy, error
    classification and client-side pre-flight checks.
local_ledger
    ``LocalLedger`` — SQLite-backed append-only ledger.
chain
    ``Web3LedgerGateway`` — the VibeProof contract via web3.py (optional).
fees
    Fee bands and the bounded ``wait_for_lower_fee`` poll.
"""
