"""VibeLog: tamper-evident build logs with ledger-anchored checkpoints.

  - Append-only build log, one immutable JSON file per entry
  - Deterministic content fingerprints over ordered log batches
  - Checkpoints anchored through a narrow ledger gateway
    (SQLite local ledger, or the VibeProof contract via web3.py)
  - Durable offline queue with retry/reject state machine
  - Verification of local history against the ledger, with content audit
"""

__version__ = "1.0.0"
__description__ = "Tamper-evident build logs with ledger-anchored checkpoints"

from vibelog.core.checkpointer import CheckpointService
from vibelog.core.verifier import VerificationEngine
from vibelog.core.workspace import Workspace

__all__ = ["CheckpointService", "VerificationEngine", "Workspace", "__version__"]
