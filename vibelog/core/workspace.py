"""Workspace — the ``.vibelog`` directory and the stores that live in it.

Layout::

    .vibelog/
        config.json           project state and watermark
        logs/<id>.json        one file per log entry
        checkpoints/<id>.json one file per recorded checkpoint
        offline-queue.json    failed submissions awaiting retry
        ledger.db             local ledger (local backend only)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from vibelog.core.checkpoint_store import CheckpointStore
from vibelog.core.log_store import LogStore
from vibelog.core.offline_queue import OfflineQueue
from vibelog.core.state_store import StateStore
from vibelog.models.log import LogEntry
from vibelog.models.state import NETWORKS, NetworkConfig, ProjectState, WalletInfo

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
LOGS_DIR = "logs"
CHECKPOINTS_DIR = "checkpoints"
QUEUE_FILE = "offline-queue.json"
LEDGER_FILE = "ledger.db"


class Workspace:
    """Bundle of the stores rooted at one data directory.

    Parameters
    ----------
    root:
        The data directory (usually ``.vibelog`` in the project root).
    clock:
        Returns the current time in seconds.  Shared by every store.
    """

    def __init__(self, root: Path, *, clock: Callable[[], float] = time.time) -> None:
        self.root = Path(root)
        self._clock = clock
        self.state = StateStore(self.root / CONFIG_FILE)
        self.logs = LogStore(self.root / LOGS_DIR, clock=clock)
        self.checkpoints = CheckpointStore(self.root / CHECKPOINTS_DIR, self.state)
        self.queue = OfflineQueue(self.root / QUEUE_FILE, clock=clock)

    @property
    def ledger_path(self) -> Path:
        return self.root / LEDGER_FILE

    @property
    def is_initialized(self) -> bool:
        return self.state.exists()

    def initialize(
        self,
        *,
        builder_address: str = "",
        network: str | NetworkConfig = "bsc-testnet",
    ) -> ProjectState:
        """Create the directory layout and a fresh state file.

        Idempotent on the directories; an existing ``config.json`` is left
        untouched and returned as-is.
        """
        (self.root / LOGS_DIR).mkdir(parents=True, exist_ok=True)
        (self.root / CHECKPOINTS_DIR).mkdir(parents=True, exist_ok=True)
        if self.state.exists():
            logger.info("Workspace already initialized at %s", self.root)
            return self.state.load()

        if isinstance(network, str):
            if network not in NETWORKS:
                raise ValueError(
                    f"Unknown network {network!r}. Known: {sorted(NETWORKS)}"
                )
            network = NETWORKS[network]
        state = ProjectState(wallet=WalletInfo(address=builder_address), network=network)
        self.state.save(state)
        logger.info("Initialized workspace at %s (network=%s)", self.root, network.name)
        return state

    def record_log(self, message: str, **fields: Any) -> LogEntry:
        """Append a new log stamped strictly after the watermark.

        A log stamped at the watermark second would never be selected, so a
        log written in the same second as the last checkpointed one moves
        to the next second.  Extra *fields* go to ``LogStore.create``.
        """
        timestamp = max(int(self._clock()), self.checkpoints.watermark() + 1)
        return self.logs.create(message, timestamp=timestamp, **fields)

    def pending_logs(self) -> list[LogEntry]:
        """Logs no checkpoint attests and no live queue item holds.

        Normally that is every log newer than the watermark.  It also
        picks up older logs whose queue item was rejected or cleared after
        a newer checkpoint had moved the watermark past them.  Oldest first.
        """
        watermark = self.checkpoints.watermark()
        queued = self.queue.queued_log_ids()
        attested = self.checkpoints.attested_log_ids()
        return [
            e
            for e in self.logs.all()
            if e.id not in queued and (e.timestamp > watermark or e.id not in attested)
        ]

    def __repr__(self) -> str:
        return f"Workspace(root={str(self.root)!r})"
