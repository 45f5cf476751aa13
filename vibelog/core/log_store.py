"""Append-only Log Store — one immutable JSON file per entry.

Layout: ``{data_dir}/logs/{log_id}.json``.  No update, no delete: entries
only disappear through a full data wipe or restore, which is outside this
module.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from vibelog.core.storage import read_json, write_new_text
from vibelog.errors import LogEntryExistsError, NotInitializedError, StoreReadError
from vibelog.models.log import AIContext, ChangeStats, CommitRef, LogEntry

logger = logging.getLogger(__name__)


def _sort_key(entry: LogEntry) -> tuple[int, str]:
    return (entry.timestamp, entry.id)


class LogStore:
    """Immutable, timestamp-ordered build log.

    Parameters
    ----------
    logs_dir:
        Directory holding one JSON file per entry.  Must already exist;
        ``Workspace.initialize()`` creates it.
    clock:
        Returns the current time in seconds.  Injected for tests.
    """

    def __init__(self, logs_dir: Path, *, clock: Callable[[], float] = time.time) -> None:
        self._dir = Path(logs_dir)
        self._clock = clock

    def _require_dir(self) -> None:
        if not self._dir.is_dir():
            raise NotInitializedError(self._dir)

    def _path(self, log_id: str) -> Path:
        return self._dir / f"{log_id}.json"

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, entry: LogEntry) -> LogEntry:
        """Persist a new entry.  Existing ids are never overwritten."""
        self._require_dir()
        if not write_new_text(self._path(entry.id), entry.to_json() + "\n"):
            raise LogEntryExistsError(f"Log entry {entry.id} already exists")
        logger.debug("Appended log %s (ts=%d)", entry.id, entry.timestamp)
        return entry

    def create(
        self,
        message: str,
        *,
        commit_ref: CommitRef | None = None,
        change_stats: ChangeStats | None = None,
        ai_context: AIContext | None = None,
        ai_summary: str | None = None,
        timestamp: int | None = None,
    ) -> LogEntry:
        """Build an entry with an assigned id and timestamp, then append it."""
        self._require_dir()
        ts = int(self._clock()) if timestamp is None else timestamp
        entry = LogEntry(
            id=self._allocate_id(ts),
            timestamp=ts,
            message=message,
            commit_ref=commit_ref,
            change_stats=change_stats,
            ai_context=ai_context,
            ai_summary=ai_summary,
        )
        return self.append(entry)

    def _allocate_id(self, timestamp: int) -> str:
        """``log_{ts}``, or ``log_{ts}_NNN`` when that second is taken."""
        base = f"log_{timestamp}"
        if not self._path(base).exists():
            return base
        n = 2
        while self._path(f"{base}_{n:03d}").exists():
            n += 1
        return f"{base}_{n:03d}"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, log_id: str) -> LogEntry | None:
        """Return one entry by id, or ``None`` if it does not exist."""
        self._require_dir()
        path = self._path(log_id)
        if not path.exists():
            return None
        return self._load(path)

    def all(self) -> list[LogEntry]:
        """Every entry, ordered by timestamp then id."""
        self._require_dir()
        entries = [self._load(p) for p in self._dir.glob("*.json")]
        entries.sort(key=_sort_key)
        return entries

    def since(self, watermark: int) -> list[LogEntry]:
        """Entries strictly newer than *watermark*, oldest first."""
        return [e for e in self.all() if e.timestamp > watermark]

    def count(self) -> int:
        self._require_dir()
        return sum(1 for _ in self._dir.glob("*.json"))

    @staticmethod
    def _load(path: Path) -> LogEntry:
        try:
            return LogEntry.model_validate(read_json(path))
        except ValidationError as exc:
            raise StoreReadError(f"Malformed log entry {path}: {exc}") from exc
