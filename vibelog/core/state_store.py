"""Project state persistence (``.vibelog/config.json``)."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from vibelog.core.storage import atomic_write_text, read_json
from vibelog.errors import NotInitializedError, StoreReadError
from vibelog.models.state import ProjectState

logger = logging.getLogger(__name__)


class StateStore:
    """Loads and atomically saves the ``ProjectState`` document."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> ProjectState:
        if not self._path.exists():
            raise NotInitializedError(self._path.parent)
        try:
            return ProjectState.model_validate(read_json(self._path))
        except ValidationError as exc:
            raise StoreReadError(f"Malformed state file {self._path}: {exc}") from exc

    def save(self, state: ProjectState) -> ProjectState:
        atomic_write_text(self._path, state.to_json() + "\n")
        return state

    def increment_logs(self, n: int = 1) -> ProjectState:
        state = self.load()
        stats = state.stats.model_copy(update={"total_logs": state.stats.total_logs + n})
        return self.save(state.model_copy(update={"stats": stats}))
