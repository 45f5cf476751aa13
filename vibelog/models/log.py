"""Build log entry model.

A LogEntry is immutable once created.  On disk it is a camelCase JSON
document under ``.vibelog/logs/{id}.json`` so a user can ``cat`` it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ChangeStats(BaseModel):
    """Diff statistics attached to a log entry."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    files_changed: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    files: list[str] = []


class CommitRef(BaseModel):
    """External VCS commit reference.  Informational only."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    hash: str
    message: str = ""
    author: str = ""
    date: str = ""


class AIContext(BaseModel):
    """Which assistant tool was involved, if any.  Never hashed."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    tool: str | None = None
    prompt: str | None = None


class LogEntry(BaseModel):
    """A single entry in the append-only build log.

    Only ``id``, ``timestamp``, ``message``, the commit hash and the change
    stats contribute to the content fingerprint.  AI commentary is stored
    alongside but excluded from content identity.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    timestamp: int  # seconds since epoch
    message: str
    commit_ref: CommitRef | None = Field(default=None, alias="commit")
    change_stats: ChangeStats | None = Field(default=None, alias="diff")
    ai_context: AIContext | None = None
    ai_summary: str | None = None

    def to_json(self) -> str:
        """Serialize to the on-disk representation."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
