"""Checkpoint and ledger receipt models.

A Checkpoint binds a content hash and a public summary to an ordered batch
of log ids.  It is immutable once recorded.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LedgerReceipt(BaseModel):
    """Opaque confirmation data returned by the Ledger Gateway."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    tx_id: str = Field(alias="txHash")
    block_ref: int = Field(default=0, alias="blockNumber")
    gas_used: str = "0"  # integer as string, never float
    cost: str = ""  # native-currency amount, display only


class Checkpoint(BaseModel):
    """A recorded, ledger-anchored batch attestation."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str  # checkpoint_001, checkpoint_002, ...
    created_at: int = Field(alias="timestamp")
    summary: str
    content_hash: str = Field(alias="logHash")
    included_log_ids: list[str] = Field(default_factory=list, alias="logs")
    # None on records written before the cutoff was tracked explicitly
    batch_cutoff: int | None = None
    ledger_receipt: LedgerReceipt = Field(alias="blockchain")

    @property
    def cutoff(self) -> int:
        """Timestamp of the last included log (legacy: creation time)."""
        return self.batch_cutoff if self.batch_cutoff is not None else self.created_at

    def to_json(self) -> str:
        """Serialize to the on-disk representation."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
