"""Project state stored in ``.vibelog/config.json``.

Holds the watermark (``last_checkpoint``) and the aggregate counters.
The watermark is advanced only by a successful checkpoint recording.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NetworkConfig(BaseModel):
    """Ledger network the project anchors to."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str = "bsc-testnet"
    rpc_url: str = ""
    contract_address: str = ""
    chain_id: int = 97
    explorer_url: str = ""


NETWORKS: dict[str, NetworkConfig] = {
    "bsc-mainnet": NetworkConfig(
        name="bsc-mainnet",
        rpc_url="https://bsc-dataseed.binance.org",
        chain_id=56,
        explorer_url="https://bscscan.com",
    ),
    "bsc-testnet": NetworkConfig(
        name="bsc-testnet",
        rpc_url="https://data-seed-prebsc-1-s1.bnbchain.org:8545",
        chain_id=97,
        explorer_url="https://testnet.bscscan.com",
    ),
}


class ProjectStats(BaseModel):
    """Aggregate counters, updated alongside the stores."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_logs: int = 0
    total_checkpoints: int = 0
    total_gas_spent: str = "0"  # integer as string to avoid float drift


class WalletInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""


class ProjectState(BaseModel):
    """Process-wide project state.  Frozen; update via ``model_copy``."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    version: str = "1.0.0"
    wallet: WalletInfo = WalletInfo()
    network: NetworkConfig = NetworkConfig()
    initialized: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    last_checkpoint: int = 0  # the watermark
    stats: ProjectStats = ProjectStats()

    @property
    def builder_address(self) -> str:
        """Subject key used for ledger count/lookup queries."""
        return self.wallet.address

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
