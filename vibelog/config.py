"""Runtime configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
VIBELOG_* environment variables.  The chain settings also accept the bare
names earlier VibeLog releases documented (BSC_RPC_URL, CONTRACT_ADDRESS,
PRIVATE_KEY) so existing .env files keep working.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class VibelogSettings(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export VIBELOG_LOG_LEVEL=DEBUG
        export VIBELOG_LEDGER_BACKEND=web3
        export BSC_RPC_URL=https://bsc-dataseed.binance.org

    Or via .env file::

        VIBELOG_DATA_DIR=.vibelog
        CONTRACT_ADDRESS=0x...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VIBELOG_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Storage
    data_dir: Path = Path(".vibelog")
    log_level: str = "INFO"

    # Ledger backend
    ledger_backend: Literal["local", "web3"] = "local"
    ledger_path: Path | None = None  # defaults to {data_dir}/ledger.db

    # Chain (web3 backend only)
    rpc_url: str = Field(
        default="",
        validation_alias=AliasChoices("VIBELOG_RPC_URL", "BSC_RPC_URL"),
    )
    contract_address: str = Field(
        default="",
        validation_alias=AliasChoices("VIBELOG_CONTRACT_ADDRESS", "CONTRACT_ADDRESS"),
    )
    chain_id: int | None = None
    private_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("VIBELOG_PRIVATE_KEY", "PRIVATE_KEY"),
    )
    receipt_timeout_seconds: float = 120.0

    # Checkpoint policy
    summary_max_length: int = 200
    max_submissions_per_hour: int = 30

    # Fee waiting
    fee_poll_interval_seconds: float = 5.0
    fee_wait_timeout_seconds: float = 300.0

    @property
    def private_key_value(self) -> str | None:
        return self.private_key.get_secret_value() if self.private_key else None


# Module-level singleton: import as `from vibelog.config import settings`
settings = VibelogSettings()
