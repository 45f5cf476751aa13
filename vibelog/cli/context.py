"""Shared wiring for CLI commands: workspace, ledger gateway, service."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console

from vibelog.bridge.chain import Web3LedgerGateway
from vibelog.bridge.ledger_gateway import LedgerError, LedgerGateway
from vibelog.bridge.local_ledger import LocalLedger
from vibelog.config import VibelogSettings, settings
from vibelog.core.checkpointer import CheckpointService
from vibelog.core.rate_limit import RateLimiter
from vibelog.core.workspace import Workspace
from vibelog.models.state import ProjectState

console = Console()

LOCAL_SUBJECT_KEY = "local"


def open_workspace(data_dir: Path | None) -> Workspace:
    """Open an initialized workspace or exit with a hint to run ``vibe init``."""
    workspace = Workspace(data_dir or settings.data_dir)
    if not workspace.is_initialized:
        console.print(
            f"[bold red]VibeLog not initialized at {workspace.root}.[/bold red] "
            "Run [cyan]vibe init[/cyan] first."
        )
        raise typer.Exit(code=1)
    return workspace


def build_gateway(
    workspace: Workspace,
    state: ProjectState,
    cfg: VibelogSettings | None = None,
) -> LedgerGateway:
    """Construct the configured ledger backend."""
    cfg = cfg or settings
    if cfg.ledger_backend == "web3":
        return Web3LedgerGateway(
            cfg.rpc_url or state.network.rpc_url,
            cfg.contract_address or state.network.contract_address,
            private_key=cfg.private_key_value,
            chain_id=cfg.chain_id or state.network.chain_id,
            receipt_timeout_seconds=cfg.receipt_timeout_seconds,
        )
    return LocalLedger(
        state.builder_address,
        cfg.ledger_path or workspace.ledger_path,
        max_summary_length=cfg.summary_max_length,
    )


@contextmanager
def open_service(data_dir: Path | None) -> Iterator[tuple[Workspace, CheckpointService]]:
    """Workspace plus a ready ``CheckpointService``; exits on backend errors.

    The local ledger connection is closed when the block exits.
    """
    workspace = open_workspace(data_dir)
    state = workspace.state.load()
    try:
        gateway = build_gateway(workspace, state)
    except LedgerError as exc:
        console.print(f"[bold red]Ledger unavailable:[/bold red] {exc}")
        raise typer.Exit(code=1)
    service = CheckpointService(
        workspace,
        gateway,
        rate_limiter=RateLimiter(settings.max_submissions_per_hour),
        max_summary_length=settings.summary_max_length,
    )
    try:
        yield workspace, service
    finally:
        if isinstance(gateway, LocalLedger):
            gateway.close()
