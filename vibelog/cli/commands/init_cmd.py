"""``vibe init`` — create the ``.vibelog`` workspace."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from vibelog.bridge.ledger_gateway import LedgerError
from vibelog.cli.context import LOCAL_SUBJECT_KEY, build_gateway, console
from vibelog.config import settings
from vibelog.core.workspace import Workspace
from vibelog.models.state import NETWORKS, ProjectState


def init_cmd(
    address: str = typer.Option(
        None,
        "--address",
        help="Builder address checkpoints are attributed to. "
        "Derived from the signing key on the web3 backend.",
    ),
    network: str = typer.Option(
        "bsc-testnet",
        "--network",
        "-n",
        help=f"Network preset ({', '.join(sorted(NETWORKS))}).",
    ),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Initialize VibeLog in the current project."""
    if network not in NETWORKS:
        console.print(
            f"[bold red]Unknown network:[/bold red] {network}. "
            f"Choose one of: {', '.join(sorted(NETWORKS))}"
        )
        raise typer.Exit(code=1)

    workspace = Workspace(data_dir or settings.data_dir)
    if workspace.is_initialized:
        console.print(f"[yellow]VibeLog already initialized at {workspace.root}.[/yellow]")
        raise typer.Exit(code=0)

    if not address:
        address = LOCAL_SUBJECT_KEY
        if settings.ledger_backend == "web3":
            try:
                gateway = build_gateway(workspace, ProjectState(network=NETWORKS[network]))
            except LedgerError as exc:
                console.print(f"[bold red]Ledger unavailable:[/bold red] {exc}")
                raise typer.Exit(code=1)
            address = getattr(gateway, "address", None) or LOCAL_SUBJECT_KEY

    state = workspace.initialize(builder_address=address, network=network)
    console.print(
        Panel(
            "\n".join(
                [
                    f"[bold]Data dir:[/bold] {workspace.root}",
                    f"[bold]Builder:[/bold] {state.builder_address}",
                    f"[bold]Network:[/bold] {state.network.name} (chain {state.network.chain_id})",
                    f"[bold]Backend:[/bold] {settings.ledger_backend}",
                ]
            ),
            title="[bold green]VibeLog initialized[/bold green]",
            border_style="green",
        )
    )
    console.print("[dim]Next: vibe log \"what you just built\"[/dim]")
