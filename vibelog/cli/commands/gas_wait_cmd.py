"""``vibe gas-wait`` — block until the network fee drops, with a timeout."""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.bridge.fees import classify_fee, wait_for_lower_fee
from vibelog.bridge.ledger_gateway import FeeSource, LedgerError
from vibelog.cli.context import console, open_service
from vibelog.config import settings


def gas_wait_cmd(
    max_gwei: float = typer.Option(5.0, "--max-gwei", help="Target fee in gwei."),
    timeout: float = typer.Option(
        None, "--timeout", help="Seconds to wait before giving up."
    ),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Wait for a cheaper submission window."""
    with open_service(data_dir) as (_, service):
        gateway = service.gateway
        if not isinstance(gateway, FeeSource):
            console.print("[bold red]This ledger backend does not report fees.[/bold red]")
            raise typer.Exit(code=1)

        try:
            fee = gateway.current_fee_gwei()
            console.print(f"Current fee: {fee:.2f} gwei ({classify_fee(fee).value})")
        except LedgerError as exc:
            console.print(f"[yellow]Fee lookup failed:[/yellow] {exc}")

        timeout_seconds = timeout if timeout is not None else settings.fee_wait_timeout_seconds
        console.print(f"[dim]Waiting up to {timeout_seconds:.0f}s for <= {max_gwei} gwei...[/dim]")
        ok = wait_for_lower_fee(
            gateway,
            max_gwei,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=settings.fee_poll_interval_seconds,
        )
        if ok:
            console.print("[green]Fee is at or below target. Good time to checkpoint.[/green]")
            return
        console.print("[yellow]Timed out waiting for a lower fee.[/yellow]")
        raise typer.Exit(code=1)
