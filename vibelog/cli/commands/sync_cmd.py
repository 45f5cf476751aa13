"""``vibe sync`` — replay the offline queue against the ledger."""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.cli.context import console, open_service
from vibelog.models.queue import QueueStatus


def sync_cmd(
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Submit queued checkpoints, oldest first."""
    with open_service(data_dir) as (workspace, service):
        if not any(item.status != QueueStatus.REJECTED for item in workspace.queue.all()):
            console.print("[dim]Nothing to sync.[/dim]")
            return

        report = service.sync_queue()

        for item_id in report.recovered:
            console.print(f"[yellow]Recovered interrupted submission[/yellow] {item_id}")
        for item_id in report.already_recorded:
            console.print(f"[dim]{item_id} was already recorded; removed from queue[/dim]")
        for checkpoint in report.synced:
            console.print(
                f"[green]Synced[/green] {checkpoint.id} "
                f"({len(checkpoint.included_log_ids)} logs, "
                f"tx {checkpoint.ledger_receipt.tx_id[:18]})"
            )
        for item_id, error in report.failed.items():
            console.print(f"[yellow]Failed[/yellow] {item_id}: {error}")
        for item_id, error in report.rejected.items():
            console.print(f"[bold red]Rejected[/bold red] {item_id}: {error}")
        if report.rate_limited:
            console.print("[yellow]Rate limit reached; remaining items left queued.[/yellow]")

        console.print(
            f"\n[bold]Synced:[/bold] {len(report.synced)}  "
            f"[bold]Failed:[/bold] {len(report.failed)}  "
            f"[bold]Rejected:[/bold] {len(report.rejected)}"
        )
        if report.failed or report.rejected:
            raise typer.Exit(code=1)
