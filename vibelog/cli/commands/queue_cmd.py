"""``vibe queue`` — show the offline queue."""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.cli.context import console, open_workspace
from vibelog.display.renderer import ReportRenderer


def queue_cmd(
    clear: bool = typer.Option(False, "--clear", help="Drop every queued item."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """List queued checkpoints and their retry state."""
    workspace = open_workspace(data_dir)
    items = workspace.queue.all()

    if clear:
        if not items:
            console.print("[dim]Offline queue is empty.[/dim]")
            return
        if not yes and not typer.confirm(
            f"Drop {len(items)} queued checkpoint(s)? Their logs become pending again.",
            default=False,
        ):
            console.print("[dim]Cancelled.[/dim]")
            raise typer.Exit(code=0)
        removed = workspace.queue.clear()
        console.print(f"[yellow]Cleared {removed} queued checkpoint(s).[/yellow]")
        return

    if not items:
        console.print("[dim]Offline queue is empty.[/dim]")
        return
    console.print(ReportRenderer(console=console).render_queue(items))
