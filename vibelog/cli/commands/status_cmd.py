"""``vibe status`` — project overview."""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.cli.context import console, open_workspace
from vibelog.display.renderer import ReportRenderer
from vibelog.models.queue import RETRYABLE_STATUSES


def status_cmd(
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Show logs, checkpoints, the watermark and queued work."""
    workspace = open_workspace(data_dir)
    if workspace.checkpoints.reconcile():
        console.print("[yellow]Repaired state file from checkpoint records.[/yellow]")

    state = workspace.state.load()
    pending = workspace.pending_logs()
    checkpoints = workspace.checkpoints.all()
    queued = sum(1 for item in workspace.queue.all() if item.status in RETRYABLE_STATUSES)

    console.print(
        ReportRenderer(console=console).render_status(
            state,
            total_logs=workspace.logs.count(),
            pending_logs=len(pending),
            queued=queued,
            last_checkpoint=checkpoints[-1] if checkpoints else None,
        )
    )
