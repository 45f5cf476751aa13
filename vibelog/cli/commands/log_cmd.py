"""``vibe log MESSAGE`` — append a build log entry."""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.cli.context import console, open_workspace
from vibelog.models.log import AIContext, ChangeStats, CommitRef


def log_cmd(
    message: str = typer.Argument(..., help="What you built or changed."),
    commit: str = typer.Option(None, "--commit", help="Commit hash to reference."),
    files_changed: int = typer.Option(
        None, "--files-changed", help="Number of files changed."
    ),
    lines_added: int = typer.Option(0, "--lines-added", help="Lines added."),
    lines_deleted: int = typer.Option(0, "--lines-deleted", help="Lines deleted."),
    ai_tool: str = typer.Option(None, "--ai-tool", help="Assistant tool involved, if any."),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Record a build log entry."""
    if not message.strip():
        console.print("[bold red]Log message must not be empty.[/bold red]")
        raise typer.Exit(code=1)

    workspace = open_workspace(data_dir)
    change_stats = None
    if files_changed is not None:
        change_stats = ChangeStats(
            files_changed=files_changed,
            lines_added=lines_added,
            lines_deleted=lines_deleted,
        )
    entry = workspace.record_log(
        message.strip(),
        commit_ref=CommitRef(hash=commit) if commit else None,
        change_stats=change_stats,
        ai_context=AIContext(tool=ai_tool) if ai_tool else None,
    )
    state = workspace.state.increment_logs()

    console.print(f"[green]Logged[/green] {entry.id}: {entry.message}")
    console.print(f"[dim]{state.stats.total_logs} log(s) total[/dim]")
