"""``vibe checkpoint SUMMARY`` — anchor the pending logs on the ledger.

Prepares the batch, shows what will be anchored, asks for confirmation
(unless ``--yes``) and submits.  With ``--offline`` (the default) a
retryable ledger failure queues the batch for ``vibe sync``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from vibelog.bridge.fees import classify_fee
from vibelog.bridge.ledger_gateway import FeeSource, LedgerError
from vibelog.cli.context import console, open_service
from vibelog.core.hasher import hash_prefix
from vibelog.display.renderer import ReportRenderer
from vibelog.errors import NoPendingLogsError, RateLimitExceededError, SubmissionFailure


def checkpoint_cmd(
    summary: str = typer.Argument(..., help="Public summary stored on the ledger."),
    offline: bool = typer.Option(
        True,
        "--offline/--no-offline",
        help="Queue the batch for later sync if submission fails.",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Create a checkpoint from every log since the last one."""
    with open_service(data_dir) as (workspace, service):
        try:
            draft = service.prepare(summary)
        except NoPendingLogsError:
            console.print("[yellow]No new logs since the last checkpoint.[/yellow]")
            raise typer.Exit(code=0)
        except ValueError as exc:
            console.print(f"[bold red]Invalid summary:[/bold red] {exc}")
            raise typer.Exit(code=1)

        if draft.had_sensitive_data:
            console.print("[yellow]Sensitive data was redacted from the summary.[/yellow]")
        if draft.truncated:
            console.print("[yellow]Summary was truncated to fit the ledger limit.[/yellow]")

        lines = [
            f"[bold]Summary:[/bold] {draft.summary}",
            f"[bold]Logs:[/bold] {len(draft.entries)}",
            f"[bold]Hash:[/bold] {hash_prefix(draft.content_hash)}",
            f"[bold]Estimated gas:[/bold] {draft.estimated_gas:,}",
        ]
        gateway = service.gateway
        if isinstance(gateway, FeeSource):
            try:
                fee = gateway.current_fee_gwei()
                lines.append(f"[bold]Fee:[/bold] {fee:.2f} gwei ({classify_fee(fee).value})")
            except LedgerError as exc:
                lines.append(f"[bold]Fee:[/bold] [dim]unavailable ({exc})[/dim]")
        console.print(Panel("\n".join(lines), title="[bold]Checkpoint preview[/bold]"))

        if not yes and not typer.confirm("Submit this checkpoint?", default=True):
            console.print("[dim]Cancelled.[/dim]")
            raise typer.Exit(code=0)

        try:
            outcome = service.submit(draft, queue_on_failure=offline)
        except RateLimitExceededError as exc:
            console.print(f"[bold red]Rate limited:[/bold red] {exc}")
            raise typer.Exit(code=1)
        except SubmissionFailure as exc:
            console.print(f"[bold red]Checkpoint failed:[/bold red] {exc}")
            if not exc.retryable:
                console.print(
                    "[dim]The ledger rejected this payload; retrying will not help.[/dim]"
                )
            raise typer.Exit(code=1)

        if outcome.queued:
            console.print(
                f"[yellow]Submission failed ({outcome.error}).[/yellow] "
                f"Queued as [cyan]{outcome.queued_id}[/cyan]; run [cyan]vibe sync[/cyan] later."
            )
            return

        assert outcome.checkpoint is not None
        state = workspace.state.load()
        renderer = ReportRenderer(console=console)
        console.print(
            renderer.render_checkpoint(
                outcome.checkpoint, explorer_url=state.network.explorer_url
            )
        )
