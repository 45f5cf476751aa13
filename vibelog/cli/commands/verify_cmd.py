"""``vibe verify`` — compare local checkpoints with the ledger.

Exit code 0 when every checkpoint is VERIFIED, 1 otherwise, so the
command can gate CI.
"""

from __future__ import annotations

from pathlib import Path

import typer

from vibelog.cli.context import console, open_service
from vibelog.display.renderer import ReportRenderer
from vibelog.errors import VerificationAbortedError
from vibelog.models.verification import AggregateVerdict


def verify_cmd(
    audit: bool = typer.Option(
        True,
        "--audit/--no-audit",
        help="Also re-hash the stored log files of every checkpoint.",
    ),
    data_dir: Path = typer.Option(None, "--data-dir", help="VibeLog data directory."),
) -> None:
    """Verify every local checkpoint against the ledger."""
    with open_service(data_dir) as (_, service):
        try:
            report = service.verify(audit_content=audit)
        except VerificationAbortedError as exc:
            console.print(f"[bold red]Verification aborted:[/bold red] {exc}")
            raise typer.Exit(code=1)

        if report.local_count == 0:
            console.print(
                "[yellow]No local checkpoints to verify.[/yellow] "
                f"[dim]({report.onchain_count} on the ledger)[/dim]"
            )
            return

        console.print(ReportRenderer(console=console).render_verification(report))
        if report.verdict != AggregateVerdict.CONFIRMED:
            raise typer.Exit(code=1)
