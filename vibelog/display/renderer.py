"""Rich terminal renderer for checkpoints, the offline queue and
verification reports.

Color scheme
------------
- green     : VERIFIED / CONFIRMED
- bold red  : HASH_MISMATCH / CONTENT_MISMATCH / rejected
- yellow    : NOT_FOUND / failed / INCOMPLETE
- magenta   : VERIFICATION_ERROR
- cyan      : pending / syncing
"""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vibelog.core.hasher import hash_prefix
from vibelog.models.checkpoint import Checkpoint
from vibelog.models.queue import QueuedCheckpoint, QueueStatus
from vibelog.models.state import ProjectState
from vibelog.models.verification import (
    AggregateVerdict,
    CheckpointVerdict,
    VerificationReport,
)

# ---------------------------------------------------------------------------
# Verdict / status -> Rich markup
# ---------------------------------------------------------------------------

_VERDICT_ICONS: dict[CheckpointVerdict, str] = {
    CheckpointVerdict.VERIFIED: "[green]VERIFIED[/green]",
    CheckpointVerdict.HASH_MISMATCH: "[bold red]HASH MISMATCH[/bold red]",
    CheckpointVerdict.CONTENT_MISMATCH: "[bold red]CONTENT MISMATCH[/bold red]",
    CheckpointVerdict.NOT_FOUND: "[yellow]NOT FOUND[/yellow]",
    CheckpointVerdict.VERIFICATION_ERROR: "[magenta]ERROR[/magenta]",
}

_QUEUE_ICONS: dict[QueueStatus, str] = {
    QueueStatus.PENDING: "[cyan]pending[/cyan]",
    QueueStatus.SYNCING: "[cyan]syncing[/cyan]",
    QueueStatus.FAILED: "[yellow]failed[/yellow]",
    QueueStatus.REJECTED: "[bold red]rejected[/bold red]",
}


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class ReportRenderer:
    """Turns VibeLog results into Rich renderables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def render_verification(self, report: VerificationReport) -> Panel:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Checkpoint", min_width=16)
        table.add_column("Summary", min_width=20)
        table.add_column("Local hash")
        table.add_column("Ledger hash")
        table.add_column("Verdict", justify="center")
        table.add_column("Details")

        for r in report.results:
            table.add_row(
                str(r.index),
                r.checkpoint_id,
                r.summary,
                r.local_hash_prefix or "[dim]-[/dim]",
                r.onchain_hash_prefix or "[dim]-[/dim]",
                _VERDICT_ICONS.get(r.verdict, r.verdict.value),
                f"[dim]{r.error}[/dim]" if r.error else "",
            )

        if report.verdict == AggregateVerdict.CONFIRMED:
            verdict = "[bold green]CONFIRMED[/bold green]"
            border = "green"
        else:
            verdict = "[bold yellow]INCOMPLETE[/bold yellow]"
            border = "red" if self._has_mismatch(report) else "yellow"

        summary_parts = [
            f"[bold]Verdict:[/bold] {verdict}",
            f"[bold]Local:[/bold] {report.local_count}",
            f"[bold]Ledger:[/bold] {report.onchain_count}",
            f"[bold]Verified:[/bold] {report.count(CheckpointVerdict.VERIFIED)}",
        ]
        if report.extra_onchain:
            summary_parts.append(
                f"[yellow][bold]Unknown on ledger:[/bold] {report.extra_onchain}[/yellow]"
            )

        return Panel(
            Group(table, Text(""), Text.from_markup("  |  ".join(summary_parts))),
            title="[bold]VibeLog Verification[/bold]",
            subtitle=f"{report.subject_key or 'local'} @ "
            f"{report.checked_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style=border,
            padding=(1, 2),
        )

    @staticmethod
    def _has_mismatch(report: VerificationReport) -> bool:
        return any(
            r.verdict in (CheckpointVerdict.HASH_MISMATCH, CheckpointVerdict.CONTENT_MISMATCH)
            for r in report.results
        )

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def render_queue(self, items: list[QueuedCheckpoint]) -> Table:
        table = Table(title="Offline Queue", header_style="bold cyan", expand=True)
        table.add_column("Id", style="dim")
        table.add_column("Queued at")
        table.add_column("Summary", min_width=20)
        table.add_column("Logs", justify="right")
        table.add_column("Status", justify="center")
        table.add_column("Retries", justify="right")
        table.add_column("Last error")

        for item in items:
            table.add_row(
                item.id,
                _fmt_ts(item.created_at),
                item.summary,
                str(len(item.included_logs)),
                _QUEUE_ICONS.get(item.status, item.status.value),
                str(item.retry_count),
                f"[red]{item.last_error}[/red]" if item.last_error else "[dim]-[/dim]",
            )
        return table

    # ------------------------------------------------------------------
    # Checkpoint / status
    # ------------------------------------------------------------------

    def render_checkpoint(self, checkpoint: Checkpoint, explorer_url: str = "") -> Panel:
        receipt = checkpoint.ledger_receipt
        lines = [
            f"[bold]Id:[/bold] {checkpoint.id}",
            f"[bold]Summary:[/bold] {checkpoint.summary}",
            f"[bold]Logs:[/bold] {len(checkpoint.included_log_ids)}",
            f"[bold]Hash:[/bold] {checkpoint.content_hash}",
            f"[bold]Tx:[/bold] {receipt.tx_id}",
            f"[bold]Block:[/bold] {receipt.block_ref}",
            f"[bold]Gas:[/bold] {receipt.gas_used}",
        ]
        if receipt.cost:
            lines.append(f"[bold]Cost:[/bold] {receipt.cost}")
        if explorer_url:
            lines.append(f"[bold]Explorer:[/bold] {explorer_url.rstrip('/')}/tx/{receipt.tx_id}")
        return Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold green]Checkpoint recorded[/bold green]",
            border_style="green",
        )

    def render_status(
        self,
        state: ProjectState,
        *,
        total_logs: int,
        pending_logs: int,
        queued: int,
        last_checkpoint: Checkpoint | None = None,
    ) -> Panel:
        lines = [
            f"[bold]Builder:[/bold] {state.builder_address or '[dim]local[/dim]'}",
            f"[bold]Network:[/bold] {state.network.name} (chain {state.network.chain_id})",
            f"[bold]Logs:[/bold] {total_logs}  ([cyan]{pending_logs} pending[/cyan])",
            f"[bold]Checkpoints:[/bold] {state.stats.total_checkpoints}",
            f"[bold]Gas spent:[/bold] {state.stats.total_gas_spent}",
            f"[bold]Queued:[/bold] {queued}",
        ]
        if state.last_checkpoint:
            lines.append(f"[bold]Watermark:[/bold] {_fmt_ts(state.last_checkpoint)}")
        if last_checkpoint is not None:
            lines.append(
                f"[bold]Last checkpoint:[/bold] {last_checkpoint.id} "
                f"[dim]{hash_prefix(last_checkpoint.content_hash)}[/dim]"
            )
        return Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold]VibeLog Status[/bold]",
            border_style="blue",
            padding=(1, 2),
        )
