"""Main Typer application — imports and registers all CLI commands.

Entry point: ``vibe`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from vibelog.cli.commands.checkpoint_cmd import checkpoint_cmd
from vibelog.cli.commands.gas_wait_cmd import gas_wait_cmd
from vibelog.cli.commands.init_cmd import init_cmd
from vibelog.cli.commands.log_cmd import log_cmd
from vibelog.cli.commands.queue_cmd import queue_cmd
from vibelog.cli.commands.status_cmd import status_cmd
from vibelog.cli.commands.sync_cmd import sync_cmd
from vibelog.cli.commands.verify_cmd import verify_cmd
from vibelog.config import settings

app = typer.Typer(
    name="vibe",
    help="VibeLog: tamper-evident build logs anchored on a ledger.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


# Register subcommands
app.command(name="init", help="Initialize VibeLog in this project.")(init_cmd)
app.command(name="log", help="Record a build log entry.")(log_cmd)
app.command(name="checkpoint", help="Anchor pending logs on the ledger.")(checkpoint_cmd)
app.command(name="sync", help="Submit queued offline checkpoints.")(sync_cmd)
app.command(name="queue", help="Show the offline queue.")(queue_cmd)
app.command(name="status", help="Show project status.")(status_cmd)
app.command(name="verify", help="Verify local checkpoints against the ledger.")(verify_cmd)
app.command(name="gas-wait", help="Wait for a lower network fee.")(gas_wait_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
