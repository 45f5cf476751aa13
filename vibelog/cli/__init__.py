"""VibeLog CLI — Typer-based command-line interface.

Provides the ``vibe`` command with subcommands for logging work,
creating and syncing checkpoints, and verifying them against the ledger.

All output uses Rich for formatted terminal display.
"""
