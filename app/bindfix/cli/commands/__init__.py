"""CLI commands for bindfix.

This package contains all subcommand implementations.
"""

from bindfix.cli.commands import fuseconf, overlay, reap, schedule, startup, status

__all__ = ["fuseconf", "overlay", "reap", "schedule", "startup", "status"]
