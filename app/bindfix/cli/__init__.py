"""CLI package for bindfix.

This package contains the Typer application and all subcommands.
"""

from bindfix.cli.main import app

__all__ = ["app"]
