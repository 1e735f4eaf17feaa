"""FUSE configuration command implementation.

Enables user_allow_other so overlays mounted by a non-root user can use
allow_other.
"""

from pathlib import Path
from typing import Annotated

import typer

from bindfix.mounts.fuseconf import FuseConfError, ensure_user_allow_other
from bindfix.utils.formatting import print_error, print_info, print_success

app = typer.Typer(
    help="Enable user_allow_other in /etc/fuse.conf.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def fuse_conf(
    path: Annotated[
        Path | None,
        typer.Option("--path", help="FUSE config file (default: /etc/fuse.conf)."),
    ] = None,
) -> None:
    """Make sure the FUSE config allows allow_other for non-root users."""
    try:
        changed = ensure_user_allow_other(path)
    except FuseConfError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if changed:
        print_success("user_allow_other enabled")
    else:
        print_info("user_allow_other already enabled")
