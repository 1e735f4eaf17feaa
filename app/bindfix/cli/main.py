"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from bindfix import __version__
from bindfix.cli.commands import fuseconf, overlay, reap, schedule, startup, status
from bindfix.core.logs import configure_logging

# Create main Typer app
app = typer.Typer(
    name="bindfix",
    help="Bind-mount permission fixes and FUSE cleanup for dev containers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"bindfix version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """bindfix - permission overlays for host bind mounts.

    Fixes ownership and permission bits on workspace mounts shared from
    hosts that do not keep them, and cleans up stale .fuse_hidden files.
    Configured through BINDFS_ENABLED, BINDFS_SKIP_PATHS and
    FUSE_CLEANUP_DISABLE.
    """
    configure_logging(verbose=verbose, quiet=quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(startup.app, name="startup")
app.add_typer(overlay.app, name="overlay")
app.add_typer(status.app, name="status")
app.add_typer(reap.app, name="reap")
app.add_typer(schedule.app, name="schedule")
app.add_typer(fuseconf.app, name="fuse-conf")


if __name__ == "__main__":
    app()
