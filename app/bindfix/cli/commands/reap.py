"""Reap command implementation.

Runs one reaper pass. This is the command the periodic scheduler invokes.
"""

import typer

from bindfix.cli.types import WorkspaceOption, get_config
from bindfix.reaper.reaper import FuseReaper
from bindfix.utils.formatting import console, create_reap_table, print_info, print_success

app = typer.Typer(
    help="Remove stale .fuse_hidden files no process holds open.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def reap(
    ctx: typer.Context,
    workspace: WorkspaceOption = None,
) -> None:
    """Run one FUSE artifact cleanup pass."""
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = get_config(workspace)

    report = FuseReaper(config).run()

    if not quiet:
        if report.skipped:
            print_info("FUSE cleanup disabled (FUSE_CLEANUP_DISABLE=true)")
        elif not report.records:
            print_success("No stale FUSE artifacts found")
        else:
            console.print(create_reap_table(report))

    if report.failed:
        raise typer.Exit(code=1)
