"""Startup command implementation.

Entry point for the container startup sequence: applies overlays, runs
the boot-time reaper pass and registers the periodic reaper. Always exits
with status 0 so the container keeps starting.
"""

import logging

import typer

from bindfix.cli.types import WorkspaceOption, get_config
from bindfix.core.startup import run_startup
from bindfix.utils.formatting import print_info, print_success, print_warning

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Run the container startup step.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def startup(
    ctx: typer.Context,
    workspace: WorkspaceOption = None,
) -> None:
    """Apply overlays, clean stale FUSE files and schedule the reaper."""
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))

    try:
        config = get_config(workspace)
        report = run_startup(config)
    except Exception:
        # Never fail the container start
        logger.exception("bindfix startup step failed")
        return

    if quiet:
        return

    overlay = report.overlay
    if overlay.applied:
        print_success(f"Overlays applied ({len(overlay.applied)} mount(s))")
        for result in overlay.applied:
            print_info(f"  {result.path}")
    elif overlay.plans:
        print_info("No bind mounts needed permission fixes")

    for result in overlay.failed:
        print_warning(f"Overlay not applied on {result.path}: {result.error}")

    if report.reap.deleted:
        print_info(f"Cleaned up {len(report.reap.deleted)} stale .fuse_hidden file(s)")

    for warning in report.warnings:
        if not any(warning == r.error for r in overlay.failed):
            print_warning(warning)
