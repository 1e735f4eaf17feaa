"""Overlay command implementation.

Runs the overlay pipeline on its own, without the reaper, and shows the
decision made for every workspace mount.
"""

from typing import Annotated

import typer
from rich.table import Table

from bindfix.cli.types import WorkspaceOption, get_config
from bindfix.mounts.models import OverlayResult
from bindfix.mounts.pipeline import run_overlay_pipeline
from bindfix.utils.formatting import (
    console,
    create_plan_table,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Apply permission overlays to workspace mounts.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def overlay(
    workspace: WorkspaceOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Decide and show the plan without mounting anything.",
        ),
    ] = False,
) -> None:
    """Classify workspace mounts and apply overlays where needed."""
    config = get_config(workspace)
    report = run_overlay_pipeline(config, dry_run=dry_run)

    for warning in report.warnings:
        print_warning(warning)

    if not report.plans:
        print_info(f"No mounts found under {config.workspace_root}")
        return

    title = "Overlay Plan (dry-run)" if dry_run else "Overlay Plan"
    console.print(create_plan_table(report.plans, title=title))

    if report.results:
        _print_results(report.results)
    else:
        print_success("No bind mounts needed permission fixes")

    if report.failed:
        raise typer.Exit(code=1)


def _print_results(results: list[OverlayResult]) -> None:
    """Display overlay mount results."""
    table = Table(title="Overlay Results", show_lines=False)
    table.add_column("Mount", style="bold")
    table.add_column("Status", width=10)
    table.add_column("Details", style="dim")

    for r in results:
        if r.dry_run:
            status = "[info]dry-run[/]"
            detail = "Would mount overlay"
        elif r.success:
            status = "[success]applied[/]"
            detail = f"uid={r.applied.uid} gid={r.applied.gid}" if r.applied else ""
        else:
            status = "[error]failed[/]"
            detail = r.error or "Unknown error"
        table.add_row(r.path, status, detail)

    console.print(table)
