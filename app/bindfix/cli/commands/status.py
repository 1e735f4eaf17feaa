"""Status command implementation.

Shows workspace mounts with their classification and the decision the
overlay stage would make, without writing probe files unless asked to.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from bindfix.cli.types import WorkspaceOption, get_config
from bindfix.mounts.models import MountPlan, MountPoint, ProbeOutcome
from bindfix.mounts.pipeline import plan_overlays
from bindfix.utils.formatting import console, create_plan_table, print_info, print_warning

app = typer.Typer(
    help="Show workspace mounts and overlay decisions.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _no_probe(mount: MountPoint) -> ProbeOutcome | None:
    """Stand-in probe that leaves unknown filesystems unprobed."""
    return None


@app.callback(invoke_without_command=True)
def status(
    workspace: WorkspaceOption = None,
    probe: Annotated[
        bool,
        typer.Option(
            "--probe",
            help="Write a probe file into unknown filesystems to test them.",
        ),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Show workspace mounts, their filesystem verdict and overlay decision.

    Without --probe, mounts of unknown filesystem types are shown as
    needing an overlay, which is what an inconclusive probe would decide.
    """
    config = get_config(workspace)
    plans, warnings = plan_overlays(config, probe=None if probe else _no_probe)

    for warning in warnings:
        print_warning(warning)

    if output_format == OutputFormat.JSON:
        _print_json(plans)
        return

    if not plans:
        print_info(f"No mounts found under {config.workspace_root}")
        return

    console.print(create_plan_table(plans))
    console.print(
        f"\n[dim]mode={config.mode.value} "
        f"skip={','.join(config.skip_paths) or '-'} "
        f"reaper={'disabled' if config.reaper_disabled else 'enabled'}[/dim]"
    )


def _print_json(plans: list[MountPlan]) -> None:
    """Display plans as JSON."""
    data = [
        {
            "path": p.mount.path,
            "fstype": p.mount.fstype,
            "already_fuse": p.mount.already_fuse,
            "verdict": p.classification.verdict.value if p.classification else None,
            "probe_outcome": (
                p.classification.probe_outcome.value
                if p.classification and p.classification.probe_outcome
                else None
            ),
            "decision": p.decision.value,
        }
        for p in plans
    ]
    console.print_json(json.dumps(data))
