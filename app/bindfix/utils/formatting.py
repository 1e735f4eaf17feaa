"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from bindfix.mounts.models import MountPlan
    from bindfix.reaper.models import ReapReport

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "header": "#69B9A1",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "bold #f53263",
        "info": "#0ec1c8",
        "dim": "#b2bec3",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())

# Decision value -> style used in the plan table
_DECISION_STYLES: dict[str, str] = {
    "apply": "warning",
    "skip-already-correct": "success",
    "skip-already-fuse": "success",
    "skip-by-list": "muted",
    "skip-by-configuration": "muted",
}


def create_plan_table(plans: list[MountPlan], title: str = "Workspace Mounts") -> Table:
    """Create a table describing per-mount overlay decisions.

    Args:
        plans: Mount plans in enumeration order.
        title: Table title.

    Returns:
        Rich Table with one row per mount.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Mount", style="bold", no_wrap=True)
    table.add_column("Type", style="muted")
    table.add_column("Verdict", style="info")
    table.add_column("Probe", style="muted")
    table.add_column("Decision")

    for plan in plans:
        classification = plan.classification
        verdict = classification.verdict.value if classification else "-"
        probe = (
            classification.probe_outcome.value
            if classification and classification.probe_outcome
            else "-"
        )
        style = _DECISION_STYLES.get(plan.decision.value, "text")
        table.add_row(
            plan.mount.path,
            plan.mount.fstype or "-",
            verdict,
            probe,
            f"[{style}]{plan.decision.value}[/]",
        )
    return table


def create_reap_table(report: ReapReport, title: str = "FUSE Artifacts") -> Table:
    """Create a table describing the outcome of a reaper pass.

    Args:
        report: Report of a single reaper pass.
        title: Table title.

    Returns:
        Rich Table with one row per artifact.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Artifact", style="bold")
    table.add_column("Action", width=10)
    table.add_column("Details", style="dim")

    styles = {"deleted": "success", "retained": "info", "failed": "error"}
    for record in report.records:
        action = record.action.value
        if record.error:
            detail = record.error
        elif record.artifact.holder_pids:
            detail = "held by " + ", ".join(str(p) for p in sorted(record.artifact.holder_pids))
        else:
            detail = ""
        table.add_row(record.artifact.path, f"[{styles[action]}]{action}[/]", detail)
    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
