"""Schedule command implementation.

Registers or removes the periodic reaper job.
"""

from typing import Annotated

import typer

from bindfix.cli.types import WorkspaceOption, get_config
from bindfix.reaper.scheduler import (
    REAPER_JOB_NAME,
    CronScheduler,
    SchedulerError,
    register_reaper,
)
from bindfix.utils.formatting import print_error, print_info, print_success

app = typer.Typer(
    help="Register the periodic FUSE cleanup job.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def schedule(
    workspace: WorkspaceOption = None,
    remove: Annotated[
        bool,
        typer.Option("--remove", help="Remove the job instead of registering it."),
    ] = False,
) -> None:
    """Register (or remove) the cron job that runs `bindfix reap`."""
    config = get_config(workspace)
    scheduler = CronScheduler()

    try:
        if remove:
            if scheduler.unregister(REAPER_JOB_NAME):
                print_success(f"Removed {scheduler.entry_path(REAPER_JOB_NAME)}")
            else:
                print_info("No FUSE cleanup job registered")
            return

        entry = register_reaper(config, scheduler)
    except SchedulerError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if entry is None:
        print_info("FUSE cleanup disabled; job removed")
    else:
        print_success(f"Registered {entry}")
