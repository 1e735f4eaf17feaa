"""Container startup step.

Runs the overlay pipeline, clears artifacts left by the previous container
lifetime, and registers the periodic reaper. Called once by the container
startup sequence after cache directories are set up and before long-running
services start.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from bindfix.core.config import BindfixConfig
from bindfix.mounts.pipeline import OverlayReport, run_overlay_pipeline
from bindfix.reaper.models import ReapReport
from bindfix.reaper.reaper import FuseReaper
from bindfix.reaper.scheduler import CronScheduler, SchedulerError, register_reaper

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StartupReport:
    """Outcome of the startup step.

    Attributes:
        overlay: Result of the overlay pipeline.
        reap: Result of the boot-time reaper pass.
        schedule_entry: Cron entry registered for the reaper, if any.
        warnings: Problems that degraded the step without aborting it.
    """

    overlay: OverlayReport
    reap: ReapReport
    schedule_entry: Path | None = None
    warnings: list[str] = field(default_factory=list)


def run_startup(
    config: BindfixConfig,
    *,
    reaper: FuseReaper | None = None,
    scheduler: CronScheduler | None = None,
) -> StartupReport:
    """Run the startup step once.

    Args:
        config: Process configuration.
        reaper: Reaper for the boot-time pass. Defaults to a FuseReaper.
        scheduler: Scheduler to register the periodic pass with.

    Returns:
        StartupReport; no component failure is raised.
    """
    overlay = run_overlay_pipeline(config)
    reap = (reaper or FuseReaper(config)).run()
    report = StartupReport(overlay=overlay, reap=reap, warnings=list(overlay.warnings))

    try:
        report.schedule_entry = register_reaper(config, scheduler)
    except SchedulerError as e:
        logger.warning("Could not register periodic reaper: %s", e)
        report.warnings.append(str(e))

    return report
