"""FUSE deferred-delete artifact cleanup.

This module provides the reaper that removes unheld ``.fuse_hidden*``
files, the holder query it relies on, and registration of its periodic
run with cron.
"""

from bindfix.reaper.holders import HolderQuery
from bindfix.reaper.models import ARTIFACT_PREFIX, FuseArtifact, ReapAction, ReapRecord, ReapReport
from bindfix.reaper.reaper import FuseReaper, find_artifacts
from bindfix.reaper.scheduler import (
    REAPER_INTERVAL_MINUTES,
    REAPER_JOB_NAME,
    CronJob,
    CronScheduler,
    SchedulerError,
    register_reaper,
)

__all__ = [
    "ARTIFACT_PREFIX",
    "REAPER_INTERVAL_MINUTES",
    "REAPER_JOB_NAME",
    "CronJob",
    "CronScheduler",
    "FuseArtifact",
    "FuseReaper",
    "HolderQuery",
    "ReapAction",
    "ReapRecord",
    "ReapReport",
    "SchedulerError",
    "find_artifacts",
    "register_reaper",
]
