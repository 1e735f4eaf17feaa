"""Workspace mount inspection and permission overlays.

This module provides mount enumeration, filesystem classification,
permission probing, skip-list filtering and overlay application for
host bind mounts under the workspace root.
"""

from bindfix.mounts.classifier import FILESYSTEM_VERDICTS, FilesystemType, classify
from bindfix.mounts.enumerator import MountEnumerator, MountTableUnavailableError
from bindfix.mounts.models import (
    AppliedOverlay,
    Classification,
    MountPlan,
    MountPoint,
    OverlayDecision,
    OverlayResult,
    ProbeOutcome,
    Verdict,
)
from bindfix.mounts.overlay import OverlayApplier
from bindfix.mounts.pipeline import OverlayReport, decide, plan_overlays, run_overlay_pipeline
from bindfix.mounts.prober import PermissionProber
from bindfix.mounts.skiplist import SkipList

__all__ = [
    "FILESYSTEM_VERDICTS",
    "AppliedOverlay",
    "Classification",
    "FilesystemType",
    "MountEnumerator",
    "MountPlan",
    "MountPoint",
    "MountTableUnavailableError",
    "OverlayApplier",
    "OverlayDecision",
    "OverlayReport",
    "OverlayResult",
    "PermissionProber",
    "ProbeOutcome",
    "SkipList",
    "Verdict",
    "classify",
    "decide",
    "plan_overlays",
    "run_overlay_pipeline",
]
