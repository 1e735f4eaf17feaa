"""Mount domain models for overlay planning.

This module defines the data structures that flow through the overlay
pipeline: mounts discovered in the mount table, their classification,
the per-mount overlay decision, and the outcome of applying an overlay.
"""

from dataclasses import dataclass
from enum import Enum


class Verdict(str, Enum):
    """Classification of a filesystem type.

    Attributes:
        KNOWN_BROKEN: Filesystem is known to silently drop permission changes.
        KNOWN_GOOD: Filesystem is known to honor POSIX permission semantics.
        PROBE_REQUIRED: Filesystem is unknown and must be tested empirically.
    """

    KNOWN_BROKEN = "known-broken"
    KNOWN_GOOD = "known-good"
    PROBE_REQUIRED = "probe-required"


class ProbeOutcome(str, Enum):
    """Result of the write/chmod/stat permission probe.

    Attributes:
        FAITHFUL: Permission bits survived the round-trip.
        UNFAITHFUL: Permission bits were lost or altered.
        INCONCLUSIVE: The probe could not run (read-only mount, I/O error).
    """

    FAITHFUL = "faithful"
    UNFAITHFUL = "unfaithful"
    INCONCLUSIVE = "inconclusive"


class OverlayDecision(str, Enum):
    """What the overlay stage does with a mount.

    Attributes:
        APPLY: Mount a permission-forcing overlay on this path.
        SKIP_BY_CONFIGURATION: Overlay mode is "false".
        SKIP_BY_LIST: Path is in the skip list (or below an entry).
        SKIP_ALREADY_CORRECT: Filesystem honors permissions already.
        SKIP_ALREADY_FUSE: Path is already backed by a FUSE filesystem.
    """

    APPLY = "apply"
    SKIP_BY_CONFIGURATION = "skip-by-configuration"
    SKIP_BY_LIST = "skip-by-list"
    SKIP_ALREADY_CORRECT = "skip-already-correct"
    SKIP_ALREADY_FUSE = "skip-already-fuse"


def is_fuse_type(fstype: str) -> bool:
    """Check if a mount table filesystem type is a FUSE filesystem.

    Covers plain ``fuse``, typed ``fuse.<name>`` (e.g. ``fuse.bindfs``),
    ``fuseblk`` and helper types such as ``fusectl``.

    Args:
        fstype: Filesystem type as reported by the mount table.

    Returns:
        True if the type names a FUSE filesystem.
    """
    return "fuse" in fstype.lower()


@dataclass(frozen=True, slots=True)
class MountPoint:
    """A mount found under the workspace root.

    Attributes:
        path: Absolute, canonical mount target.
        fstype: Filesystem type reported by the mount table (topmost layer).
        already_fuse: True if any layer at this path is a FUSE filesystem.
    """

    path: str
    fstype: str
    already_fuse: bool = False

    def __post_init__(self) -> None:
        """Validate mount data after initialization."""
        if not self.path.startswith("/"):
            msg = f"Mount path must be absolute, got {self.path!r}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Classification:
    """Verdict for a mount, with the probe outcome when one was run.

    Attributes:
        verdict: Filesystem type classification.
        probe_outcome: Probe result; only set for PROBE_REQUIRED verdicts.
    """

    verdict: Verdict
    probe_outcome: ProbeOutcome | None = None

    def __post_init__(self) -> None:
        """Validate that only probe-required verdicts carry a probe outcome."""
        if self.probe_outcome is not None and self.verdict != Verdict.PROBE_REQUIRED:
            msg = f"Verdict {self.verdict.value} cannot carry a probe outcome"
            raise ValueError(msg)

    @property
    def needs_overlay(self) -> bool:
        """Check if the mount needs a permission-forcing overlay.

        Inconclusive probes count as unfaithful. A probe-required verdict
        that has not been probed yet also counts as needing an overlay.
        """
        if self.verdict == Verdict.KNOWN_BROKEN:
            return True
        if self.verdict == Verdict.KNOWN_GOOD:
            return False
        return self.probe_outcome != ProbeOutcome.FAITHFUL


@dataclass(frozen=True, slots=True)
class MountPlan:
    """Overlay decision for a single mount.

    Attributes:
        mount: The mount the decision applies to.
        decision: What the overlay stage does with it.
        classification: Classification used for the decision, or None when
            the decision was made before classification (already FUSE,
            disabled, skip-listed, or forced).
    """

    mount: MountPoint
    decision: OverlayDecision
    classification: Classification | None = None

    @property
    def should_apply(self) -> bool:
        """Check if an overlay should be mounted for this plan."""
        return self.decision == OverlayDecision.APPLY


@dataclass(frozen=True, slots=True)
class AppliedOverlay:
    """Record of an overlay mounted over a path.

    The overlay itself is the persistent record: on the next startup the
    mount table reports the path as FUSE-backed and it is skipped.

    Attributes:
        path: Mount path the overlay was layered over.
        user: User name ownership is forced to.
        group: Group name ownership is forced to.
        uid: UID assigned to newly created files.
        gid: GID assigned to newly created files.
    """

    path: str
    user: str
    group: str
    uid: int
    gid: int


@dataclass(frozen=True, slots=True)
class OverlayResult:
    """Result of a single overlay mount operation.

    Attributes:
        path: Mount path that was operated on.
        success: Whether the overlay was mounted.
        error: Error message if the operation failed, None otherwise.
        applied: Record of the overlay on success, None otherwise.
        dry_run: Whether this was a dry-run (nothing mounted).
    """

    path: str
    success: bool
    error: str | None = None
    applied: AppliedOverlay | None = None
    dry_run: bool = False
