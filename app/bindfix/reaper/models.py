"""Reaper domain models.

This module defines deferred-delete artifacts found under FUSE mounts and
the records a reaper pass produces for each of them.
"""

from dataclasses import dataclass, field
from enum import Enum

# FUSE renames files deleted while open to .fuse_hiddenXXXXXXXX
ARTIFACT_PREFIX = ".fuse_hidden"


class ReapAction(str, Enum):
    """What a reaper pass did with an artifact.

    Attributes:
        DELETED: No process held the artifact; it was removed.
        RETAINED: A process held it, or holders could not be determined.
        FAILED: Removal was attempted and failed.
    """

    DELETED = "deleted"
    RETAINED = "retained"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FuseArtifact:
    """A deferred-delete file observed under a FUSE mount.

    Attributes:
        path: Absolute path of the artifact.
        mount_point: FUSE mount the artifact was found under.
        holder_pids: PIDs holding the file open at observation time.
    """

    path: str
    mount_point: str
    holder_pids: frozenset[int] = frozenset()

    @property
    def is_held(self) -> bool:
        """Check if any process held the artifact when observed."""
        return bool(self.holder_pids)


@dataclass(frozen=True, slots=True)
class ReapRecord:
    """Outcome for one artifact in one pass.

    Attributes:
        artifact: The artifact, with the holders observed in this pass.
        action: What was done with it.
        error: Reason for a failure or for retaining without holders.
    """

    artifact: FuseArtifact
    action: ReapAction
    error: str | None = None


@dataclass(slots=True)
class ReapReport:
    """Ordered outcome of a single reaper pass.

    Attributes:
        records: One record per artifact, in scan order.
        mounts: FUSE mounts scanned in this pass.
        skipped: True when the reaper is disabled and nothing ran.
    """

    records: list[ReapRecord] = field(default_factory=list)
    mounts: list[str] = field(default_factory=list)
    skipped: bool = False

    def _with_action(self, action: ReapAction) -> list[ReapRecord]:
        return [r for r in self.records if r.action == action]

    @property
    def deleted(self) -> list[ReapRecord]:
        """Records of artifacts removed in this pass."""
        return self._with_action(ReapAction.DELETED)

    @property
    def retained(self) -> list[ReapRecord]:
        """Records of artifacts left in place for the next pass."""
        return self._with_action(ReapAction.RETAINED)

    @property
    def failed(self) -> list[ReapRecord]:
        """Records of artifacts whose removal failed."""
        return self._with_action(ReapAction.FAILED)
