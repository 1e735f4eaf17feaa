"""FUSE deferred-delete artifact reaper.

FUSE filesystems rename a file that is deleted while still open to
``.fuse_hiddenXXXX`` and remove it when the last handle closes. Unclean
process exits and container stops leave these behind. A reaper pass
removes the ones no process holds open:

    IDLE -> SCANNING -> CHECKING_HOLDERS -> DELETING | RETAINING -> IDLE

The holder set is queried fresh for every candidate in every pass, and a
file is only unlinked in the branch that observed an empty set. A process
opening the file between the check and the unlink is an accepted race.
"""

import logging
import os
from collections.abc import Iterator

from bindfix.core.config import BindfixConfig
from bindfix.core.logs import REAPER_LOG_NAME
from bindfix.mounts.enumerator import MountEnumerator, MountTableUnavailableError
from bindfix.reaper.holders import HolderQuery
from bindfix.reaper.models import (
    ARTIFACT_PREFIX,
    FuseArtifact,
    ReapAction,
    ReapRecord,
    ReapReport,
)

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(REAPER_LOG_NAME)

# Artifacts are looked for at most this many levels below a mount
SCAN_DEPTH = 3


class FuseReaper:
    """Removes unheld deferred-delete artifacts under FUSE mounts.

    Args:
        config: Process configuration (workspace root, disable flag).
        enumerator: Mount enumerator. Defaults to one for the workspace root.
        holder_query: Open handle query. Defaults to a fuser-based query.
    """

    def __init__(
        self,
        config: BindfixConfig,
        *,
        enumerator: MountEnumerator | None = None,
        holder_query: HolderQuery | None = None,
    ) -> None:
        self._config = config
        self._enumerator = enumerator or MountEnumerator(config.workspace_root)
        self._holders = holder_query or HolderQuery()

    def run(self) -> ReapReport:
        """Run a single reaper pass.

        Returns:
            ReapReport with one record per artifact found. When the reaper
            is disabled, an empty report marked as skipped.
        """
        if self._config.reaper_disabled:
            logger.debug("Reaper disabled; skipping pass")
            return ReapReport(skipped=True)

        report = ReapReport()
        try:
            mounts = self._enumerator.fuse_mounts()
        except MountTableUnavailableError as e:
            logger.warning("Cannot enumerate FUSE mounts: %s", e)
            return report

        report.mounts = [m.path for m in mounts]
        for path, mount_point in self._scan(report.mounts):
            report.records.append(self._handle(path, mount_point))

        if report.deleted:
            logger.info("Cleaned up %d stale FUSE artifact(s)", len(report.deleted))
        return report

    def _scan(self, mount_points: list[str]) -> Iterator[tuple[str, str]]:
        """Yield (artifact path, mount point) for every artifact found.

        Nested FUSE mounts are scanned once each; an artifact reachable
        from more than one mount is yielded once.
        """
        seen: set[str] = set()
        for mount_point in mount_points:
            for path in find_artifacts(mount_point):
                if path in seen:
                    continue
                seen.add(path)
                yield path, mount_point

    def _handle(self, path: str, mount_point: str) -> ReapRecord:
        """Check one candidate's holders and delete or retain it."""
        holders = self._holders.holders(path)

        if holders is None:
            artifact = FuseArtifact(path=path, mount_point=mount_point)
            audit_logger.info("Retained %s (holders unknown)", path)
            return ReapRecord(
                artifact=artifact,
                action=ReapAction.RETAINED,
                error="holders could not be determined",
            )

        artifact = FuseArtifact(path=path, mount_point=mount_point, holder_pids=holders)
        if holders:
            pids = ",".join(str(pid) for pid in sorted(holders))
            audit_logger.info("Retained %s (held by pid %s)", path, pids)
            return ReapRecord(artifact=artifact, action=ReapAction.RETAINED)

        try:
            os.unlink(path)
        except OSError as e:
            audit_logger.warning("Failed to remove %s: %s", path, e)
            return ReapRecord(artifact=artifact, action=ReapAction.FAILED, error=str(e))

        audit_logger.info("Removed stale %s", path)
        return ReapRecord(artifact=artifact, action=ReapAction.DELETED)


def find_artifacts(mount_point: str, max_depth: int = SCAN_DEPTH) -> Iterator[str]:
    """Find deferred-delete artifacts below a mount point.

    Only regular files whose name starts with ``.fuse_hidden`` are
    returned. Symlinks are neither followed nor returned.

    Args:
        mount_point: Directory to search.
        max_depth: Deepest level searched; direct children are level 1.

    Yields:
        Absolute artifact paths, in sorted order per directory.
    """
    yield from _walk(mount_point, 1, max_depth)


def _walk(directory: str, depth: int, max_depth: int) -> Iterator[str]:
    """Recursive helper for find_artifacts."""
    if depth > max_depth:
        return
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.debug("Cannot scan %s: %s", directory, e)
        return

    for entry in entries:
        try:
            if entry.name.startswith(ARTIFACT_PREFIX) and entry.is_file(follow_symlinks=False):
                yield entry.path
            elif entry.is_dir(follow_symlinks=False):
                yield from _walk(entry.path, depth + 1, max_depth)
        except OSError as e:
            logger.debug("Cannot inspect %s: %s", entry.path, e)
