"""Mount table enumeration.

Lists the mounts rooted under the workspace using ``findmnt``. The result
is re-derived from the live mount table on every call; nothing is cached
between invocations.
"""

import logging
import os
import re
import subprocess

from bindfix.mounts.models import MountPoint, is_fuse_type
from bindfix.utils.shell import run_command

logger = logging.getLogger(__name__)

# findmnt -r escapes whitespace and other unsafe bytes as \xHH
_ESCAPE_RE = re.compile(rb"\\x([0-9a-fA-F]{2})")


class MountTableUnavailableError(Exception):
    """Raised when the mount table cannot be queried at all."""


def unescape_findmnt(value: str) -> str:
    """Decode ``\\xHH`` escapes from findmnt raw output.

    Args:
        value: Raw field from ``findmnt -r``.

    Returns:
        The field with escapes replaced by their characters.
    """
    if "\\x" not in value:
        return value
    # Multi-byte UTF-8 names are escaped byte by byte
    raw = _ESCAPE_RE.sub(lambda m: bytes([int(m.group(1), 16)]), value.encode("utf-8"))
    return raw.decode("utf-8", errors="replace")


def is_within(path: str, root: str) -> bool:
    """Check if a canonical path equals or lies below a canonical root.

    Args:
        path: Canonical absolute path.
        root: Canonical absolute root directory.

    Returns:
        True for ``root`` itself and its descendants, False otherwise
        (``/workspace2`` is not within ``/workspace``).
    """
    if root == "/":
        return path.startswith("/")
    return path == root or path.startswith(root + "/")


class MountEnumerator:
    """Enumerates mounts under a workspace root.

    Args:
        workspace_root: Root directory whose mounts are listed.
    """

    # Mount table queries are local; anything slower is treated as a failure
    _FINDMNT_TIMEOUT: float = 30.0

    def __init__(self, workspace_root: str | os.PathLike[str]) -> None:
        self._root = os.path.normpath(os.path.abspath(os.fspath(workspace_root)))

    @property
    def workspace_root(self) -> str:
        """Canonical workspace root."""
        return self._root

    def enumerate(self) -> list[MountPoint]:
        """List every distinct mount at or under the workspace root.

        Stacked mounts appear once per layer in the mount table. They are
        collapsed into one MountPoint that keeps its first position, takes
        the topmost layer's filesystem type, and is marked as FUSE-backed
        if any layer is FUSE.

        Returns:
            MountPoint records in mount table order. Empty if the mount
            table has no matching rows.

        Raises:
            MountTableUnavailableError: If findmnt is missing or cannot run.
        """
        fstypes: dict[str, list[str]] = {}

        for target, fstype in self._query_mount_table():
            path = os.path.normpath(target)
            if not is_within(path, self._root):
                continue
            fstypes.setdefault(path, []).append(fstype)

        return [
            MountPoint(
                path=path,
                fstype=layers[-1],
                already_fuse=any(is_fuse_type(layer) for layer in layers),
            )
            for path, layers in fstypes.items()
        ]

    def fuse_mounts(self) -> list[MountPoint]:
        """List FUSE-backed mounts at or under the workspace root.

        Returns:
            MountPoint records whose path is backed by any FUSE layer.

        Raises:
            MountTableUnavailableError: If findmnt is missing or cannot run.
        """
        return [mount for mount in self.enumerate() if mount.already_fuse]

    def _query_mount_table(self) -> list[tuple[str, str]]:
        """Run findmnt and parse its raw TARGET/FSTYPE output.

        Returns:
            List of (target, fstype) tuples.

        Raises:
            MountTableUnavailableError: If findmnt is missing or cannot run.
        """
        try:
            result = run_command(
                ["findmnt", "-n", "-r", "-o", "TARGET,FSTYPE"],
                timeout=self._FINDMNT_TIMEOUT,
            )
        except FileNotFoundError as e:
            msg = "findmnt not found; cannot read the mount table"
            raise MountTableUnavailableError(msg) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"Failed to query mount table: {e}"
            raise MountTableUnavailableError(msg) from e

        if not result.success and not result.stdout.strip():
            # findmnt exits 1 when there is nothing to list
            logger.debug("findmnt returned no rows (exit %d)", result.returncode)
            return []

        rows: list[tuple[str, str]] = []
        for line in result.stdout.splitlines():
            parts = line.split(maxsplit=1)
            if not parts:
                continue
            target = unescape_findmnt(parts[0])
            fstype = unescape_findmnt(parts[1].strip()) if len(parts) > 1 else ""
            if not target.startswith("/"):
                logger.debug("Skipping malformed mount table row: %r", line)
                continue
            rows.append((target, fstype))
        return rows
