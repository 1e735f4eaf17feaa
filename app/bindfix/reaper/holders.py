"""Open file handle queries.

Uses ``fuser`` to find the processes holding a path open. The query is
live: nothing is cached between calls.
"""

import logging
import re
import subprocess

from bindfix.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# fuser appends access letters to each PID (e.g. "4821m")
_PID_RE = re.compile(r"\b(\d+)[a-zA-Z]*\b")


class HolderQuery:
    """Looks up which processes hold a file open."""

    _FUSER_TIMEOUT: float = 30.0

    def is_available(self) -> bool:
        """Check if fuser is installed."""
        return command_exists("fuser")

    def holders(self, path: str) -> frozenset[int] | None:
        """Get the PIDs currently holding a path open.

        ``fuser`` prints the PIDs on stdout and exits 0 when the file is
        open, and exits 1 with no PIDs when it is not.

        Args:
            path: File to check.

        Returns:
            Set of PIDs (empty when no process holds the file), or None if
            the holders could not be determined.
        """
        try:
            result = run_command(["fuser", path], timeout=self._FUSER_TIMEOUT)
        except FileNotFoundError:
            logger.warning("fuser not found; cannot check holders of %s", path)
            return None
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Holder query failed for %s: %s", path, e)
            return None

        pids = frozenset(int(m.group(1)) for m in _PID_RE.finditer(result.stdout))
        if result.success:
            return pids
        if result.returncode == 1 and not pids:
            return frozenset()

        logger.warning(
            "Unexpected fuser exit %d for %s: %s",
            result.returncode,
            path,
            result.stderr.strip(),
        )
        return None
