"""Empirical permission probe for unrecognized filesystems.

Writes a uniquely named file into the mount, changes its permission bits,
reads them back and compares. The probe file is removed on every exit
path.
"""

import contextlib
import logging
import os
import secrets
import stat
from collections.abc import Iterator

from bindfix.mounts.models import MountPoint, ProbeOutcome

logger = logging.getLogger(__name__)

PROBE_PREFIX = ".bindfix-probe-"


class PermissionProber:
    """Tests whether a mount keeps permission changes.

    The file is created with CREATE_MODE, but the mode it actually gets is
    read back first: some filesystems report a fixed mode for every file.
    The test mode flips every execute bit of that mode, which is exactly
    what broken file-sharing layers drop.
    """

    CREATE_MODE: int = 0o600
    FLIP_BITS: int = 0o111

    def probe(self, mount: MountPoint) -> ProbeOutcome:
        """Probe a mount's permission semantics.

        Args:
            mount: Mount to test. Only probe-required mounts should be passed.

        Returns:
            FAITHFUL if the new mode reads back unchanged, UNFAITHFUL if it
            doesn't, INCONCLUSIVE if the probe could not be carried out.
        """
        try:
            with self._probe_file(mount.path) as path:
                created = self._read_mode(path)
                expected = created ^ self.FLIP_BITS
                self._set_mode(path, expected)
                actual = self._read_mode(path)
        except OSError as e:
            logger.info("Permission probe on %s inconclusive: %s", mount.path, e)
            return ProbeOutcome.INCONCLUSIVE

        if actual == expected:
            logger.debug("Permission probe on %s: faithful", mount.path)
            return ProbeOutcome.FAITHFUL

        logger.info(
            "Permission probe on %s: expected %o, read back %o",
            mount.path,
            expected,
            actual,
        )
        return ProbeOutcome.UNFAITHFUL

    @contextlib.contextmanager
    def _probe_file(self, directory: str) -> Iterator[str]:
        """Create a probe file and guarantee its removal.

        Args:
            directory: Directory to create the file in.

        Yields:
            Path of the created probe file.

        Raises:
            OSError: If the file cannot be created.
        """
        path = os.path.join(directory, f"{PROBE_PREFIX}{os.getpid()}-{secrets.token_hex(4)}")
        self._create(path)
        try:
            yield path
        finally:
            self._remove(path)

    def _create(self, path: str) -> None:
        """Create an empty file, failing if it already exists."""
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, self.CREATE_MODE)
        os.close(fd)

    def _set_mode(self, path: str, mode: int) -> None:
        """Change a file's permission bits."""
        os.chmod(path, mode)

    def _read_mode(self, path: str) -> int:
        """Read a file's permission bits."""
        return stat.S_IMODE(os.stat(path).st_mode) & 0o777

    def _remove(self, path: str) -> None:
        """Remove the probe file, logging instead of raising on failure."""
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove probe file %s: %s", path, e)
