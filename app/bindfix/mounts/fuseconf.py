"""FUSE configuration for non-root overlays.

The ``allow_other`` mount option, which lets processes other than the
mounting user see the overlay, is only accepted from non-root users when
``/etc/fuse.conf`` enables ``user_allow_other``.
"""

import logging
import os
import subprocess
from pathlib import Path

from bindfix.core.paths import get_fuse_conf_path
from bindfix.utils.shell import run_privileged

logger = logging.getLogger(__name__)

USER_ALLOW_OTHER = "user_allow_other"


class FuseConfError(Exception):
    """Raised when the FUSE configuration cannot be updated."""


def enable_user_allow_other(text: str) -> str:
    """Return FUSE config text with ``user_allow_other`` enabled.

    A commented-out directive is uncommented in place; otherwise the
    directive is appended.

    Args:
        text: Current file contents (may be empty).

    Returns:
        Updated contents, identical to the input if already enabled.
    """
    lines = text.splitlines()
    if any(line.strip() == USER_ALLOW_OTHER for line in lines):
        return text

    for i, line in enumerate(lines):
        if line.lstrip("#").strip() == USER_ALLOW_OTHER:
            lines[i] = USER_ALLOW_OTHER
            return "\n".join(lines) + "\n"

    lines.append(USER_ALLOW_OTHER)
    return "\n".join(lines) + "\n"


def ensure_user_allow_other(path: Path | None = None) -> bool:
    """Enable ``user_allow_other`` in the FUSE configuration file.

    Args:
        path: Config file path. If None, uses /etc/fuse.conf.

    Returns:
        True if the file was changed, False if it was already enabled.

    Raises:
        FuseConfError: If the file cannot be read or written.
    """
    conf_path = path or get_fuse_conf_path()

    try:
        current = conf_path.read_text() if conf_path.exists() else ""
    except OSError as e:
        raise FuseConfError(f"Failed to read {conf_path}: {e}") from e

    updated = enable_user_allow_other(current)
    if updated == current:
        return False

    writable = os.access(conf_path if conf_path.exists() else conf_path.parent, os.W_OK)
    try:
        if writable:
            conf_path.write_text(updated)
        else:
            result = run_privileged(["tee", str(conf_path)], timeout=30.0, input_text=updated)
            if not result.success:
                raise FuseConfError(
                    f"Failed to write {conf_path}: {result.stderr.strip() or 'tee failed'}"
                )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise FuseConfError(f"Failed to write {conf_path}: {e}") from e

    logger.info("Enabled %s in %s", USER_ALLOW_OTHER, conf_path)
    return True
