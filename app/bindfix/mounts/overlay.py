"""Permission-forcing overlay operator.

Layers a ``bindfs`` FUSE mount directly over a host bind mount so that
every file appears owned by the container user, execute bits survive,
and new files are created with the container user's IDs.
"""

import logging
import subprocess

from bindfix.core.config import BindfixConfig
from bindfix.core.paths import fuse_device_available
from bindfix.mounts.models import AppliedOverlay, MountPlan, MountPoint, OverlayResult
from bindfix.utils.shell import CommandResult, can_escalate, command_exists, run_privileged

logger = logging.getLogger(__name__)

OVERLAY_TOOL = "bindfs"

# Owner gets rw plus x on dirs/executables; group and others read dirs
OVERLAY_PERMS = "u+rwX,gd+rX,od+rX"


class OverlayApplier:
    """Mounts bindfs overlays over workspace mounts.

    Mounting requires root. When the process is not root the command is
    delegated to ``sudo -n``; it is never retried any other way.

    Attributes:
        dry_run: If True, report what would be mounted without mounting.
    """

    # bindfs daemonizes once the mount is up
    _MOUNT_TIMEOUT: float = 60.0

    def __init__(self, config: BindfixConfig, dry_run: bool = False) -> None:
        """Initialize the applier.

        Args:
            config: Configuration providing the identity to force.
            dry_run: If True, only simulate mounts.
        """
        self._dry_run = dry_run
        self._user = config.effective_user
        self._uid, self._gid = config.resolve_identity()
        self._group = config.effective_group

    @property
    def dry_run(self) -> bool:
        """Check if applier is in dry-run mode."""
        return self._dry_run

    def is_available(self) -> bool:
        """Check if the overlay tool is installed."""
        return command_exists(OVERLAY_TOOL)

    def check_environment(self) -> str | None:
        """Check that overlays can be mounted at all.

        Returns:
            None if mounting is possible, otherwise a reason suitable for a
            single warning log line.
        """
        if not self.is_available():
            return f"{OVERLAY_TOOL} is not installed"
        if not fuse_device_available():
            return "/dev/fuse is not available (run with --device /dev/fuse --cap-add SYS_ADMIN)"
        if not can_escalate():
            return "no root access or passwordless sudo"
        return None

    def build_command(self, path: str) -> list[str]:
        """Build the overlay mount command for a path.

        Args:
            path: Mount path; the overlay is layered over itself.

        Returns:
            Command and arguments, without privilege escalation.
        """
        return [
            OVERLAY_TOOL,
            f"--force-user={self._user}",
            f"--force-group={self._group}",
            f"--create-for-user={self._uid}",
            f"--create-for-group={self._gid}",
            f"--perms={OVERLAY_PERMS}",
            "-o",
            "allow_other",
            path,
            path,
        ]

    def apply(self, mount: MountPoint) -> OverlayResult:
        """Mount an overlay over a single path.

        Args:
            mount: Mount to overlay.

        Returns:
            OverlayResult indicating success or failure. Failures are
            logged and never raised.
        """
        if mount.already_fuse:
            return OverlayResult(
                path=mount.path,
                success=False,
                error=f"Already backed by FUSE: {mount.path}",
            )

        applied = AppliedOverlay(
            path=mount.path,
            user=self._user,
            group=self._group,
            uid=self._uid,
            gid=self._gid,
        )
        args = self.build_command(mount.path)

        if self._dry_run:
            logger.info("Dry-run: would run %s", " ".join(args))
            return OverlayResult(path=mount.path, success=True, applied=applied, dry_run=True)

        logger.info(
            "Applying overlay on %s (user=%s uid=%d gid=%d)",
            mount.path,
            self._user,
            self._uid,
            self._gid,
        )
        try:
            result = run_privileged(args, timeout=self._MOUNT_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Failed to apply overlay on %s: %s", mount.path, e)
            return OverlayResult(path=mount.path, success=False, error=str(e))

        return self._parse_result(result, applied)

    def apply_all(self, plans: list[MountPlan]) -> list[OverlayResult]:
        """Mount overlays for every plan whose decision is apply.

        Args:
            plans: Mount plans in enumeration order.

        Returns:
            One OverlayResult per applied plan, in order.
        """
        return [self.apply(plan.mount) for plan in plans if plan.should_apply]

    def _parse_result(self, result: CommandResult, applied: AppliedOverlay) -> OverlayResult:
        """Turn the mount command's exit status into an OverlayResult."""
        if result.success:
            return OverlayResult(path=applied.path, success=True, applied=applied)

        error_msg = result.stderr.strip() or f"{OVERLAY_TOOL} exited with {result.returncode}"
        logger.warning("Failed to apply overlay on %s: %s", applied.path, error_msg)
        return OverlayResult(path=applied.path, success=False, error=error_msg)
