"""Periodic job registration through cron.

Jobs are registered as ``/etc/cron.d`` entries. Registration is what the
scheduler needs from bindfix; running the job on time, killing hung runs
and keeping a single instance are cron's responsibilities.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from tempfile import NamedTemporaryFile

from bindfix.core.config import BindfixConfig
from bindfix.core.paths import get_cron_dir
from bindfix.utils.shell import run_privileged

logger = logging.getLogger(__name__)

REAPER_JOB_NAME = "fuse-cleanup"
REAPER_INTERVAL_MINUTES = 10

_CRON_PATH = "/usr/local/bin:/usr/bin:/bin"


class SchedulerError(Exception):
    """Raised when a job cannot be registered or removed."""


@dataclass(frozen=True, slots=True)
class CronJob:
    """A command run every few minutes as a given user.

    Attributes:
        name: Entry name; also the file name under the cron directory.
        command: Command line to run.
        interval_minutes: Minutes between runs (1-59).
        user: User the command runs as.
        environment: Variables set for the command.
    """

    name: str
    command: str
    interval_minutes: int
    user: str
    environment: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate job data after initialization."""
        # cron.d ignores file names containing dots
        if not self.name or "/" in self.name or "." in self.name:
            msg = f"Invalid cron job name: {self.name!r}"
            raise ValueError(msg)
        if not 1 <= self.interval_minutes <= 59:
            msg = f"Interval must be between 1 and 59 minutes, got {self.interval_minutes}"
            raise ValueError(msg)

    def render(self) -> str:
        """Render the job as a cron.d file."""
        lines = [
            f"# {self.name} - managed by bindfix",
            f"# Runs every {self.interval_minutes} minutes",
            "",
            "SHELL=/bin/bash",
            f"PATH={_CRON_PATH}",
        ]
        lines.extend(f"{key}={value}" for key, value in sorted(self.environment.items()))
        lines.append("")
        lines.append(f"*/{self.interval_minutes} * * * * {self.user} {self.command}")
        return "\n".join(lines) + "\n"


class CronScheduler:
    """Registers jobs as files in a cron.d directory.

    Args:
        cron_dir: Directory cron reads entries from. Defaults to /etc/cron.d.
    """

    def __init__(self, cron_dir: Path | None = None) -> None:
        self._cron_dir = cron_dir or get_cron_dir()

    def entry_path(self, name: str) -> Path:
        """Get the path of a job's cron entry."""
        return self._cron_dir / name

    def is_registered(self, name: str) -> bool:
        """Check if a job's cron entry exists."""
        return self.entry_path(name).exists()

    def register(self, job: CronJob) -> Path:
        """Write a job's cron entry, replacing any previous one.

        Args:
            job: Job to register.

        Returns:
            Path of the cron entry.

        Raises:
            SchedulerError: If the entry cannot be written.
        """
        path = self.entry_path(job.name)
        content = job.render()

        if os.access(self._cron_dir, os.W_OK):
            self._write_direct(path, content)
        else:
            self._write_privileged(path, content)

        logger.info("Registered %s (every %d minutes)", path, job.interval_minutes)
        return path

    def unregister(self, name: str) -> bool:
        """Remove a job's cron entry.

        Args:
            name: Job name.

        Returns:
            True if an entry was removed, False if none existed.

        Raises:
            SchedulerError: If the entry exists but cannot be removed.
        """
        path = self.entry_path(name)
        if not path.exists():
            return False

        try:
            path.unlink()
        except PermissionError:
            self._run_privileged(["rm", "-f", str(path)], path)
        except OSError as e:
            raise SchedulerError(f"Failed to remove {path}: {e}") from e

        logger.info("Unregistered %s", path)
        return True

    def _write_direct(self, path: Path, content: str) -> None:
        """Write the entry atomically via a temporary file."""
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                dir=self._cron_dir,
                prefix=".bindfix-",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
            # cron refuses group/world-writable entries
            tmp_path.chmod(0o644)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise SchedulerError(f"Failed to write {path}: {e}") from e

    def _write_privileged(self, path: Path, content: str) -> None:
        """Write the entry through the privilege-escalation helper."""
        self._run_privileged(["tee", str(path)], path, input_text=content)
        self._run_privileged(["chmod", "644", str(path)], path)

    def _run_privileged(self, args: list[str], path: Path, input_text: str | None = None) -> None:
        try:
            result = run_privileged(args, timeout=30.0, input_text=input_text)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise SchedulerError(f"Failed to update {path}: {e}") from e
        if not result.success:
            error = result.stderr.strip() or f"{args[0]} exited with {result.returncode}"
            raise SchedulerError(f"Failed to update {path}: {error}")


def reaper_job(config: BindfixConfig) -> CronJob:
    """Build the scheduled reaper job for a configuration.

    Args:
        config: Process configuration.

    Returns:
        CronJob running ``bindfix reap`` as the configured user.
    """
    executable = shutil.which("bindfix") or "bindfix"
    return CronJob(
        name=REAPER_JOB_NAME,
        command=f"{executable} --quiet reap",
        interval_minutes=REAPER_INTERVAL_MINUTES,
        user=config.effective_user,
        environment={"BINDFIX_WORKSPACE": str(config.workspace_root)},
    )


def register_reaper(config: BindfixConfig, scheduler: CronScheduler | None = None) -> Path | None:
    """Register the scheduled reaper, or remove it when disabled.

    Args:
        config: Process configuration.
        scheduler: Scheduler to register with. Defaults to a CronScheduler.

    Returns:
        Path of the cron entry, or None when the reaper is disabled.

    Raises:
        SchedulerError: If the entry cannot be written or removed.
    """
    cron = scheduler or CronScheduler()
    if config.reaper_disabled:
        cron.unregister(REAPER_JOB_NAME)
        return None
    return cron.register(reaper_job(config))
