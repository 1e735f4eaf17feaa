"""Shell execution utilities.

Provides safe subprocess execution with proper error handling, plus the
privilege-escalation helper used for commands that need root.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        input_text: Optional text fed to the command's standard input.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
        input=input_text,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def is_root() -> bool:
    """Check if the current process runs with an effective UID of 0."""
    return os.geteuid() == 0


def can_escalate() -> bool:
    """Check if commands can be run as root.

    True when already root, or when ``sudo`` exists and accepts a
    non-interactive command (``sudo -n true``) without prompting.

    Returns:
        True if privileged commands can be executed, False otherwise.
    """
    if is_root():
        return True
    if not command_exists("sudo"):
        return False
    try:
        return run_command(["sudo", "-n", "true"], timeout=10.0).success
    except (subprocess.TimeoutExpired, OSError):
        return False


def run_privileged(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a command with root privileges.

    Runs the command directly when the process is already root, otherwise
    delegates it to ``sudo -n`` so a missing sudo rule fails immediately
    instead of blocking on a password prompt.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds to wait for command.
        input_text: Optional text fed to the command's standard input.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If the command (or sudo) is not found.
    """
    full_args = args if is_root() else ["sudo", "-n", *args]
    return run_command(full_args, timeout=timeout, input_text=input_text)
