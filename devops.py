"""DevOps tasks for bindfix.

Usage: uv run devops.py <task>
Tasks: fmt, lint, test, clean
"""

import subprocess
import sys
from collections.abc import Callable


def _run(commands: list[list[str]]) -> None:
    """Execute a sequence of shell commands, exiting on first failure."""
    for cmd in commands:
        try:
            subprocess.run(cmd, check=True)  # nosec: B603, B607
        except subprocess.CalledProcessError as e:
            print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
            sys.exit(e.returncode)


def format_code() -> None:
    """Format the codebase and apply safe lint fixes."""
    _run(
        [
            ["echo", "🎨 [Native Task] Formatting app/ and tests/ with Ruff...\n"],
            ["ruff", "format", "app", "tests", "devops.py"],
            ["ruff", "check", "--fix", "app", "tests"],
        ]
    )


def lint() -> None:
    """Check formatting and lint rules without changing files."""
    _run(
        [
            ["echo", "🔎 [Native Task] Linting with Ruff...\n"],
            ["ruff", "format", "--check", "app", "tests"],
            ["ruff", "check", "app", "tests"],
        ]
    )


def test() -> None:
    """Run unit and integration tests with coverage."""
    _run(
        [
            ["echo", "🧪 [Native Task] Testing with PyTest...\n"],
            ["uv", "run", "pytest", "-q", "--cov=bindfix", "--cov-report=term-missing"],
        ]
    )


def clean() -> None:
    """Remove caches and build artifacts."""
    _run(
        [
            ["echo", "🧹 [Native Task] Cleaning the Project...\n"],
            ["find", ".", "-type", "d", "-name", "__pycache__", "-exec", "rm", "-rf", "{}", "+"],
            ["rm", "-rf", ".pytest_cache", ".coverage", "htmlcov", ".ruff_cache", "dist", "build"],
        ]
    )


TASKS: dict[str, Callable[[], None]] = {
    "fmt": format_code,
    "lint": lint,
    "test": test,
    "clean": clean,
}


if __name__ == "__main__":
    if len(sys.argv) != 2 or sys.argv[1] not in TASKS:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    TASKS[sys.argv[1]]()
