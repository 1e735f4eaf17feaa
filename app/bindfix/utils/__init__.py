"""Utility modules for bindfix.

This module exports commonly used utility functions.
"""

from bindfix.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from bindfix.utils.shell import (
    CommandResult,
    can_escalate,
    command_exists,
    is_root,
    run_command,
    run_privileged,
)

__all__ = [
    "CommandResult",
    "can_escalate",
    "command_exists",
    "console",
    "err_console",
    "is_root",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_privileged",
]
