"""Shared types and utilities for CLI commands.

This module provides the workspace option and configuration loading used
by several CLI command modules.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from bindfix.core.config import BindfixConfig, load_config_or_default

WorkspaceOption = Annotated[
    Path | None,
    typer.Option(
        "--workspace",
        "-w",
        help="Workspace root (default: BINDFIX_WORKSPACE or /workspace).",
    ),
]


def get_config(workspace: Path | None = None) -> BindfixConfig:
    """Load configuration for a CLI command.

    Args:
        workspace: Optional workspace root overriding the configured one.

    Returns:
        BindfixConfig from the config file and environment, never raising
        on a broken config file.
    """
    config = load_config_or_default()
    if workspace is not None:
        root = Path(os.path.normpath(os.path.abspath(workspace)))
        config = config.model_copy(update={"workspace_root": root})
    return config
