"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from bindfix.core.config import BindfixConfig
from bindfix.core.logs import CONSOLE_HANDLER_NAME, REAPER_LOG_NAME
from bindfix.mounts.models import MountPoint


@pytest.fixture
def make_config() -> Callable[..., BindfixConfig]:
    """Factory for configs with a fixed identity (no account lookups)."""

    def _make(**overrides: Any) -> BindfixConfig:
        values: dict[str, Any] = {
            "workspace_root": "/workspace",
            "user": "dev",
            "group": "dev",
            "uid": 1000,
            "gid": 1000,
        }
        values.update(overrides)
        return BindfixConfig(**values)

    return _make


@pytest.fixture
def mock_findmnt_output() -> str:
    """Sample findmnt -n -r -o TARGET,FSTYPE output."""
    return """/ overlay
/proc proc
/dev tmpfs
/workspace virtiofs
/workspace/app virtiofs
/workspace/app/vendor virtiofs
/workspace/data ext4
/workspace/cache 9p
/workspace2 virtiofs
/home/dev/.cache tmpfs"""


@pytest.fixture
def mock_findmnt_stacked_output() -> str:
    """findmnt output after an overlay was layered over /workspace/app."""
    return """/ overlay
/workspace/app virtiofs
/workspace/app fuse.bindfs"""


class FakeEnumerator:
    """Enumerator double returning a fixed list of mounts."""

    def __init__(self, mounts: list[MountPoint], workspace_root: str = "/workspace") -> None:
        self.mounts = mounts
        self.workspace_root = workspace_root
        self.calls = 0

    def enumerate(self) -> list[MountPoint]:
        self.calls += 1
        return list(self.mounts)

    def fuse_mounts(self) -> list[MountPoint]:
        return [m for m in self.enumerate() if m.already_fuse]


@pytest.fixture
def fake_enumerator() -> Callable[..., FakeEnumerator]:
    """Factory for enumerator doubles."""

    def _make(mounts: list[MountPoint], workspace_root: str = "/workspace") -> FakeEnumerator:
        return FakeEnumerator(mounts, workspace_root)

    return _make


@pytest.fixture
def fuse_workspace(tmp_path: Path) -> Path:
    """A directory standing in for a FUSE-backed workspace mount."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo the root logger changes made by the CLI's logging setup."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in [h for h in root.handlers if h.get_name() == CONSOLE_HANDLER_NAME]:
        root.removeHandler(handler)

    audit = logging.getLogger(REAPER_LOG_NAME)
    for handler in list(audit.handlers):
        audit.removeHandler(handler)
        handler.close()
    audit.setLevel(logging.NOTSET)
    audit.propagate = True
