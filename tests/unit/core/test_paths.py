"""Unit tests for system path management."""

import os
from pathlib import Path
from unittest.mock import patch

from bindfix.core.paths import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_CRON_DIR,
    DEFAULT_FUSE_CONF_PATH,
    fuse_device_available,
    get_config_path,
    get_cron_dir,
    get_fuse_conf_path,
)


class TestGetConfigPath:
    """Tests for get_config_path function."""

    def test_default(self) -> None:
        """Returns /etc/bindfix/config.toml when BINDFIX_CONFIG is unset."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_config_path() == DEFAULT_CONFIG_PATH

    def test_override(self, tmp_path: Path) -> None:
        """Respects the BINDFIX_CONFIG environment variable."""
        with patch.dict(os.environ, {"BINDFIX_CONFIG": str(tmp_path / "c.toml")}):
            assert get_config_path() == tmp_path / "c.toml"

    def test_empty_override_ignored(self) -> None:
        """An empty variable falls back to the default."""
        with patch.dict(os.environ, {"BINDFIX_CONFIG": ""}):
            assert get_config_path() == DEFAULT_CONFIG_PATH


class TestSystemPaths:
    """Tests for cron and FUSE paths."""

    def test_cron_dir_default(self) -> None:
        """Returns /etc/cron.d by default."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_cron_dir() == DEFAULT_CRON_DIR

    def test_fuse_conf_override(self, tmp_path: Path) -> None:
        """Respects BINDFIX_FUSE_CONF."""
        with patch.dict(os.environ, {"BINDFIX_FUSE_CONF": str(tmp_path / "fuse.conf")}):
            assert get_fuse_conf_path() == tmp_path / "fuse.conf"

    def test_fuse_conf_default(self) -> None:
        """Returns /etc/fuse.conf by default."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_fuse_conf_path() == DEFAULT_FUSE_CONF_PATH

    def test_fuse_device_available(self) -> None:
        """Reports whether /dev/fuse exists."""
        with patch("bindfix.core.paths.FUSE_DEVICE") as mock_device:
            mock_device.exists.return_value = False
            assert fuse_device_available() is False
