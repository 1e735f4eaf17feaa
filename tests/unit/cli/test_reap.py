"""Unit tests for the reap, schedule and fuse-conf commands."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from bindfix.cli.main import app
from bindfix.reaper.models import FuseArtifact, ReapAction, ReapRecord, ReapReport
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def cron_dir(tmp_path: Path) -> Path:
    """Temporary cron.d directory."""
    path = tmp_path / "cron.d"
    path.mkdir()
    return path


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, cron_dir: Path) -> Iterator[dict[str, str]]:
    """Point every system path at temporary locations."""
    env = {
        "BINDFIX_CONFIG": str(tmp_path / "missing.toml"),
        "BINDFIX_CRON_DIR": str(cron_dir),
        "BINDFIX_FUSE_CONF": str(tmp_path / "fuse.conf"),
        "USERNAME": "dev",
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
    }
    with patch.dict(os.environ, env, clear=True):
        yield env


def _record(name: str, action: ReapAction, error: str | None = None) -> ReapRecord:
    artifact = FuseArtifact(path=f"/workspace/{name}", mount_point="/workspace")
    return ReapRecord(artifact=artifact, action=action, error=error)


class TestReapCommand:
    """Tests for the reap command."""

    @patch("bindfix.cli.commands.reap.FuseReaper")
    def test_lists_records(self, mock_reaper: MagicMock) -> None:
        """Each artifact is shown with its action."""
        mock_reaper.return_value.run.return_value = ReapReport(
            records=[_record(".fuse_hidden0001", ReapAction.DELETED)]
        )

        result = runner.invoke(app, ["reap"])

        assert result.exit_code == 0
        assert "deleted" in result.output

    @patch("bindfix.cli.commands.reap.FuseReaper")
    def test_failed_removal_exits_one(self, mock_reaper: MagicMock) -> None:
        """A failed removal exits 1."""
        mock_reaper.return_value.run.return_value = ReapReport(
            records=[_record(".fuse_hidden0001", ReapAction.FAILED, "Permission denied")]
        )

        result = runner.invoke(app, ["reap"])

        assert result.exit_code == 1

    def test_disabled(self, isolated_env: dict[str, str]) -> None:
        """With FUSE_CLEANUP_DISABLE=true nothing runs."""
        with patch.dict(os.environ, {"FUSE_CLEANUP_DISABLE": "true"}):
            result = runner.invoke(app, ["reap"])

        assert result.exit_code == 0
        assert "disabled" in result.output

    @patch("bindfix.cli.commands.reap.FuseReaper")
    def test_quiet_prints_nothing(self, mock_reaper: MagicMock) -> None:
        """--quiet, as used by the scheduled job, prints no summary."""
        mock_reaper.return_value.run.return_value = ReapReport()

        result = runner.invoke(app, ["--quiet", "reap"])

        assert result.exit_code == 0
        assert result.output == ""


class TestScheduleCommand:
    """Tests for the schedule command."""

    def test_register_and_remove(self, cron_dir: Path) -> None:
        """The job can be registered and removed again."""
        result = runner.invoke(app, ["schedule"])

        assert result.exit_code == 0
        assert (cron_dir / "fuse-cleanup").exists()

        result = runner.invoke(app, ["schedule", "--remove"])

        assert result.exit_code == 0
        assert not (cron_dir / "fuse-cleanup").exists()

    def test_remove_when_absent(self) -> None:
        """Removing a missing job is not an error."""
        result = runner.invoke(app, ["schedule", "--remove"])

        assert result.exit_code == 0
        assert "No FUSE cleanup job registered" in result.output


class TestFuseConfCommand:
    """Tests for the fuse-conf command."""

    def test_enables(self, isolated_env: dict[str, str]) -> None:
        """user_allow_other is enabled once."""
        first = runner.invoke(app, ["fuse-conf"])
        second = runner.invoke(app, ["fuse-conf"])

        assert first.exit_code == 0
        assert "enabled" in first.output
        assert "already enabled" in second.output
        assert Path(isolated_env["BINDFIX_FUSE_CONF"]).read_text() == "user_allow_other\n"
