"""Unit tests for the overlay and status commands."""

import json
import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from bindfix.cli.main import app
from bindfix.mounts.models import (
    Classification,
    MountPlan,
    MountPoint,
    OverlayDecision,
    OverlayResult,
    Verdict,
)
from bindfix.mounts.pipeline import OverlayReport
from bindfix.utils.shell import CommandResult
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Iterator[None]:
    """Keep the host's config file and environment out of the tests."""
    env = {"BINDFIX_CONFIG": str(tmp_path / "missing.toml"), "USERNAME": "dev"}
    with patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture
def broken_plan() -> MountPlan:
    """Plan to overlay a virtiofs mount."""
    return MountPlan(
        mount=MountPoint("/workspace/app", "virtiofs"),
        decision=OverlayDecision.APPLY,
        classification=Classification(verdict=Verdict.KNOWN_BROKEN),
    )


class TestOverlayCommand:
    """Tests for the overlay command."""

    @patch("bindfix.cli.commands.overlay.run_overlay_pipeline")
    def test_applied(self, mock_pipeline: MagicMock, broken_plan: MountPlan) -> None:
        """Applied overlays exit 0."""
        mock_pipeline.return_value = OverlayReport(
            plans=[broken_plan],
            results=[OverlayResult(path="/workspace/app", success=True)],
        )

        result = runner.invoke(app, ["overlay"])

        assert result.exit_code == 0
        assert "applied" in result.output

    @patch("bindfix.cli.commands.overlay.run_overlay_pipeline")
    def test_failed_exits_one(self, mock_pipeline: MagicMock, broken_plan: MountPlan) -> None:
        """Failed overlays exit 1."""
        mock_pipeline.return_value = OverlayReport(
            plans=[broken_plan],
            results=[OverlayResult(path="/workspace/app", success=False, error="no fuse")],
        )

        result = runner.invoke(app, ["overlay"])

        assert result.exit_code == 1

    @patch("bindfix.cli.commands.overlay.run_overlay_pipeline")
    def test_dry_run_and_workspace(self, mock_pipeline: MagicMock) -> None:
        """--dry-run and --workspace reach the pipeline."""
        mock_pipeline.return_value = OverlayReport()

        result = runner.invoke(app, ["overlay", "--dry-run", "--workspace", "/srv/ws/"])

        assert result.exit_code == 0
        config = mock_pipeline.call_args.args[0]
        assert config.workspace_root == Path("/srv/ws")
        assert mock_pipeline.call_args.kwargs["dry_run"] is True
        assert "No mounts found" in result.output


class TestStatusCommand:
    """Tests for the status command."""

    @patch("bindfix.mounts.enumerator.run_command")
    def test_json_without_probe(self, mock_findmnt: MagicMock) -> None:
        """Unknown types are shown unprobed, as needing an overlay."""
        mock_findmnt.return_value = CommandResult(
            stdout="/workspace virtiofs\n/workspace/cache 9p\n", stderr="", returncode=0
        )

        result = runner.invoke(app, ["status", "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [d["decision"] for d in data] == ["apply", "apply"]
        assert data[1]["verdict"] == "probe-required"
        assert data[1]["probe_outcome"] is None

    @patch("bindfix.mounts.enumerator.run_command", side_effect=FileNotFoundError("findmnt"))
    def test_mount_table_unavailable(self, _mock_findmnt: MagicMock) -> None:
        """A missing findmnt is reported as a warning."""
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "findmnt not found" in result.output
