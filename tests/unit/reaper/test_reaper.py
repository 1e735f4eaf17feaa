"""Unit tests for the FUSE artifact reaper.

Artifacts are real files under a temporary directory standing in for a
FUSE mount; the mount table and holder queries are faked.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import pytest
from bindfix.core.config import BindfixConfig
from bindfix.core.logs import REAPER_LOG_NAME
from bindfix.mounts.enumerator import MountTableUnavailableError
from bindfix.mounts.models import MountPoint
from bindfix.reaper.models import ReapAction
from bindfix.reaper.reaper import FuseReaper, find_artifacts


class FakeHolders:
    """Holder query double with a fixed PID set per path."""

    def __init__(self, held: dict[str, frozenset[int] | None] | None = None) -> None:
        self.held = held or {}
        self.queries: list[str] = []

    def holders(self, path: str) -> frozenset[int] | None:
        self.queries.append(path)
        return self.held.get(path, frozenset())


class UnavailableEnumerator:
    """Enumerator double whose mount table cannot be read."""

    def fuse_mounts(self) -> list[MountPoint]:
        raise MountTableUnavailableError("findmnt not found; cannot read the mount table")


def _audit_lines(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == REAPER_LOG_NAME]


@pytest.fixture
def fuse_mount(fuse_workspace: Path) -> MountPoint:
    """FUSE mount backed by the temporary workspace."""
    return MountPoint(path=str(fuse_workspace), fstype="fuse.bindfs", already_fuse=True)


@pytest.fixture
def make_reaper(
    make_config: Callable[..., BindfixConfig],
    fake_enumerator: Callable[..., object],
    fuse_mount: MountPoint,
) -> Callable[..., FuseReaper]:
    """Factory for reapers scanning the temporary FUSE mount."""

    def _make(holders: FakeHolders, **config: object) -> FuseReaper:
        return FuseReaper(
            make_config(**config),
            enumerator=fake_enumerator([fuse_mount]),  # type: ignore[arg-type]
            holder_query=holders,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture(autouse=True)
def capture_audit(caplog: pytest.LogCaptureFixture) -> None:
    """Capture reaper decisions at INFO."""
    caplog.set_level(logging.INFO, logger=REAPER_LOG_NAME)


class TestFindArtifacts:
    """Tests for find_artifacts function."""

    def test_finds_up_to_depth_three(self, fuse_workspace: Path) -> None:
        """Artifacts are found up to three levels below the mount."""
        deep = fuse_workspace / "a" / "b"
        deep.mkdir(parents=True)
        (fuse_workspace / ".fuse_hidden0001").touch()
        (deep / ".fuse_hidden0002").touch()
        (deep / "c").mkdir()
        (deep / "c" / ".fuse_hidden0003").touch()

        found = list(find_artifacts(str(fuse_workspace)))

        assert found == [
            str(fuse_workspace / ".fuse_hidden0001"),
            str(deep / ".fuse_hidden0002"),
        ]

    def test_ignores_other_files(self, fuse_workspace: Path) -> None:
        """Only regular files with the artifact prefix are returned."""
        (fuse_workspace / "fuse_hidden0001").touch()
        (fuse_workspace / "notes.txt").touch()
        (fuse_workspace / ".fuse_hidden_dir").mkdir()

        assert list(find_artifacts(str(fuse_workspace))) == []

    def test_symlinks_not_followed(self, fuse_workspace: Path, tmp_path: Path) -> None:
        """Symlinks are neither returned nor descended into."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / ".fuse_hidden0009").touch()
        (fuse_workspace / "link").symlink_to(outside)
        (fuse_workspace / ".fuse_hidden0010").symlink_to(outside / ".fuse_hidden0009")

        assert list(find_artifacts(str(fuse_workspace))) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A vanished mount point yields nothing."""
        assert list(find_artifacts(str(tmp_path / "gone"))) == []


class TestReaperPass:
    """Tests for FuseReaper.run."""

    def test_unheld_removed_held_retained(
        self,
        make_reaper: Callable[..., FuseReaper],
        fuse_workspace: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """An unheld artifact is removed; a held one stays on disk."""
        free = fuse_workspace / ".fuse_hidden0001"
        held = fuse_workspace / ".fuse_hidden0002"
        free.touch()
        held.touch()
        reaper = make_reaper(FakeHolders({str(held): frozenset({4821})}))

        report = reaper.run()

        assert not free.exists()
        assert held.exists()
        assert [r.artifact.path for r in report.deleted] == [str(free)]
        assert [r.artifact.path for r in report.retained] == [str(held)]
        assert report.retained[0].artifact.holder_pids == frozenset({4821})
        lines = _audit_lines(caplog)
        assert len(lines) == 2
        assert sum(str(free) in line for line in lines) == 1
        assert sum(str(held) in line and "4821" in line for line in lines) == 1

    def test_held_then_released(
        self,
        make_reaper: Callable[..., FuseReaper],
        fuse_workspace: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A held artifact is never deleted in that pass, then deleted once after release."""
        artifact = fuse_workspace / ".fuse_hidden0002"
        artifact.touch()
        holders = FakeHolders({str(artifact): frozenset({4821})})
        reaper = make_reaper(holders)

        first = reaper.run()
        assert first.deleted == []
        assert artifact.exists()

        holders.held[str(artifact)] = frozenset()
        second = reaper.run()
        third = reaper.run()

        assert [r.artifact.path for r in second.deleted] == [str(artifact)]
        assert third.records == []
        removed = [line for line in _audit_lines(caplog) if line.startswith("Removed")]
        assert len(removed) == 1

    def test_holders_queried_every_pass(
        self, make_reaper: Callable[..., FuseReaper], fuse_workspace: Path
    ) -> None:
        """Holder sets are looked up fresh on every pass."""
        artifact = fuse_workspace / ".fuse_hidden0003"
        artifact.touch()
        holders = FakeHolders({str(artifact): frozenset({1})})
        reaper = make_reaper(holders)

        reaper.run()
        reaper.run()

        assert holders.queries == [str(artifact), str(artifact)]

    def test_unknown_holders_retained(
        self, make_reaper: Callable[..., FuseReaper], fuse_workspace: Path
    ) -> None:
        """An artifact whose holders cannot be determined is kept."""
        artifact = fuse_workspace / ".fuse_hidden0004"
        artifact.touch()

        report = make_reaper(FakeHolders({str(artifact): None})).run()

        assert artifact.exists()
        assert report.retained[0].error == "holders could not be determined"

    def test_unlink_failure_recorded(
        self,
        make_reaper: Callable[..., FuseReaper],
        fuse_workspace: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A failed removal is recorded, not raised."""
        (fuse_workspace / ".fuse_hidden0005").touch()

        def _refuse(path: str) -> None:
            raise PermissionError(13, "Permission denied", path)

        monkeypatch.setattr(os, "unlink", _refuse)

        report = make_reaper(FakeHolders()).run()

        assert report.records[0].action == ReapAction.FAILED
        assert "Permission denied" in (report.records[0].error or "")

    def test_disabled_does_nothing(
        self,
        make_reaper: Callable[..., FuseReaper],
        fuse_workspace: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """With the disable flag set nothing is scanned, removed or logged."""
        artifact = fuse_workspace / ".fuse_hidden0006"
        artifact.touch()
        holders = FakeHolders()

        report = make_reaper(holders, reaper_disabled=True).run()

        assert report.skipped is True
        assert artifact.exists()
        assert holders.queries == []
        assert _audit_lines(caplog) == []

    def test_mount_table_unavailable(
        self, make_config: Callable[..., BindfixConfig], caplog: pytest.LogCaptureFixture
    ) -> None:
        """A missing mount table yields an empty report and a warning."""
        reaper = FuseReaper(
            make_config(),
            enumerator=UnavailableEnumerator(),  # type: ignore[arg-type]
            holder_query=FakeHolders(),  # type: ignore[arg-type]
        )

        report = reaper.run()

        assert report.records == []
        assert report.skipped is False
        assert "findmnt not found" in caplog.text

    def test_nested_mounts_scanned_once(
        self,
        make_config: Callable[..., BindfixConfig],
        fake_enumerator: Callable[..., object],
        fuse_workspace: Path,
    ) -> None:
        """An artifact under nested FUSE mounts is handled once."""
        inner = fuse_workspace / "inner"
        inner.mkdir()
        (inner / ".fuse_hidden0007").touch()
        mounts = [
            MountPoint(str(fuse_workspace), "fuse.bindfs", already_fuse=True),
            MountPoint(str(inner), "fuse.bindfs", already_fuse=True),
        ]
        holders = FakeHolders({str(inner / ".fuse_hidden0007"): frozenset({7})})
        reaper = FuseReaper(
            make_config(),
            enumerator=fake_enumerator(mounts),  # type: ignore[arg-type]
            holder_query=holders,  # type: ignore[arg-type]
        )

        report = reaper.run()

        assert len(report.records) == 1
        assert report.mounts == [str(fuse_workspace), str(inner)]
