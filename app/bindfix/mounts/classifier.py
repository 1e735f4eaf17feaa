"""Filesystem type classification.

Maps the filesystem type reported by the mount table to a verdict. The
tables are explicit: an unrecognized type is never assumed to be good, it
is sent to the permission prober instead.
"""

from enum import Enum

from bindfix.mounts.models import Verdict


class FilesystemType(str, Enum):
    """Filesystem types with a known permission behavior.

    Attributes:
        VIRTIOFS: Docker Desktop / Apple virtualization file sharing.
        GRPCFUSE: Older Docker Desktop for Mac file sharing.
        OSXFS: Legacy Docker for Mac file sharing.
        FAKEOWNER: Docker Desktop ownership-faking layer over virtiofs.
    """

    VIRTIOFS = "virtiofs"
    GRPCFUSE = "grpcfuse"
    OSXFS = "osxfs"
    FAKEOWNER = "fakeowner"
    EXT2 = "ext2"
    EXT3 = "ext3"
    EXT4 = "ext4"
    XFS = "xfs"
    BTRFS = "btrfs"
    ZFS = "zfs"
    F2FS = "f2fs"
    REISERFS = "reiserfs"
    JFS = "jfs"
    TMPFS = "tmpfs"
    OVERLAY = "overlay"


FILESYSTEM_VERDICTS: dict[FilesystemType, Verdict] = {
    # Desktop runtime file sharing: chmod succeeds but does not persist
    FilesystemType.VIRTIOFS: Verdict.KNOWN_BROKEN,
    FilesystemType.GRPCFUSE: Verdict.KNOWN_BROKEN,
    FilesystemType.OSXFS: Verdict.KNOWN_BROKEN,
    FilesystemType.FAKEOWNER: Verdict.KNOWN_BROKEN,
    # Native Linux filesystems
    FilesystemType.EXT2: Verdict.KNOWN_GOOD,
    FilesystemType.EXT3: Verdict.KNOWN_GOOD,
    FilesystemType.EXT4: Verdict.KNOWN_GOOD,
    FilesystemType.XFS: Verdict.KNOWN_GOOD,
    FilesystemType.BTRFS: Verdict.KNOWN_GOOD,
    FilesystemType.ZFS: Verdict.KNOWN_GOOD,
    FilesystemType.F2FS: Verdict.KNOWN_GOOD,
    FilesystemType.REISERFS: Verdict.KNOWN_GOOD,
    FilesystemType.JFS: Verdict.KNOWN_GOOD,
    FilesystemType.TMPFS: Verdict.KNOWN_GOOD,
    FilesystemType.OVERLAY: Verdict.KNOWN_GOOD,
}


def classify(fstype: str) -> Verdict:
    """Classify a filesystem type by its permission behavior.

    Args:
        fstype: Filesystem type as reported by the mount table.

    Returns:
        KNOWN_BROKEN or KNOWN_GOOD for listed types, PROBE_REQUIRED otherwise.
    """
    try:
        known = FilesystemType(fstype.strip().lower())
    except ValueError:
        return Verdict.PROBE_REQUIRED
    return FILESYSTEM_VERDICTS.get(known, Verdict.PROBE_REQUIRED)
