"""Skip list for paths excluded from the overlay stage.

Entries and candidates are compared as canonical absolute paths, so
trailing slashes, ``.``/``..`` segments and relative entries cannot be
used to slip a path past the list.
"""

import os
from collections.abc import Iterable

from bindfix.mounts.enumerator import is_within


def canonicalize(path: str, base: str = "/") -> str:
    """Canonicalize a path without touching the filesystem.

    Symlinks are not resolved: a mount target is reported by the mount
    table as-is, and resolving could follow links on a host mount.

    Args:
        path: Absolute or relative path.
        base: Directory relative paths are resolved against.

    Returns:
        Normalized absolute path.
    """
    if not os.path.isabs(path):
        path = os.path.join(base, path)
    normalized = os.path.normpath(path)
    # POSIX keeps a leading double slash; collapse it
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


class SkipList:
    """Set of canonical paths excluded together with their descendants.

    Args:
        entries: Paths to exclude.
        base: Directory relative entries are resolved against.
    """

    def __init__(self, entries: Iterable[str] = (), base: str = "/") -> None:
        self._entries: tuple[str, ...] = tuple(
            dict.fromkeys(canonicalize(e.strip(), base) for e in entries if e.strip())
        )

    @classmethod
    def parse(cls, value: str, base: str = "/") -> "SkipList":
        """Build a skip list from a comma-separated string.

        Args:
            value: Comma-separated paths, whitespace around entries ignored.
            base: Directory relative entries are resolved against.

        Returns:
            SkipList of the non-empty entries.
        """
        return cls(value.split(","), base=base)

    @property
    def entries(self) -> tuple[str, ...]:
        """Canonical entries in the order they were given."""
        return self._entries

    def matches(self, path: str) -> bool:
        """Check if a path is an entry or lies below one.

        Args:
            path: Path to check.

        Returns:
            True if the path is excluded.
        """
        candidate = canonicalize(path)
        return any(is_within(candidate, entry) for entry in self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.matches(path)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
