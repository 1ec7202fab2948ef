"""Directory scanning utilities for sync operations."""

import logging
import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import TreeScanError
from .filter import PathFilter

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kind of a filesystem entry, determined without following symlinks."""

    FILE = "file"
    """Regular file"""

    DIRECTORY = "dir"
    """Real directory (not a symlink to one)"""

    SYMLINK = "link"
    """Symbolic link, whatever it points to"""

    OTHER = "other"
    """Sockets, FIFOs, device nodes"""


def entry_kind(path: Path) -> Optional[EntryKind]:
    """Determine the kind of a filesystem entry.

    Args:
        path: Path to inspect

    Returns:
        EntryKind, or None if the entry cannot be stat'ed
    """
    try:
        mode = os.lstat(path).st_mode
    except OSError:
        return None

    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def is_empty_tree(root: Path) -> bool:
    """Check whether a root is absent or contains no entries at all.

    Exclude patterns are not applied here.
    """
    if not root.is_dir():
        return not os.path.lexists(root)
    try:
        with os.scandir(root) as entries:
            return next(entries, None) is None
    except OSError:
        return False


@dataclass
class TreeSnapshot:
    """Set of visible relative paths under a root, with their entry kinds."""

    root: Path
    """Root the snapshot was taken from"""

    entries: dict[str, EntryKind] = field(default_factory=dict)
    """Relative path (forward slashes) to entry kind"""

    unreadable: set[str] = field(default_factory=set)
    """Directories that exist but whose contents could not be listed"""

    @property
    def paths(self) -> set[str]:
        """All relative paths in the snapshot."""
        return set(self.entries)

    def kind(self, relative_path: str) -> Optional[EntryKind]:
        """Entry kind recorded for a relative path."""
        return self.entries.get(relative_path)

    def is_hidden(self, relative_path: str) -> bool:
        """Check if a path lies beneath a directory that could not be listed."""
        return any(
            relative_path.startswith(f"{directory}/") for directory in self.unreadable
        )

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.entries))


class TreeScanner:
    """Scans a directory tree and builds a TreeSnapshot.

    Symlinks are recorded as symlinks and never followed, so the contents of a
    symlinked directory are not listed. Every relative path is filtered on its
    own and excluded directories are still descended into, so `build` hides
    only the directory entry while `build*` hides the whole subtree.

    Directories that cannot be listed are recorded in
    ``TreeSnapshot.unreadable``.

    Examples:
        >>> scanner = TreeScanner(PathFilter(["*.o"]))
        >>> snapshot = scanner.scan(Path("/build/install"))
        >>> for relative_path in snapshot:
        ...     print(relative_path, snapshot.kind(relative_path).value)
    """

    def __init__(self, path_filter: Optional[PathFilter] = None):
        """Initialize tree scanner.

        Args:
            path_filter: Filter deciding which relative paths are visible
        """
        self.path_filter = path_filter if path_filter is not None else PathFilter()

    def scan(self, root: Path) -> TreeSnapshot:
        """Recursively scan a tree.

        Args:
            root: Root directory to scan

        Returns:
            TreeSnapshot of all visible entries; empty if root does not exist

        Raises:
            TreeScanError: If root exists but is not a directory or cannot be
                listed
        """
        snapshot = TreeSnapshot(root=root)

        if not root.exists():
            logger.debug("Root %s does not exist, empty snapshot", root)
            return snapshot

        if not root.is_dir():
            raise TreeScanError(str(root), "not a directory")

        try:
            children = self._list_directory(root)
        except OSError as e:
            raise TreeScanError(str(root), e.strerror or str(e)) from e

        self._scan_children(root, children, snapshot)
        logger.debug("Scanned %d entries under %s", len(snapshot), root)
        return snapshot

    def _list_directory(self, directory: Path) -> list[Path]:
        return sorted(directory.iterdir())

    def _scan_children(
        self, root: Path, children: list[Path], snapshot: TreeSnapshot
    ) -> None:
        for item in children:
            relative_path = item.relative_to(root).as_posix()
            kind = entry_kind(item)
            if kind is None:
                logger.debug("Entry vanished during scan: %s", item)
                continue

            # Each path is filtered on its own, excluded directories are still
            # descended into
            if not self.path_filter.is_excluded(relative_path):
                snapshot.entries[relative_path] = kind

            if kind is EntryKind.DIRECTORY:
                try:
                    grandchildren = self._list_directory(item)
                except OSError as e:
                    # Contents stay unknown, so nothing beneath is touched
                    logger.warning("Cannot read directory %s: %s", item, e)
                    snapshot.unreadable.add(relative_path)
                    continue
                self._scan_children(root, grandchildren, snapshot)
