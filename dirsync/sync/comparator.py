"""Tree comparison logic for sync operations."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .scanner import EntryKind, TreeSnapshot, is_empty_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileFingerprint:
    """Cheap proxy for file content: modification time and size."""

    mtime_ns: int
    """Last modification time in nanoseconds"""

    size: int
    """File size in bytes"""


def read_fingerprint(path: Path) -> Optional[FileFingerprint]:
    """Read the fingerprint of a regular file.

    Returns:
        FileFingerprint, or None if metadata cannot be read
    """
    try:
        st = os.lstat(path)
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return None
    return FileFingerprint(mtime_ns=st.st_mtime_ns, size=st.st_size)


def read_link_target(path: Path) -> Optional[str]:
    """Read the literal target of a symlink without resolving it.

    Returns:
        Link text, or None if the link cannot be read
    """
    try:
        return os.readlink(path)
    except OSError as e:
        logger.debug("Cannot read link %s: %s", path, e)
        return None


@dataclass
class ChangeSet:
    """Classified differences between a source and a destination tree.

    ``add``, ``remove``, ``modify`` and ``unchanged`` are disjoint.
    ``retyped`` is the subset of ``modify`` whose entry kind differs between
    the two trees. ``skipped`` holds paths beneath a directory that could not
    be listed on the other side; they are left out of every other set.
    """

    add: set[str] = field(default_factory=set)
    remove: set[str] = field(default_factory=set)
    modify: set[str] = field(default_factory=set)
    unchanged: set[str] = field(default_factory=set)
    retyped: set[str] = field(default_factory=set)
    skipped: set[str] = field(default_factory=set)

    initial_copy: bool = False
    """Destination was absent or empty; only affects verbosity"""

    def sorted_add(self) -> list[str]:
        return sorted(self.add)

    def sorted_remove(self) -> list[str]:
        return sorted(self.remove)

    def sorted_modify(self) -> list[str]:
        return sorted(self.modify)

    @property
    def is_empty(self) -> bool:
        """True if nothing needs to be added, removed, or modified."""
        return not (self.add or self.remove or self.modify)


class DiffEngine:
    """Compares source and destination snapshots.

    Regular files are compared by (mtime, size) only, symlinks by their
    literal target text. Directories present on both sides are never
    reported as modified unless the other side is not a directory.
    """

    def compare(self, source: TreeSnapshot, destination: TreeSnapshot) -> ChangeSet:
        """Classify every path of both snapshots.

        Args:
            source: Snapshot of the source tree
            destination: Snapshot of the destination tree

        Returns:
            ChangeSet with add/remove/modify/unchanged sets
        """
        source_paths = source.paths
        destination_paths = destination.paths

        added = source_paths - destination_paths
        removed = destination_paths - source_paths
        # Unknown contents must not look like deletions or additions
        skipped = {path for path in removed if source.is_hidden(path)}
        skipped.update(path for path in added if destination.is_hidden(path))
        if skipped:
            logger.debug(
                "Leaving %d path(s) under unreadable directories", len(skipped)
            )

        changes = ChangeSet(
            add=added - skipped,
            remove=removed - skipped,
            skipped=skipped,
            initial_copy=is_empty_tree(destination.root),
        )

        for relative_path in sorted(source_paths & destination_paths):
            source_kind = source.kind(relative_path)
            destination_kind = destination.kind(relative_path)

            if source_kind != destination_kind:
                logger.debug(
                    "Kind changed for %s: %s -> %s",
                    relative_path,
                    destination_kind,
                    source_kind,
                )
                changes.modify.add(relative_path)
                changes.retyped.add(relative_path)
            elif self._entries_differ(
                source_kind,
                source.root / relative_path,
                destination.root / relative_path,
            ):
                changes.modify.add(relative_path)
            else:
                changes.unchanged.add(relative_path)

        logger.debug(
            "Compared %d source and %d destination entries: "
            "%d add, %d remove, %d modify (initial copy: %s)",
            len(source),
            len(destination),
            len(changes.add),
            len(changes.remove),
            len(changes.modify),
            changes.initial_copy,
        )
        return changes

    def _entries_differ(
        self, kind: Optional[EntryKind], source_path: Path, destination_path: Path
    ) -> bool:
        """Compare two entries of the same kind."""
        if kind is EntryKind.FILE:
            source_print = read_fingerprint(source_path)
            destination_print = read_fingerprint(destination_path)
            if source_print is None or destination_print is None:
                return True
            return source_print != destination_print

        if kind is EntryKind.SYMLINK:
            source_target = read_link_target(source_path)
            destination_target = read_link_target(destination_path)
            if source_target is None or destination_target is None:
                return True
            return source_target != destination_target

        return False
