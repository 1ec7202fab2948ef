"""Rewriting of absolute symlinks that point into the source tree."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..output import OutputFormatter
from .comparator import read_link_target
from .operations import SyncOperations

logger = logging.getLogger(__name__)


@dataclass
class RelocationResult:
    """Outcome of a relocation pass over a destination tree."""

    rewritten: list[tuple[Path, str]] = field(default_factory=list)
    """Links replaced, with their new relative target"""

    outside: list[Path] = field(default_factory=list)
    """Absolute links whose target lies outside the source tree"""

    relative: list[Path] = field(default_factory=list)
    """Links that were already relative and left verbatim"""

    unreadable: list[Path] = field(default_factory=list)
    """Links whose target could not be read or canonicalized"""

    failed: list[tuple[Path, str]] = field(default_factory=list)
    """Links that should have been rewritten but could not be replaced"""


def is_path_prefix(prefix: Path, path: Path) -> bool:
    """Component-wise check that ``prefix`` is equal to or an ancestor of ``path``."""
    prefix_parts = prefix.parts
    return path.parts[: len(prefix_parts)] == prefix_parts


class SymlinkRelocator:
    """Converts absolute in-source symlinks in a destination tree to relative ones.

    After a sync, a link copied verbatim from ``/a/src/lib/libfoo.so ->
    /a/src/lib/libfoo.so.1`` still points into the source tree. The relocator
    rewrites it to ``libfoo.so.1`` so the destination is self-contained.

    Canonicalization depends on the state of the filesystem when
    ``relocate`` runs; results are not cached between calls.
    """

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        operations: Optional[SyncOperations] = None,
    ):
        """Initialize symlink relocator.

        Args:
            output: Output formatter for progress lines and errors
            operations: Filesystem operations used to replace links
        """
        self.output = output or OutputFormatter()
        self.operations = operations or SyncOperations()

    def relocate(self, source_root: Path, destination_root: Path) -> RelocationResult:
        """Walk the destination tree and rewrite absolute in-source symlinks.

        Args:
            source_root: Source tree the links may point into
            destination_root: Destination tree to walk

        Returns:
            RelocationResult describing what happened to each symlink
        """
        result = RelocationResult()
        if not destination_root.is_dir():
            logger.debug("Nothing to fix, %s is not a directory", destination_root)
            return result

        canonical_source = source_root.resolve()
        canonical_destination = destination_root.resolve()

        def on_walk_error(error: OSError) -> None:
            logger.warning("Cannot read directory %s: %s", error.filename, error)

        for dirpath, dirnames, filenames in os.walk(
            destination_root, onerror=on_walk_error
        ):
            directory = Path(dirpath)
            # Symlinks to directories are listed in dirnames but not followed
            for name in sorted(dirnames + filenames):
                link = directory / name
                if not link.is_symlink():
                    continue
                self._relocate_link(
                    link,
                    destination_root,
                    canonical_source,
                    canonical_destination,
                    result,
                )

        logger.debug(
            "Relocation: %d rewritten, %d outside, %d relative, %d unreadable",
            len(result.rewritten),
            len(result.outside),
            len(result.relative),
            len(result.unreadable),
        )
        return result

    def _relocate_link(
        self,
        link: Path,
        destination_root: Path,
        canonical_source: Path,
        canonical_destination: Path,
        result: RelocationResult,
    ) -> None:
        target = read_link_target(link)
        if target is None:
            result.unreadable.append(link)
            return

        if not os.path.isabs(target):
            result.relative.append(link)
            return

        try:
            canonical_target = Path(target).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            logger.debug("Cannot canonicalize %s -> %s: %s", link, target, e)
            result.unreadable.append(link)
            return

        if not is_path_prefix(canonical_source, canonical_target):
            result.outside.append(link)
            return

        fragment = canonical_target.parts[len(canonical_source.parts) :]
        new_absolute = canonical_destination.joinpath(*fragment)
        link_parent = canonical_destination / link.parent.relative_to(destination_root)
        new_target = os.path.relpath(new_absolute, link_parent)

        try:
            self.operations.create_symlink(new_target, link)
        except OSError as e:
            self.output.error(f"Cannot fix link {link}: {e}")
            result.failed.append((link, str(e)))
            return

        self.output.print(f"[fixlink] {link} -> {new_target}")
        result.rewritten.append((link, new_target))
