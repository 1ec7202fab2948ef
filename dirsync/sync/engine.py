"""Core sync engine for executing sync operations."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..output import OutputFormatter
from .comparator import ChangeSet, DiffEngine, read_link_target
from .operations import SyncOperations
from .pair import SyncPair
from .relocator import SymlinkRelocator
from .scanner import EntryKind, TreeScanner, TreeSnapshot, entry_kind

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Summary of one sync pass."""

    source: Path
    destination: Path

    added: list[str] = field(default_factory=list)
    """Relative paths added to the destination, in application order"""

    removed: list[str] = field(default_factory=list)
    """Relative paths removed from the destination"""

    changed: list[str] = field(default_factory=list)
    """Relative paths updated in the destination"""

    manifest: list[Path] = field(default_factory=list)
    """Absolute destination paths added or changed (only with a listfile)"""

    relocated: list[tuple[Path, str]] = field(default_factory=list)
    """Symlinks rewritten to relative targets"""

    errors: list[tuple[str, str]] = field(default_factory=list)
    """(relative path, message) for entries that could not be synced"""

    initial_copy: bool = False
    dry_run: bool = False
    manifest_written: bool = False

    @property
    def total_actions(self) -> int:
        return len(self.added) + len(self.removed) + len(self.changed)

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a JSON-serializable dictionary."""
        return {
            "source": str(self.source),
            "destination": str(self.destination),
            "added": list(self.added),
            "removed": list(self.removed),
            "changed": list(self.changed),
            "manifest": [str(path) for path in self.manifest],
            "relocated": [
                {"link": str(link), "target": target}
                for link, target in self.relocated
            ],
            "errors": [
                {"path": path, "message": message} for path, message in self.errors
            ],
            "initial_copy": self.initial_copy,
            "dry_run": self.dry_run,
        }


class SyncEngine:
    """Core sync engine that mirrors a source tree into a destination tree."""

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        operations: Optional[SyncOperations] = None,
    ):
        """Initialize sync engine.

        Args:
            output: Output formatter for displaying progress/status
            operations: Filesystem operations used to apply changes
        """
        self.output = output or OutputFormatter()
        self.operations = operations or SyncOperations()
        self.comparator = DiffEngine()

    def sync_pair(self, pair: SyncPair, dry_run: bool = False) -> SyncResult:
        """Sync a single sync pair.

        Args:
            pair: Sync pair to synchronize
            dry_run: If True, only show what would be done without changing
                anything

        Returns:
            SyncResult describing the pass

        Raises:
            TreeScanError: If the source or destination root exists but
                cannot be traversed

        Examples:
            >>> engine = SyncEngine()
            >>> pair = SyncPair(Path("install"), Path("build/install"))
            >>> result = engine.sync_pair(pair, dry_run=True)
            >>> print(f"Would add {len(result.added)} entries")
        """
        self.output.info(f"Sync: {pair.source} -> {pair.destination}")
        if dry_run:
            self.output.info("Dry run: No changes will be made")

        # Step 1: Scan both trees
        source_snapshot, destination_snapshot = self._scan_trees(pair)

        # Step 2: Classify every path
        changes = self.comparator.compare(source_snapshot, destination_snapshot)
        if changes.skipped:
            self.output.warning(
                f"{len(changes.skipped)} entry(ies) below unreadable directories "
                "left untouched"
            )

        result = SyncResult(
            source=pair.source,
            destination=pair.destination,
            initial_copy=changes.initial_copy,
            dry_run=dry_run,
        )

        if dry_run:
            self._display_sync_plan(pair, changes, source_snapshot, result)
            self._display_summary(result)
            return result

        # Step 3: Apply changes
        apply_start = time.time()
        self._apply_changes(pair, changes, source_snapshot, result)
        logger.debug("Applying changes took %.2fs", time.time() - apply_start)

        # Step 4: Write manifest
        if pair.listfile is not None:
            result.manifest_written = self._write_manifest(
                pair.listfile, result.manifest
            )

        # Step 5: Fix absolute symlinks into the source tree
        if pair.fix_symlinks:
            relocator = SymlinkRelocator(self.output, self.operations)
            relocation = relocator.relocate(pair.source, pair.destination)
            result.relocated = relocation.rewritten
            result.errors.extend(
                (str(link), message) for link, message in relocation.failed
            )

        self._display_summary(result)
        return result

    def _scan_trees(self, pair: SyncPair) -> tuple[TreeSnapshot, TreeSnapshot]:
        """Scan the source and destination trees.

        Args:
            pair: Sync pair configuration

        Returns:
            Tuple of (source snapshot, destination snapshot)
        """
        scanner = TreeScanner(pair.path_filter())

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.output.console,
            transient=True,
            disable=self.output.quiet or self.output.json_output,
        ) as progress:
            scan_start = time.time()
            task = progress.add_task("Scanning source directory...", total=None)
            source_snapshot = scanner.scan(pair.source)
            progress.update(
                task, description=f"Found {len(source_snapshot)} source entries"
            )

            task = progress.add_task("Scanning destination directory...", total=None)
            destination_snapshot = scanner.scan(pair.destination)
            progress.update(
                task,
                description=f"Found {len(destination_snapshot)} destination entries",
            )
            logger.debug(
                "Scanning took %.2fs (%d source, %d destination entries)",
                time.time() - scan_start,
                len(source_snapshot),
                len(destination_snapshot),
            )

        return source_snapshot, destination_snapshot

    def _apply_changes(
        self,
        pair: SyncPair,
        changes: ChangeSet,
        source_snapshot: TreeSnapshot,
        result: SyncResult,
    ) -> None:
        """Apply a change set: removals, then additions, then modifications.

        Args:
            pair: Sync pair configuration
            changes: Classified differences
            source_snapshot: Snapshot of the source tree
            result: Result to record actions in (modified in place)
        """
        self.operations.make_directory(pair.destination)
        canonical_destination = pair.destination.resolve()

        for relative_path in changes.sorted_remove():
            self._remove_entry(pair, relative_path, result)

        # Entries changing kind are cleared now and recreated by Add/Modify
        for relative_path in sorted(changes.retyped):
            try:
                self.operations.remove_entry(pair.destination / relative_path)
            except OSError as e:
                self._report_error(result, relative_path, e)

        for relative_path in changes.sorted_add():
            try:
                applied = self._add_entry(pair, relative_path, changes.initial_copy)
            except OSError as e:
                self._report_error(result, relative_path, e)
                continue
            if applied:
                result.added.append(relative_path)
                self._record(pair, canonical_destination, relative_path, result)

        for relative_path in changes.sorted_modify():
            try:
                applied = self._modify_entry(pair, relative_path)
            except OSError as e:
                self._report_error(result, relative_path, e)
                continue
            if applied:
                result.changed.append(relative_path)
                self._record(pair, canonical_destination, relative_path, result)

        # Applied after all contents so read-only directories can be filled.
        # Unchanged directories are refreshed too.
        directories = [
            relative_path
            for relative_path in source_snapshot
            if source_snapshot.kind(relative_path) is EntryKind.DIRECTORY
        ]
        for relative_path in reversed(directories):
            destination_path = pair.destination / relative_path
            if destination_path.is_dir() and not destination_path.is_symlink():
                self.operations.copy_permissions(
                    pair.source / relative_path, destination_path
                )

    def _remove_entry(
        self, pair: SyncPair, relative_path: str, result: SyncResult
    ) -> None:
        destination_path = pair.destination / relative_path
        try:
            self.operations.remove_entry(destination_path)
        except OSError as e:
            self._report_error(result, relative_path, e)
            return
        self.output.print(f"[rm] {destination_path}")
        result.removed.append(relative_path)

    def _add_entry(
        self, pair: SyncPair, relative_path: str, initial_copy: bool
    ) -> bool:
        """Create a destination entry that only exists in the source.

        Returns:
            True if the entry was created
        """
        source_path = pair.source / relative_path
        destination_path = pair.destination / relative_path
        kind = entry_kind(source_path)

        if kind is EntryKind.DIRECTORY:
            self.operations.make_directory(destination_path)
            line = f"[add] dir {destination_path}"
        elif kind is EntryKind.SYMLINK:
            target = read_link_target(source_path)
            if target is None:
                self.output.warning(f"Cannot read link {source_path}, skipping")
                return False
            self.operations.create_symlink(target, destination_path)
            line = f"[add] link {destination_path} -> {target}"
        elif kind is EntryKind.FILE:
            self._copy_file(source_path, destination_path)
            line = f"[add] file {destination_path}"
        else:
            self._warn_unsupported(source_path, kind)
            return False

        if not initial_copy or pair.verbose:
            self.output.print(line)
        return True

    def _modify_entry(self, pair: SyncPair, relative_path: str) -> bool:
        """Bring an existing destination entry up to date.

        Returns:
            True if the entry was updated
        """
        source_path = pair.source / relative_path
        destination_path = pair.destination / relative_path
        kind = entry_kind(source_path)

        if kind is EntryKind.FILE:
            self._copy_file(source_path, destination_path)
            line = f"[chg] file {destination_path}"
        elif kind is EntryKind.SYMLINK:
            target = read_link_target(source_path)
            if target is None:
                self.output.warning(f"Cannot read link {source_path}, skipping")
                return False
            self.operations.create_symlink(target, destination_path)
            line = f"[chg] link {destination_path} -> {target}"
        elif kind is EntryKind.DIRECTORY:
            self.operations.make_directory(destination_path)
            line = f"[chg] dir {destination_path}"
        else:
            self._warn_unsupported(source_path, kind)
            return False

        self.output.print(line)
        return True

    def _copy_file(self, source_path: Path, destination_path: Path) -> None:
        self.operations.copy_file(source_path, destination_path)
        self.operations.copy_permissions(source_path, destination_path)
        self.operations.copy_mtime(source_path, destination_path)

    def _warn_unsupported(self, source_path: Path, kind: Optional[EntryKind]) -> None:
        if kind is None:
            self.output.warning(f"{source_path} disappeared, skipping")
        else:
            self.output.warning(f"Unsupported file type at {source_path}, skipping")

    def _record(
        self,
        pair: SyncPair,
        canonical_destination: Path,
        relative_path: str,
        result: SyncResult,
    ) -> None:
        if pair.listfile is not None:
            result.manifest.append(canonical_destination / relative_path)

    def _report_error(
        self, result: SyncResult, relative_path: str, error: OSError
    ) -> None:
        logger.debug("Failed to sync %s", relative_path, exc_info=error)
        self.output.error(f"Error syncing {relative_path}: {error}")
        result.errors.append((relative_path, str(error)))

    def _write_manifest(self, listfile: Path, paths: list[Path]) -> bool:
        """Write the manifest, one absolute path per line.

        Returns:
            True if the file was written
        """
        try:
            with open(
                listfile, "w", encoding="utf-8", errors="surrogateescape"
            ) as f:
                for path in paths:
                    f.write(f"{path}\n")
        except OSError as e:
            self.output.error(f"Couldn't open list file: {listfile} ({e})")
            return False

        logger.debug("Wrote %d path(s) to %s", len(paths), listfile)
        return True

    def _display_sync_plan(
        self,
        pair: SyncPair,
        changes: ChangeSet,
        source_snapshot: TreeSnapshot,
        result: SyncResult,
    ) -> None:
        """Display the actions a real pass would take.

        Args:
            pair: Sync pair configuration
            changes: Classified differences
            source_snapshot: Snapshot of the source tree
            result: Result filled with the planned actions (modified in place)
        """
        for relative_path in changes.sorted_remove():
            self.output.print(f"[rm] {pair.destination / relative_path}")
            result.removed.append(relative_path)

        for relative_path in changes.sorted_add():
            kind = source_snapshot.kind(relative_path)
            kind_name = kind.value if kind else "entry"
            self.output.print(f"[add] {kind_name} {pair.destination / relative_path}")
            result.added.append(relative_path)

        for relative_path in changes.sorted_modify():
            kind = source_snapshot.kind(relative_path)
            kind_name = kind.value if kind else "entry"
            self.output.print(f"[chg] {kind_name} {pair.destination / relative_path}")
            result.changed.append(relative_path)

        self.output.print("")
        self.output.info("Sync plan:")
        if changes.add:
            self.output.info(f"  + Add: {len(changes.add)} entry(ies)")
        if changes.modify:
            self.output.info(f"  ~ Change: {len(changes.modify)} entry(ies)")
        if changes.remove:
            self.output.info(f"  - Remove: {len(changes.remove)} entry(ies)")
        if changes.unchanged:
            self.output.info(f"  = Unchanged: {len(changes.unchanged)} entry(ies)")

    def _display_summary(self, result: SyncResult) -> None:
        """Display sync summary.

        Args:
            result: Result of the pass
        """
        if result.initial_copy and result.added and not result.dry_run:
            self.output.info(f"Initial copy: {len(result.added)} entry(ies) added")

        if result.total_actions > 0:
            self.output.info(f"Total actions: {result.total_actions}")
            if result.added:
                self.output.info(f"  Added: {len(result.added)}")
            if result.changed:
                self.output.info(f"  Changed: {len(result.changed)}")
            if result.removed:
                self.output.info(f"  Removed: {len(result.removed)}")
        else:
            self.output.info("No changes needed - everything is in sync!")

        if result.relocated:
            self.output.info(f"  Links fixed: {len(result.relocated)}")

        if result.errors:
            self.output.warning(
                f"{len(result.errors)} entry(ies) could not be synced, "
                "see errors above"
            )

        if result.dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Done.")
