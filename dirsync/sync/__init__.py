"""Sync engine for dirsync - one-way mirroring of a directory tree."""

from .comparator import ChangeSet, DiffEngine, FileFingerprint
from .config import SyncConfigError, load_sync_pairs_from_json
from .engine import SyncEngine, SyncResult
from .filter import DOT_FILE_PATTERNS, PathFilter
from .operations import SyncOperations
from .pair import SyncPair
from .relocator import RelocationResult, SymlinkRelocator
from .scanner import EntryKind, TreeScanner, TreeSnapshot

__all__ = [
    "SyncEngine",
    "SyncResult",
    "SyncPair",
    "SyncOperations",
    "SyncConfigError",
    "load_sync_pairs_from_json",
    "TreeScanner",
    "TreeSnapshot",
    "EntryKind",
    "DiffEngine",
    "ChangeSet",
    "FileFingerprint",
    "PathFilter",
    "DOT_FILE_PATTERNS",
    "SymlinkRelocator",
    "RelocationResult",
]
