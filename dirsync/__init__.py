"""dirsync - one-way directory tree synchronization tool."""

from .exceptions import DirsyncError, TreeScanError
from .sync import SyncConfigError, SyncEngine, SyncPair, SyncResult
from .utils import glob_match

__version__ = "0.1.0"

__all__ = [
    "SyncEngine",
    "SyncPair",
    "SyncResult",
    "DirsyncError",
    "SyncConfigError",
    "TreeScanError",
    "glob_match",
]
