"""Exceptions raised by dirsync."""


class DirsyncError(Exception):
    """Base exception for all dirsync errors."""


class TreeScanError(DirsyncError):
    """A tree root exists but cannot be traversed."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Cannot scan directory tree: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
