"""Filesystem operations used to apply a change set."""

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_FILE_PREFIX = ".dirsync_tmp_"

# Copy buffer size (1 MB)
DEFAULT_BUFFER_SIZE: int = 1024 * 1024


class SyncOperations:
    """Destination-side filesystem operations with a common interface.

    File copies are atomic: data is written to a temporary file in the
    destination directory and renamed into place, so readers see either the
    old or the new content, never a partial file.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """Initialize sync operations.

        Args:
            buffer_size: Chunk size used when streaming file contents
        """
        self.buffer_size = buffer_size

    def copy_file(self, source: Path, destination: Path) -> None:
        """Atomically copy a regular file's contents.

        Data is flushed to disk before the temporary file is renamed over
        the destination.

        Args:
            source: Source file
            destination: Destination path (parent directories are created)

        Raises:
            OSError: If reading, writing, or renaming fails. The temporary
                file is removed in that case.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=destination.parent, prefix=TEMP_FILE_PREFIX
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "wb") as out_file, open(source, "rb") as in_file:
                shutil.copyfileobj(in_file, out_file, self.buffer_size)
                out_file.flush()
                os.fsync(out_file.fileno())
            os.replace(tmp_path, destination)
        except Exception:
            if os.path.lexists(tmp_path):
                tmp_path.unlink()
            raise

        logger.debug("Copied %s -> %s", source, destination)

    def copy_permissions(self, source: Path, destination: Path) -> bool:
        """Copy permission bits from source to destination (best effort).

        Returns:
            True if the permissions were applied
        """
        try:
            mode = stat.S_IMODE(os.stat(source).st_mode)
            os.chmod(destination, mode)
        except OSError as e:
            logger.warning("Cannot copy permissions to %s: %s", destination, e)
            return False
        return True

    def copy_mtime(self, source: Path, destination: Path) -> bool:
        """Copy access and modification times from source (best effort).

        Returns:
            True if the times were applied
        """
        try:
            st = os.stat(source)
            os.utime(destination, ns=(st.st_atime_ns, st.st_mtime_ns))
        except OSError as e:
            logger.warning("Cannot copy modification time to %s: %s", destination, e)
            return False
        return True

    def make_directory(self, destination: Path) -> None:
        """Create a directory and any missing parents."""
        destination.mkdir(parents=True, exist_ok=True)

    def create_symlink(self, target: str, link: Path) -> None:
        """Create a symlink, replacing whatever is at the link path.

        Replacement is remove-then-create, so there is a short window in which
        no entry exists at ``link``.

        Args:
            target: Literal link text
            link: Path of the symlink to create
        """
        link.parent.mkdir(parents=True, exist_ok=True)
        self.remove_entry(link)
        os.symlink(target, link)

    def remove_entry(self, path: Path) -> bool:
        """Remove a file, symlink, or directory tree.

        Symlinks to directories are unlinked, never followed.

        Returns:
            True if something was removed, False if nothing existed
        """
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
            return True
        if os.path.lexists(path):
            path.unlink()
            return True
        return False
