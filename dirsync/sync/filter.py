"""Exclude-pattern filtering of relative paths."""

import logging
from pathlib import PurePath
from typing import Callable, Iterable, Optional, Union

from ..utils import glob_match, is_glob_pattern

logger = logging.getLogger(__name__)

# Hide any path component starting with "." at the top level and below
DOT_FILE_PATTERNS = ("[.]*", "*/[.]*")

Matcher = Callable[[str, str], bool]


def to_posix(relative_path: Union[str, PurePath]) -> str:
    """Return the forward-slash form of a relative path."""
    if isinstance(relative_path, PurePath):
        return relative_path.as_posix()
    return relative_path.replace("\\", "/")


class PathFilter:
    """Decides whether a relative path is hidden from the sync process.

    Examples:
        >>> path_filter = PathFilter(["*.o", "build*"])
        >>> path_filter.is_excluded("src/main.o")
        True
        >>> PathFilter(exclude_dot_files=True).is_excluded("lib/.cache")
        True
    """

    def __init__(
        self,
        patterns: Optional[Iterable[str]] = None,
        exclude_dot_files: bool = False,
        matcher: Matcher = glob_match,
    ):
        """Initialize path filter.

        Args:
            patterns: Glob patterns matched against the whole relative path
            exclude_dot_files: Also hide every path component starting with "."
            matcher: Function ``(pattern, path) -> bool`` used for matching
        """
        self.patterns: list[str] = []
        if exclude_dot_files:
            self.patterns.extend(DOT_FILE_PATTERNS)
        self.patterns.extend(patterns or [])
        self.matcher = matcher

        # Plain names are compared directly when the default matcher is used
        self._literals: set[str] = set()
        self._globs: list[str] = []
        for pattern in self.patterns:
            if matcher is glob_match and not is_glob_pattern(pattern):
                self._literals.add(pattern)
            else:
                self._globs.append(pattern)

    def is_excluded(self, relative_path: Union[str, PurePath]) -> bool:
        """Check if a relative path matches any exclude pattern.

        Args:
            relative_path: Path relative to a tree root

        Returns:
            True if the path must be hidden from scanning and syncing
        """
        posix_path = to_posix(relative_path)
        if posix_path in self._literals:
            logger.debug("Excluding %s (exact name)", posix_path)
            return True
        for pattern in self._globs:
            if self.matcher(pattern, posix_path):
                logger.debug("Excluding %s (pattern %r)", posix_path, pattern)
                return True
        return False
