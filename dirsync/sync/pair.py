"""Sync pair definition: one source tree mirrored into one destination."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .filter import PathFilter


@dataclass
class SyncPair:
    """A source directory and the destination it is mirrored into.

    Examples:
        >>> pair = SyncPair(source="install", destination="build/install")
        >>> pair.fix_symlinks
        True
    """

    source: Path
    """Source directory (read only)"""

    destination: Path
    """Destination directory (created if absent)"""

    exclude: list[str] = field(default_factory=list)
    """Glob patterns matched against relative paths"""

    exclude_dot_files: bool = False
    """Hide entries whose name starts with '.' at any depth"""

    verbose: bool = False
    """Print additions during an initial copy"""

    listfile: Optional[Path] = None
    """Where to write the manifest of added/changed destination paths"""

    fix_symlinks: bool = True
    """Rewrite absolute in-tree symlinks after syncing"""

    alias: Optional[str] = None
    """Optional name used to select the pair from a config file"""

    def __post_init__(self) -> None:
        self.source = Path(self.source)
        self.destination = Path(self.destination)
        if self.listfile is not None:
            self.listfile = Path(self.listfile)
        self.exclude = list(self.exclude)

    def path_filter(self) -> PathFilter:
        """Build the path filter for this pair."""
        return PathFilter(self.exclude, exclude_dot_files=self.exclude_dot_files)

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], base_dir: Optional[Union[str, Path]] = None
    ) -> "SyncPair":
        """Create a sync pair from a dictionary.

        Args:
            data: Dictionary with camelCase keys (``source``, ``destination``,
                ``exclude``, ``excludeDotFiles``, ``verbose``, ``listfile``,
                ``fixSymlinks``, ``alias``)
            base_dir: Directory relative paths are resolved against

        Returns:
            SyncPair instance

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        missing = [key for key in ("source", "destination") if not data.get(key)]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        exclude = data.get("exclude", [])
        if isinstance(exclude, str):
            exclude = [exclude]
        if not isinstance(exclude, list) or not all(
            isinstance(pattern, str) for pattern in exclude
        ):
            raise ValueError("'exclude' must be a list of glob patterns")

        def resolve(value: Any) -> Path:
            path = Path(value).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = Path(base_dir) / path
            return path

        listfile = data.get("listfile")

        return cls(
            source=resolve(data["source"]),
            destination=resolve(data["destination"]),
            exclude=exclude,
            exclude_dot_files=bool(data.get("excludeDotFiles", False)),
            verbose=bool(data.get("verbose", False)),
            listfile=resolve(listfile) if listfile else None,
            fix_symlinks=bool(data.get("fixSymlinks", True)),
            alias=data.get("alias"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the sync pair to a dictionary."""
        return {
            "source": str(self.source),
            "destination": str(self.destination),
            "exclude": list(self.exclude),
            "excludeDotFiles": self.exclude_dot_files,
            "verbose": self.verbose,
            "listfile": str(self.listfile) if self.listfile else None,
            "fixSymlinks": self.fix_symlinks,
            "alias": self.alias,
        }

    def __str__(self) -> str:
        text = f"{self.source} -> {self.destination}"
        if self.alias:
            text = f"{self.alias}: {text}"
        return text
