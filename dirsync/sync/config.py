"""Loading sync pairs from JSON configuration files."""

import json
import logging
from pathlib import Path
from typing import Any

from ..exceptions import DirsyncError
from .pair import SyncPair

logger = logging.getLogger(__name__)


class SyncConfigError(DirsyncError):
    """Raised when a sync configuration file is invalid."""


def load_sync_pairs_from_json(config_path: Path) -> list[SyncPair]:
    """Load sync pairs from a JSON file.

    The file contains either a list of pair objects or an object with a
    ``syncPairs`` list::

        {
          "syncPairs": [
            {"source": "install", "destination": "build/install",
             "exclude": ["*.pyc"], "listfile": "changed.txt"}
          ]
        }

    Relative paths are resolved against the directory of the config file.

    Args:
        config_path: Path to the JSON file

    Returns:
        List of SyncPair objects, in file order

    Raises:
        SyncConfigError: If the file cannot be read or is invalid
    """
    try:
        with open(config_path, encoding="utf-8") as f:
            data: Any = json.load(f)
    except OSError as e:
        raise SyncConfigError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SyncConfigError(f"Invalid JSON in {config_path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("syncPairs")
    if not isinstance(data, list):
        raise SyncConfigError(
            f"{config_path}: expected a list of sync pairs or a 'syncPairs' list"
        )

    base_dir = Path(config_path).parent
    pairs: list[SyncPair] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise SyncConfigError(f"{config_path}: sync pair #{index} is not an object")
        try:
            pairs.append(SyncPair.from_dict(item, base_dir=base_dir))
        except ValueError as e:
            raise SyncConfigError(f"{config_path}: sync pair #{index}: {e}") from e

    logger.debug("Loaded %d sync pair(s) from %s", len(pairs), config_path)
    return pairs
