"""Shared fixtures for dirsync tests."""

import io
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
from rich.console import Console

from dirsync.output import OutputFormatter


def _symlinks_supported() -> bool:
    with tempfile.TemporaryDirectory() as tmpdir:
        try:
            os.symlink("target", os.path.join(tmpdir, "link"))
        except (OSError, NotImplementedError):
            return False
    return True


SYMLINKS_SUPPORTED = _symlinks_supported()


@pytest.fixture
def requires_symlinks():
    """Skip the test where symlinks cannot be created."""
    if not SYMLINKS_SUPPORTED:
        pytest.skip("symlinks are not supported here")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True  # Suppress output during tests
    output.json_output = False
    output.console = Console(file=io.StringIO())
    return output


@pytest.fixture
def printed_lines():
    """Return a helper listing the messages passed to ``output.print``."""

    def collect(output: Mock) -> list[str]:
        return [call.args[0] for call in output.print.call_args_list if call.args]

    return collect
