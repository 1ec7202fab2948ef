"""Tests for rewriting absolute symlinks into relative ones."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from dirsync.sync.relocator import SymlinkRelocator, is_path_prefix

pytestmark = pytest.mark.usefixtures("requires_symlinks")


class TestIsPathPrefix:
    """Tests for is_path_prefix function."""

    def test_component_wise(self):
        """Test that prefixes are compared by whole components."""
        assert is_path_prefix(Path("/a/src"), Path("/a/src/lib/x")) is True
        assert is_path_prefix(Path("/a/src"), Path("/a/src")) is True
        assert is_path_prefix(Path("/a/src"), Path("/a/src2/x")) is False
        assert is_path_prefix(Path("/a/src/lib"), Path("/a/src")) is False


class TestSymlinkRelocator:
    """Tests for SymlinkRelocator.relocate."""

    @pytest.fixture
    def trees(self, temp_dir):
        """Create a source and a destination tree with the same files."""
        source = temp_dir / "src"
        destination = temp_dir / "dst"
        for root in (source, destination):
            (root / "sub").mkdir(parents=True)
            (root / "inlink.txt").write_text("inside")
        outside = temp_dir / "outside.txt"
        outside.write_text("outside")
        return source, destination

    @pytest.fixture
    def relocator(self, mock_output):
        """Create a relocator instance."""
        return SymlinkRelocator(mock_output)

    def test_rewrites_link_into_source(
        self, relocator, mock_output, printed_lines, trees
    ):
        """Test that an absolute in-source link becomes relative."""
        source, destination = trees
        os.symlink(source.resolve() / "inlink.txt", destination / "abs_in")

        result = relocator.relocate(source, destination)

        assert os.readlink(destination / "abs_in") == "inlink.txt"
        assert (destination / "abs_in").read_text() == "inside"
        assert result.rewritten == [(destination / "abs_in", "inlink.txt")]
        assert printed_lines(mock_output) == [
            f"[fixlink] {destination / 'abs_in'} -> inlink.txt"
        ]

    def test_rewrites_nested_link(self, relocator, trees):
        """Test that the relative target accounts for the link's directory."""
        source, destination = trees
        os.symlink(source.resolve() / "inlink.txt", destination / "sub" / "up")

        relocator.relocate(source, destination)

        assert os.readlink(destination / "sub" / "up") == os.path.join(
            "..", "inlink.txt"
        )

    def test_link_to_source_root(self, relocator, trees):
        """Test that a link to the source root points at the destination root."""
        source, destination = trees
        os.symlink(source.resolve(), destination / "sub" / "root")

        relocator.relocate(source, destination)

        assert os.readlink(destination / "sub" / "root") == ".."

    def test_outside_link_untouched(self, relocator, trees):
        """Test that absolute links outside the source are kept."""
        source, destination = trees
        outside = (source.parent / "outside.txt").resolve()
        os.symlink(outside, destination / "abs_out")

        result = relocator.relocate(source, destination)

        assert os.readlink(destination / "abs_out") == str(outside)
        assert result.outside == [destination / "abs_out"]
        assert result.rewritten == []

    def test_sibling_prefix_is_outside(self, relocator, trees, temp_dir):
        """Test that /x/src2 is not considered inside /x/src."""
        source, destination = trees
        sibling = temp_dir / "src2"
        sibling.mkdir()
        (sibling / "f.txt").write_text("x")
        os.symlink(sibling.resolve() / "f.txt", destination / "sibling")

        result = relocator.relocate(source, destination)

        assert result.outside == [destination / "sibling"]

    def test_relative_link_untouched(self, relocator, trees):
        """Test that relative links are never rewritten, even leaving the tree."""
        source, destination = trees
        os.symlink("inlink.txt", destination / "rel")
        os.symlink("../../outside.txt", destination / "sub" / "escape")

        result = relocator.relocate(source, destination)

        assert os.readlink(destination / "rel") == "inlink.txt"
        assert os.readlink(destination / "sub" / "escape") == "../../outside.txt"
        assert sorted(result.relative) == [
            destination / "rel",
            destination / "sub" / "escape",
        ]

    def test_dangling_link_untouched(self, relocator, trees):
        """Test that links whose target cannot be canonicalized are kept."""
        source, destination = trees
        missing = source.resolve() / "missing.txt"
        os.symlink(missing, destination / "dangling")

        result = relocator.relocate(source, destination)

        assert os.readlink(destination / "dangling") == str(missing)
        assert result.unreadable == [destination / "dangling"]

    def test_link_through_symlinked_directory(self, relocator, trees, temp_dir):
        """Test that canonicalization resolves intermediate symlinks."""
        source, destination = trees
        alias = temp_dir / "alias"
        os.symlink(source.resolve(), alias)
        os.symlink(alias / "inlink.txt", destination / "via_alias")

        relocator.relocate(source, destination)

        assert os.readlink(destination / "via_alias") == "inlink.txt"

    def test_symlinked_directories_not_walked(self, relocator, trees, temp_dir):
        """Test that links inside a symlinked directory are left alone."""
        source, destination = trees
        elsewhere = temp_dir / "elsewhere"
        elsewhere.mkdir()
        os.symlink(source.resolve() / "inlink.txt", elsewhere / "abs")
        os.symlink(elsewhere, destination / "dir_link")

        relocator.relocate(source, destination)

        assert os.readlink(elsewhere / "abs") == str(source.resolve() / "inlink.txt")

    def test_relative_destination_root(self, relocator, trees, temp_dir):
        """Test relocation when the destination is given as a relative path."""
        source, destination = trees
        os.symlink(source.resolve() / "inlink.txt", destination / "sub" / "abs")

        cwd = os.getcwd()
        os.chdir(temp_dir)
        try:
            relocator.relocate(Path("src"), Path("dst"))
        finally:
            os.chdir(cwd)

        assert os.readlink(destination / "sub" / "abs") == os.path.join(
            "..", "inlink.txt"
        )

    def test_replacement_failure_is_reported(self, relocator, mock_output, trees):
        """Test that a link that cannot be replaced does not stop the walk."""
        source, destination = trees
        os.symlink(source.resolve() / "inlink.txt", destination / "a")
        os.symlink(source.resolve() / "inlink.txt", destination / "b")
        original = relocator.operations.create_symlink

        def flaky(target, link):
            if link.name == "a":
                raise OSError("read-only file system")
            original(target, link)

        with patch.object(relocator.operations, "create_symlink", side_effect=flaky):
            result = relocator.relocate(source, destination)

        assert result.failed == [(destination / "a", "read-only file system")]
        assert result.rewritten == [(destination / "b", "inlink.txt")]
        mock_output.error.assert_called_once_with(
            f"Cannot fix link {destination / 'a'}: read-only file system"
        )

    def test_missing_destination(self, relocator, temp_dir):
        """Test that a missing destination is a no-op."""
        result = relocator.relocate(temp_dir / "src", temp_dir / "missing")
        assert result.rewritten == []
