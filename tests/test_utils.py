"""Unit tests for the glob engine in dirsync.utils."""

import re

from dirsync.utils import glob_match, glob_to_regex, is_glob_pattern


class TestIsGlobPattern:
    """Tests for is_glob_pattern function."""

    def test_metacharacters_are_glob(self):
        """Test that *, ? and [ are recognized as glob patterns."""
        assert is_glob_pattern("*.txt") is True
        assert is_glob_pattern("file?.txt") is True
        assert is_glob_pattern("[!abc]file") is True

    def test_plain_names_are_not_glob(self):
        """Test that plain names and paths are not glob patterns."""
        assert is_glob_pattern("file.txt") is False
        assert is_glob_pattern("a/b/c/d.txt") is False
        assert is_glob_pattern("") is False


class TestGlobMatch:
    """Tests for glob_match function."""

    def test_literal_match_is_whole_string(self):
        """Test that literal patterns must match the entire string."""
        assert glob_match("file.txt", "file.txt") is True
        assert glob_match("file.txt", "file.txt.bak") is False
        assert glob_match("file", "myfile") is False

    def test_matching_is_case_sensitive(self):
        """Test that matching distinguishes upper and lower case."""
        assert glob_match("*.TXT", "notes.txt") is False
        assert glob_match("Makefile", "makefile") is False

    def test_asterisk_matches_any_sequence(self):
        """Test that * matches any run of characters, including none."""
        assert glob_match("*.txt", "file.txt") is True
        assert glob_match("*.txt", ".txt") is True
        assert glob_match("file*", "file") is True
        assert glob_match("*test*", "my_test_file") is True

    def test_asterisk_crosses_slashes(self):
        """Test that * also matches path separators."""
        assert glob_match("*.o", "src/lib/main.o") is True
        assert glob_match("build*", "build/tmp/x") is True
        assert glob_match("*/[.]*", "a/b/.hidden") is True

    def test_consecutive_asterisks_collapse(self):
        """Test that ** behaves like a single *."""
        assert glob_match("**.txt", "a/b.txt") is True
        assert glob_to_regex("a**b").pattern == glob_to_regex("a*b").pattern

    def test_question_mark_matches_single_char(self):
        """Test that ? matches exactly one character."""
        assert glob_match("file?.txt", "file1.txt") is True
        assert glob_match("file?.txt", "file.txt") is False
        assert glob_match("file?.txt", "file12.txt") is False
        assert glob_match("a?b", "a/b") is True

    def test_bracket_matches_character_set(self):
        """Test that [abc] matches one character of the set."""
        assert glob_match("file[123].txt", "file2.txt") is True
        assert glob_match("file[123].txt", "file4.txt") is False
        assert glob_match("[.]*", ".git") is True
        assert glob_match("[.]*", "git") is False

    def test_bracket_ranges(self):
        """Test that [a-z] matches one character of the range."""
        assert glob_match("file[0-9].txt", "file7.txt") is True
        assert glob_match("file[0-9].txt", "fileA.txt") is False
        assert glob_match("[a-cx-z]", "y") is True
        assert glob_match("[a-cx-z]", "m") is False

    def test_reversed_range_is_ignored(self):
        """Test that a range with low > high contributes nothing."""
        assert glob_match("[z-ab]", "b") is True
        assert glob_match("[z-ab]", "m") is False

    def test_negated_bracket(self):
        """Test that [!abc] and [^abc] match characters outside the set."""
        assert glob_match("[!abc]x", "dx") is True
        assert glob_match("[!abc]x", "ax") is False
        assert glob_match("[^0-9]", "a") is True
        assert glob_match("[^0-9]", "5") is False

    def test_empty_bracket_never_matches(self):
        """Test that [] matches nothing."""
        assert glob_match("a[]b", "ab") is False
        assert glob_match("a[]b", "axb") is False

    def test_negated_empty_bracket_matches_any_char(self):
        """Test that [!] matches exactly one arbitrary character."""
        assert glob_match("a[!]b", "axb") is True
        assert glob_match("a[!]b", "ab") is False

    def test_unterminated_bracket_runs_to_end(self):
        """Test that a [ without closing ] takes the rest as its class."""
        assert glob_match("a[bc", "ab") is True
        assert glob_match("a[bc", "ac") is True
        assert glob_match("a[bc", "a[bc") is False
        assert glob_match("abc[", "abc") is False
        assert glob_match("abc[!", "abcd") is True

    def test_regex_characters_are_escaped(self):
        """Test that regex metacharacters in patterns are literal."""
        assert glob_match("a+b(c).txt", "a+b(c).txt") is True
        assert glob_match("a.b", "axb") is False
        assert glob_match("$HOME", "$HOME") is True

    def test_empty_pattern(self):
        """Test that the empty pattern only matches the empty string."""
        assert glob_match("", "") is True
        assert glob_match("", "a") is False
        assert glob_match("*", "") is True


class TestGlobToRegex:
    """Tests for glob_to_regex function."""

    def test_returns_compiled_pattern(self):
        """Test that a compiled regular expression is returned."""
        assert isinstance(glob_to_regex("*.txt"), re.Pattern)

    def test_results_are_cached(self):
        """Test that compiling the same pattern twice reuses the result."""
        assert glob_to_regex("cached*") is glob_to_regex("cached*")

    def test_asterisk_matches_newline(self):
        """Test that * matches names containing newlines."""
        assert glob_match("a*b", "a\nb") is True
