"""Utility functions for dirsync."""

import re
from functools import lru_cache

# =============================================================================
# Glob pattern matching
# =============================================================================

GLOB_CHARS = frozenset("*?[")


def is_glob_pattern(value: str) -> bool:
    """Check if a string contains glob metacharacters.

    Args:
        value: String to check

    Returns:
        True if the string contains *, ? or [

    Examples:
        >>> is_glob_pattern("*.txt")
        True
        >>> is_glob_pattern("folder/file.txt")
        False
    """
    return any(char in GLOB_CHARS for char in value)


def _translate_class(pattern: str, start: int) -> tuple[str, int]:
    """Translate a bracket expression starting at ``pattern[start] == "["``.

    Returns:
        Tuple of (regex fragment, index just past the class)
    """
    index = start + 1
    negate = False
    if index < len(pattern) and pattern[index] in "!^":
        negate = True
        index += 1

    end = pattern.find("]", index)
    if end == -1:
        # Unterminated class, the rest of the pattern is its body
        end = len(pattern)

    body = pattern[index:end]
    items: list[str] = []
    k = 0
    while k < len(body):
        char = body[k]
        if k + 2 < len(body) and body[k + 1] == "-":
            low, high = char, body[k + 2]
            if low <= high:
                items.append(f"{re.escape(low)}-{re.escape(high)}")
            k += 3
        else:
            items.append(re.escape(char))
            k += 1

    if not items:
        # [] never matches, [!] matches any single character
        return ("." if negate else "(?!)"), end + 1

    return f"[{'^' if negate else ''}{''.join(items)}]", end + 1


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a minimalist glob pattern into a regular expression.

    Supported syntax:
        - ``*`` matches any run of characters, including ``/``
        - ``?`` matches exactly one character
        - ``[abc]``, ``[a-z]`` match one character from the class
        - ``[!abc]`` / ``[^abc]`` match one character not in the class

    Consecutive stars collapse into one. The returned pattern is meant to be
    used with ``fullmatch`` so matching is anchored at both ends.

    Args:
        pattern: Glob pattern

    Returns:
        Compiled regular expression
    """
    parts: list[str] = []
    index = 0
    length = len(pattern)

    while index < length:
        char = pattern[index]
        if char == "*":
            while index + 1 < length and pattern[index + 1] == "*":
                index += 1
            parts.append(".*")
            index += 1
        elif char == "?":
            parts.append(".")
            index += 1
        elif char == "[":
            fragment, index = _translate_class(pattern, index)
            parts.append(fragment)
        else:
            parts.append(re.escape(char))
            index += 1

    return re.compile("".join(parts), re.DOTALL)


def glob_match(pattern: str, name: str) -> bool:
    """Match a whole string against a glob pattern.

    Matching is case-sensitive and anchored: the entire string must match the
    entire pattern.

    Args:
        pattern: Glob pattern
        name: String to test (a forward-slash relative path for exclusions)

    Returns:
        True if the string matches

    Examples:
        >>> glob_match("*.txt", "notes.txt")
        True
        >>> glob_match("*/[.]*", "src/.git")
        True
        >>> glob_match("file?.txt", "file12.txt")
        False
    """
    return glob_to_regex(pattern).fullmatch(name) is not None
