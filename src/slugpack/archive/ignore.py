"""Ignore pattern matching for module archives.

Rules are read from a ``.terraformignore`` file, found by searching the
starting directory and then each of its ancestors. Patterns follow the
gitignore style and are evaluated last-match-wins, so a later ``!pattern``
re-includes what an earlier rule excluded.
"""

import logging
import os
import re
from typing import Iterable, List, Optional, Tuple

import pathspec
from pathspec.pattern import RegexPattern

from ..config import DEFAULT_IGNORE_FILE
from ..core.exceptions import IgnoreFileReadError, IgnorePatternError

log = logging.getLogger(__name__)

# Default rules as they would appear in .terraformignore. Never mutated:
# every matcher compiles its own copy.
DEFAULT_IGNORE_LINES: Tuple[str, ...] = (
    ".git/",
    ".terraform/",
    "!.terraform/modules/",
)


def normalize_pattern(pattern: str) -> Tuple[Optional[str], bool]:
    """
    Normalize a single ignore file line.

    Args:
        pattern: Raw line from an ignore file

    Returns:
        Tuple of (normalized glob or None for blank/comment lines, negated)
    """
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None, False

    negated = False
    if pattern.startswith("!"):
        negated = True
        pattern = pattern[1:]
        if not pattern:
            return None, False

    # If it is a directory, add ** so we catch descendants
    if pattern.endswith("/"):
        pattern += "**"

    # A leading separator anchors the pattern to the rule base
    if pattern.startswith("/"):
        pattern = pattern[1:]
    else:
        pattern = "**/" + pattern

    return pattern, negated


def glob_to_regex(pattern: str) -> str:
    """
    Translate a normalized glob into a regular expression.

    Args:
        pattern: Normalized glob (see normalize_pattern)

    Returns:
        Regular expression string anchored with ^ and $
    """
    regex = "^"
    i = 0
    n = len(pattern)

    while i < n:
        ch = pattern[i]
        i += 1

        if ch == "*":
            if i < n and pattern[i] == "*":
                i += 1
                # Treat **/ as **
                if i < n and pattern[i] == "/":
                    i += 1
                if i == n:
                    # Trailing ** accepts everything, as .gitignore does
                    regex += ".*"
                else:
                    regex += "(.*/)?"
            else:
                regex += "[^/]*"
        elif ch == "?":
            regex += "[^/]"
        elif ch == "\\":
            if i < n:
                regex += re.escape(pattern[i])
                i += 1
            else:
                regex += re.escape(ch)
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                # Left unterminated so compilation reports it
                regex += "["
                continue
            body = pattern[i:end]
            if body.startswith("!"):
                body = "^" + body[1:]
            regex += "[" + body + "]"
            i = end + 1
        else:
            regex += re.escape(ch)

    return regex + "$"


class IgnoreRule(RegexPattern):
    """A single ignore pattern compiled to a regular expression.

    ``include`` follows pathspec conventions: True for an excluding rule,
    False for a negated (re-including) rule, None for a no-op line.
    """

    __slots__ = ()

    @classmethod
    def pattern_to_regex(cls, pattern: str) -> Tuple[Optional[str], Optional[bool]]:
        normalized, negated = normalize_pattern(pattern)
        if normalized is None:
            return None, None
        return glob_to_regex(normalized), not negated

    @property
    def negated(self) -> bool:
        return self.include is False


def compile_rules(lines: Iterable[str], source: Optional[str] = None) -> List[IgnoreRule]:
    """
    Compile ignore lines into rules, skipping blanks and comments.

    Raises:
        IgnorePatternError: If any pattern fails to compile
    """
    rules = []
    for line in lines:
        try:
            rule = IgnoreRule(line)
        except re.error as e:
            raise IgnorePatternError(line.strip(), str(e), source) from e
        if rule.include is not None:
            rules.append(rule)
    return rules


def find_ignore_file(start: str, filename: str = DEFAULT_IGNORE_FILE) -> Optional[str]:
    """
    Find the nearest ignore file in start or any of its ancestors.

    Args:
        start: Directory to begin searching from
        filename: Ignore file name

    Returns:
        Path to the ignore file, or None if there is none up to the root
    """
    directory = os.path.abspath(start)
    while True:
        candidate = os.path.join(directory, filename)
        if os.path.isfile(candidate):
            return candidate

        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def read_ignore_file(path: str) -> List[str]:
    """
    Read the lines of an ignore file.

    Raises:
        IgnoreFileReadError: If the file cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreFileReadError(path, str(e)) from e


class RuleMatcher:
    """
    Decide which paths are included in an archive.

    Holds the ordered rules (defaults first, then file rules) and the base
    directory that the rules are relative to.
    """

    def __init__(self, rules: List[IgnoreRule], base: str):
        self.rules = rules
        self.base = os.path.abspath(base)
        self._spec = pathspec.PathSpec(rules)

    @classmethod
    def from_directory(cls, start: str, filename: str = DEFAULT_IGNORE_FILE) -> "RuleMatcher":
        """
        Build a matcher from the nearest ignore file, or from defaults alone.

        Args:
            start: Directory to begin the ignore file search from
            filename: Ignore file name

        Returns:
            RuleMatcher whose base is the ignore file's directory, or start
            if no readable ignore file was found

        Raises:
            IgnorePatternError: If a pattern in the ignore file is invalid
        """
        lines = list(DEFAULT_IGNORE_LINES)
        base = start
        source = None

        path = find_ignore_file(start, filename)
        if path is None:
            log.debug(f"ignore file not found, default exclusions apply to: {start}")
        else:
            try:
                lines.extend(read_ignore_file(path))
                base = os.path.dirname(path)
                source = path
                log.debug(f"found ignore file: {path}")
            except IgnoreFileReadError as e:
                log.warning(str(e))

        return cls(compile_rules(lines, source), base)

    def includes(self, path: str, is_dir: bool = False) -> bool:
        """
        Check whether a path should be included in the archive.

        Args:
            path: Absolute path, or a path relative to the current directory
            is_dir: Whether the path is a directory

        Returns:
            True if the path is included, False if it is ignored
        """
        rel_path = os.path.relpath(os.path.abspath(path), self.base)
        if rel_path == ".":
            # Always ignore the base itself
            return False

        rel_path = rel_path.replace(os.sep, "/")
        if is_dir:
            rel_path += "/"

        if self._spec.match_file(rel_path):
            log.debug(f"Skipping excluded path: {rel_path}")
            return False
        return True
