"""Utility functions for working with module paths."""

import os
from typing import Iterable, List

from ..core.exceptions import PathResolutionError


def ensure_abs(path: str) -> str:
    """Return path as a clean absolute path."""
    try:
        return os.path.normpath(os.path.abspath(path))
    except OSError as e:
        # abspath needs the working directory, which may have been removed
        raise PathResolutionError(str(path), str(e)) from e


def is_nested(path: str, parent: str) -> bool:
    """
    Check whether path lies strictly beneath parent.

    Compares whole path components, so /r/mod2 is not nested in /r/mod.
    """
    if path == parent:
        return False
    try:
        return os.path.commonpath([path, parent]) == parent
    except ValueError:
        # Mix of absolute and relative paths, or different drives
        return False


def is_within(path: str, parent: str) -> bool:
    """Check whether path is parent or lies beneath it."""
    return path == parent or is_nested(path, parent)


def dedupe(paths: Iterable[str]) -> List[str]:
    """
    Remove paths which are nested within another path.

    Order follows first occurrence. An exact duplicate is merged into the
    entry already kept. A path nesting entries already kept replaces them.

    Args:
        paths: Absolute paths

    Returns:
        Paths of which none lies within another
    """
    unnested: List[str] = []

    for candidate in paths:
        candidate = os.path.normpath(candidate)

        if any(is_within(candidate, p) for p in unnested):
            # Candidate is covered by a path already kept
            continue

        # Candidate might be nesting paths already kept
        unnested = [p for p in unnested if not is_nested(p, candidate)]
        unnested.append(candidate)

    return unnested


def common_parent(paths: Iterable[str]) -> str:
    """
    Find the deepest directory shared by all paths.

    Raises:
        PathResolutionError: If there are no paths or they share nothing
    """
    paths = list(paths)
    if not paths:
        raise PathResolutionError("", "no paths to find a common parent of")
    try:
        return os.path.commonpath(paths)
    except ValueError as e:
        raise PathResolutionError(", ".join(paths), str(e)) from e
