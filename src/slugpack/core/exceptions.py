"""Custom exceptions for slugpack.

Every error carries the context (path, limit, pattern) needed to render a
specific message to the user rather than a generic I/O failure.
"""

from typing import Optional


class SlugpackError(Exception):
    """Base exception for archive creation and extraction errors."""

    pass


class PathResolutionError(SlugpackError):
    """Raised when an absolute or relative path cannot be computed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to resolve path {path!r}: {reason}")


class ModuleParseError(SlugpackError):
    """Raised when the module calls of a module cannot be discovered.

    Fatal to module resolution; no partial module list is returned.
    """

    def __init__(self, module: str, reason: str):
        self.module = module
        super().__init__(f"Failed to parse module {module!r}: {reason}")


class IgnoreFileReadError(SlugpackError):
    """Raised when an ignore file exists but cannot be read.

    Recoverable: callers log it and fall back to the default exclusions.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"Error reading {path}, default exclusions will apply: {reason}"
        )


class IgnorePatternError(SlugpackError):
    """Raised when an ignore pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str, source: Optional[str] = None):
        self.pattern = pattern
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Invalid ignore pattern {pattern!r}{where}: {reason}")


class MaxSizeExceededError(SlugpackError):
    """Raised when the compressed archive grows beyond the configured limit.

    Carries the configured limit, not the number of bytes written.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"max config size exceeded ({limit} bytes)")

    def __eq__(self, other):
        if isinstance(other, MaxSizeExceededError):
            return self.limit == other.limit
        return NotImplemented

    def __hash__(self):
        return hash((type(self), self.limit))


class ArchiveIOError(SlugpackError):
    """Raised when reading, writing or creating an archive entry fails."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"{reason} {path!r}")


class UnsupportedEntryTypeError(SlugpackError):
    """Raised for file types that cannot be packed or tar entries that cannot be extracted."""

    def __init__(self, path: str, kind: str):
        self.path = path
        self.kind = kind
        super().__init__(f"Unsupported entry type {kind} for {path!r}")


class ArchiveCancelledError(SlugpackError):
    """Raised when a pack or extract is cancelled by the caller."""

    pass
