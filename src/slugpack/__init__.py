# Load .env vars from file before everything else
from dotenv import load_dotenv

load_dotenv()

from .logger import setup_logging  # noqa: E402

setup_logging()

from .archive import Archive, ArchiveMeta, ConfigMapPayload, config_map, extract  # noqa: E402
from .config import MAX_CONFIG_SIZE, ArchiveConfig  # noqa: E402
from .core.exceptions import (  # noqa: E402
    ArchiveCancelledError,
    ArchiveIOError,
    IgnoreFileReadError,
    IgnorePatternError,
    MaxSizeExceededError,
    ModuleParseError,
    PathResolutionError,
    SlugpackError,
    UnsupportedEntryTypeError,
)

__all__ = [
    "Archive",
    "ArchiveCancelledError",
    "ArchiveConfig",
    "ArchiveIOError",
    "ArchiveMeta",
    "ConfigMapPayload",
    "IgnoreFileReadError",
    "IgnorePatternError",
    "MAX_CONFIG_SIZE",
    "MaxSizeExceededError",
    "ModuleParseError",
    "PathResolutionError",
    "SlugpackError",
    "UnsupportedEntryTypeError",
    "config_map",
    "extract",
]
