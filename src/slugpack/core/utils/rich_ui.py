"""
Rich UI components for logging in slugpack.
This module provides a Rich-based alternative to standard logging output.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def is_rich_enabled() -> bool:
    """Check if Rich UI should be enabled based on environment"""
    return os.environ.get("SLUGPACK_RICH_UI", "false").lower() in ("true", "1", "yes")


class RichLoggingFilter(logging.Filter):
    """Filter to suppress verbose logs when Rich UI is active"""

    def filter(self, record):
        # Per-path ignore decisions are far too chatty for the console
        if record.levelno <= logging.DEBUG:
            return False
        return True


def get_rich_handler() -> logging.Handler:
    """Get Rich logging handler writing to stderr"""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.addFilter(RichLoggingFilter())
    return handler
