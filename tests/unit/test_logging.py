"""Tests for logging setup and package initialization."""

import io
import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from slugpack.core.utils.rich_ui import (
    RichLoggingFilter,
    get_rich_handler,
    is_rich_enabled,
)
from slugpack.logger import setup_logging


@pytest.fixture
def bare_root_logger(monkeypatch):
    """Provide a function stripping the root logger of handlers, restoring them afterwards.

    pytest attaches its capture handler to the root logger after fixtures run,
    so the handlers are cleared from within each test.
    """
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("SLUGPACK_RICH_UI", raising=False)

    def strip() -> logging.Logger:
        root.handlers = []
        return root

    yield strip
    root.handlers = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Test setup_logging function."""

    def test_stream_handler(self, bare_root_logger):
        root = bare_root_logger()
        stream = io.StringIO()
        setup_logging(logging.INFO, stream=stream)

        assert len(root.handlers) == 1
        logging.getLogger("slugpack.test").warning("symlink cycle detected")
        assert "WARNING | symlink cycle detected" in stream.getvalue()

    def test_debug_format_includes_location(self, bare_root_logger):
        bare_root_logger()
        stream = io.StringIO()
        setup_logging("debug", stream=stream)

        logging.getLogger("slugpack.test").debug("found ignore file")
        assert "slugpack.test" in stream.getvalue()
        assert "test_logging.py" in stream.getvalue()

    def test_existing_handlers_kept(self, bare_root_logger):
        root = bare_root_logger()
        existing = logging.NullHandler()
        root.addHandler(existing)

        setup_logging()

        assert root.handlers == [existing]

    def test_env_level_override(self, bare_root_logger, monkeypatch):
        root = bare_root_logger()
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging(logging.DEBUG, stream=io.StringIO())
        assert root.level == logging.ERROR

    def test_rich_handler_when_enabled(self, bare_root_logger, monkeypatch):
        root = bare_root_logger()
        monkeypatch.setenv("SLUGPACK_RICH_UI", "true")
        setup_logging()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)


class TestRichUI:
    """Test Rich logging helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("1", True), ("YES", True), ("false", False), ("", False)],
    )
    def test_is_rich_enabled(self, monkeypatch, value, expected):
        monkeypatch.setenv("SLUGPACK_RICH_UI", value)
        assert is_rich_enabled() is expected

    def test_filter_drops_debug(self):
        flt = RichLoggingFilter()
        debug = logging.LogRecord("x", logging.DEBUG, __file__, 1, "Skipping excluded path", None, None)
        info = logging.LogRecord("x", logging.INFO, __file__, 1, "slug created", None, None)
        assert flt.filter(debug) is False
        assert flt.filter(info) is True

    def test_handler_has_filter(self):
        handler = get_rich_handler()
        assert any(isinstance(f, RichLoggingFilter) for f in handler.filters)


def test_dotenv_loaded_before_logging_setup():
    """load_dotenv() must run before setup_logging() reads LOG_LEVEL."""
    init_file = Path(__file__).parent.parent.parent / "src" / "slugpack" / "__init__.py"
    lines = [line.strip() for line in init_file.read_text().split("\n")]

    dotenv_call = lines.index("load_dotenv()")
    logging_call = lines.index("setup_logging()")
    archive_import = next(i for i, line in enumerate(lines) if line.startswith("from .archive import"))

    assert dotenv_call < logging_call < archive_import
