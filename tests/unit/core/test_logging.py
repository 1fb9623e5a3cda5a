"""Unit tests for CLI logging setup."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler
from tabgctl.core.logging import configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestResolveLevel:
    """Tests for resolve_level."""

    def test_default_is_info(self) -> None:
        assert resolve_level() == logging.INFO

    def test_quiet_is_warning(self) -> None:
        assert resolve_level(quiet=True) == logging.WARNING

    def test_verbose_wins_over_quiet(self) -> None:
        assert resolve_level(verbose=True, quiet=True) == logging.DEBUG


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_single_rich_handler(self) -> None:
        """Calling twice does not duplicate handlers."""
        configure_logging()
        configure_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)
        assert handlers[0].level == logging.INFO

    def test_log_file_receives_debug_records(self, tmp_path: Path) -> None:
        """The file handler records everything, even below the console level."""
        log_file = tmp_path / "logs" / "install.log"
        configure_logging(quiet=True, log_file=log_file)

        logging.getLogger("tabgctl.test").debug("detail for the file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "detail for the file" in log_file.read_text(encoding="utf-8")

    def test_httpx_is_quietened(self) -> None:
        """Per-request httpx logging is suppressed."""
        configure_logging(verbose=True)

        assert logging.getLogger("httpx").level == logging.WARNING
