"""Logging setup for the tabgctl CLI.

Log records go to stderr through Rich, and optionally to a plain-text
file so an install run can be inspected afterwards.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

FILE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(verbose: bool = False, quiet: bool = False) -> int:
    """Map the global CLI flags to a logging level.

    --verbose wins over --quiet when both are given.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    console: Console | None = None,
) -> None:
    """Configure the root logger for a CLI invocation.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        verbose: Enable debug output.
        quiet: Only show warnings and errors.
        log_file: Optional file that receives every record at DEBUG level.
        console: Console for the Rich handler. Defaults to stderr.
    """
    level = resolve_level(verbose, quiet)
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=verbose,
    )
    rich_handler.setLevel(level)
    root.addHandler(rich_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            root.warning("Could not open log file %s: %s", log_file, e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
            root.addHandler(file_handler)

    root.setLevel(logging.DEBUG if log_file is not None else level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
