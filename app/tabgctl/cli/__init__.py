"""CLI package for tabgctl.

This package contains the Typer application and all subcommands.
"""

from tabgctl.cli.main import app

__all__ = ["app"]
