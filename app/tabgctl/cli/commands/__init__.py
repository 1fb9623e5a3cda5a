"""CLI commands for tabgctl.

This package contains all subcommand implementations.
"""

from tabgctl.cli.commands import config, doctor, install, reset, sanitize

__all__ = ["config", "doctor", "install", "reset", "sanitize"]
