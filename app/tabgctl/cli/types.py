"""Shared types and helpers for CLI commands."""

from pathlib import Path
from typing import Annotated

import typer

from tabgctl.core.config import (
    ConfigError,
    InstallerConfig,
    load_config,
    load_config_or_default,
)
from tabgctl.utils.formatting import print_error

ServerDirArgument = Annotated[
    Path,
    typer.Argument(
        help="Server installation directory.",
        file_okay=False,
        resolve_path=True,
    ),
]


def load_cli_config(ctx: typer.Context) -> InstallerConfig:
    """Load the installer config selected by the global --config option.

    The default config file is optional; a file named with --config must exist.
    Exits with code 2 if the config cannot be loaded.
    """
    path: Path | None = ctx.obj.get("config_path") if ctx.obj else None
    try:
        if path is not None:
            return load_config(path)
        return load_config_or_default()
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=2) from e
