"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from tabgctl import __version__
from tabgctl.cli.commands import config, doctor, install, reset, sanitize
from tabgctl.core.logging import configure_logging
from tabgctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="tabgctl",
    help="Fresh installs of a modded TABG dedicated server.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tabgctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Also write a full debug log to this file.",
            dir_okay=False,
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Use this config file instead of the default location.",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """tabgctl - Fresh installs of a modded TABG dedicated server.

    Resets a server directory to its vanilla files, installs BepInEx,
    and sets up the StarterPack and CitrusLib plugins.
    """
    configure_logging(verbose=verbose, quiet=quiet, log_file=log_file, console=err_console)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path


# Register commands
app.add_typer(install.app, name="install")
app.add_typer(reset.app, name="reset")
app.add_typer(sanitize.app, name="sanitize")
app.add_typer(doctor.app, name="doctor")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
