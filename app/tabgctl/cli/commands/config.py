"""Config commands.

Show, create and locate the installer configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from tabgctl.cli.types import load_cli_config
from tabgctl.core.config import ConfigError, InstallerConfig, save_config
from tabgctl.core.paths import get_config_path
from tabgctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the installer configuration.",
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the effective configuration as TOML."""
    config = load_cli_config(ctx)
    data = config.model_dump(mode="json", exclude_none=True)
    console.print(tomli_w.dumps(data), markup=False, highlight=False)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file containing every default value."""
    path = ctx.obj.get("config_path") if ctx.obj else None
    path = path or get_config_path()

    if path.exists() and not force:
        print_info(f"Config already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(InstallerConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")


@app.command()
def path(ctx: typer.Context) -> None:
    """Print the location of the config file."""
    selected = ctx.obj.get("config_path") if ctx.obj else None
    typer.echo(str(selected or get_config_path()))
