"""Sanitize command implementation.

Re-runs the StarterPack config sanitizer, for example after editing the
config by hand.
"""

from typing import Annotated

import typer

from tabgctl.cli.types import ServerDirArgument, load_cli_config
from tabgctl.core.errors import SanitizeError
from tabgctl.sanitize.starter_pack_json import sanitize_starter_pack_json
from tabgctl.sanitize.text import sanitize_file
from tabgctl.utils.formatting import print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Sanitize the StarterPack config files.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)

JSON_CONFIG_FILENAME = "TheStarterPack.json"


@app.callback(invoke_without_command=True)
def sanitize(
    ctx: typer.Context,
    server_dir: ServerDirArgument,
    json_config: Annotated[
        bool,
        typer.Option(
            "--json",
            help=f"Also normalize {JSON_CONFIG_FILENAME}.",
        ),
    ] = False,
) -> None:
    """Remove inline comments and fill empty values the plugin rejects.

    Examples:
        tabgctl sanitize ./server
        tabgctl sanitize ./server --json
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_cli_config(ctx)
    path = server_dir / config.starter_pack.config_file

    try:
        result = sanitize_file(path)
    except SanitizeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    for key in result.commented_keys:
        print_warning(f"'{key}' was empty and has been commented out")
    if result.changed:
        print_success(f"Sanitized {path.name}: {result.changed_lines} line(s) changed.")
    else:
        print_info(f"{path.name} is already clean.")

    if not json_config:
        return

    json_path = server_dir / JSON_CONFIG_FILENAME
    try:
        changes = sanitize_starter_pack_json(json_path)
    except SanitizeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    for change in changes:
        print_info(f"  {change}")
    if changes:
        print_success(f"Sanitized {json_path.name}: {len(changes)} change(s).")
    else:
        print_info(f"{json_path.name} is already clean.")
