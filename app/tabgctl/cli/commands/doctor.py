"""Doctor command implementation.

Explains why BepInEx might not be loading on a server.
"""

import typer

from tabgctl.cli.display import create_diagnostics_table
from tabgctl.cli.types import ServerDirArgument
from tabgctl.doorstop.diagnostics import diagnose
from tabgctl.utils.formatting import console, print_error, print_success

app = typer.Typer(
    help="Diagnose the BepInEx installation of a server.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def doctor(ctx: typer.Context, server_dir: ServerDirArgument) -> None:
    """Check the loader files, the Doorstop descriptor and the BepInEx log.

    Exits with code 1 if any check fails.
    """
    if ctx.invoked_subcommand is not None:
        return

    if not server_dir.is_dir():
        print_error(f"Server directory does not exist: {server_dir}")
        raise typer.Exit(code=1)

    report = diagnose(server_dir)
    console.print(create_diagnostics_table(report))

    if not report.ok:
        print_error("BepInEx is not set up correctly. Run 'tabgctl install' to repair it.")
        raise typer.Exit(code=1)
    print_success("No problems found.")
