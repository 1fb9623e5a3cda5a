"""Reset command implementation.

Deletes everything in a server directory that VanillaFiles.txt does not
list, without installing anything afterwards.
"""

from typing import Annotated

import typer

from tabgctl.cli.display import create_plan_table, print_deletion_report, print_plan_summary
from tabgctl.cli.types import ServerDirArgument
from tabgctl.core.errors import FileSystemError
from tabgctl.reset.engine import WhitelistResetEngine
from tabgctl.reset.rules import ensure_whitelist
from tabgctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Reset a server directory to its vanilla files.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def reset(
    ctx: typer.Context,
    server_dir: ServerDirArgument,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be deleted without making changes.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Show at most this many planned deletions."),
    ] = 50,
) -> None:
    """Delete every file the whitelist does not keep.

    VanillaFiles.txt is created from defaults if it is missing. The
    Presets directory and the whitelist itself are always kept.

    Examples:
        tabgctl reset ./server --dry-run
        tabgctl reset ./server --yes
    """
    if ctx.invoked_subcommand is not None:
        return

    if not server_dir.is_dir():
        print_error(f"Server directory does not exist: {server_dir}")
        raise typer.Exit(code=1)

    engine = WhitelistResetEngine(dry_run=dry_run)

    try:
        whitelist = ensure_whitelist(server_dir, persist=not dry_run)
        plan = engine.plan(server_dir, whitelist.rules)
    except FileSystemError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not plan.deletions:
        print_success("Server directory already matches the whitelist. Nothing to do.")
        return

    console.print(create_plan_table(plan, dry_run=dry_run, limit=limit))
    print_plan_summary(plan, limit=limit)

    if dry_run:
        print_info("\nDry-run mode: No changes were made.")
        return

    if not yes:
        confirmed = typer.confirm(
            f"\nDelete {len(plan.deletions)} entries from {server_dir}?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        report = engine.reset(server_dir, whitelist.rules)
    except FileSystemError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_deletion_report(report)
    if not report.success:
        raise typer.Exit(code=1)
