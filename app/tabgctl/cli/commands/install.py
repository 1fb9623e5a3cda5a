"""Install command implementation.

Runs a complete fresh install of the modded server into an existing
vanilla server directory.
"""

import asyncio
import signal
from pathlib import Path
from typing import Annotated

import typer

from tabgctl.cli.display import print_install_summary, print_phase
from tabgctl.cli.types import ServerDirArgument, load_cli_config
from tabgctl.core.cancel import CancellationToken
from tabgctl.core.errors import InstallValidationError
from tabgctl.install.orchestrator import InstallOrchestrator, InstallSummary
from tabgctl.models.request import InstallRequest
from tabgctl.utils.formatting import console, print_error, print_warning

app = typer.Typer(
    help="Fresh install of BepInEx, StarterPack and CitrusLib.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


def _request_cancel(token: CancellationToken) -> None:
    if not token.cancelled:
        print_warning("Cancelling, waiting for the current step to stop...")
    token.cancel()


async def _run(orchestrator: InstallOrchestrator, token: CancellationToken) -> InstallSummary:
    """Run the orchestrator with SIGINT and SIGTERM mapped to cancellation."""
    loop = asyncio.get_running_loop()
    handled: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_cancel, token)
        except (NotImplementedError, RuntimeError):
            # No loop signal support on Windows
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(_request_cancel, token))
        else:
            handled.append(sig)
    try:
        return await orchestrator.run()
    finally:
        for sig in handled:
            loop.remove_signal_handler(sig)


@app.callback(invoke_without_command=True)
def install(
    ctx: typer.Context,
    server_dir: ServerDirArgument,
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Server name written to game_settings.txt."),
    ] = "",
    password: Annotated[
        str,
        typer.Option("--password", "-p", help="Server password."),
    ] = "",
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="Server description."),
    ] = "",
    starter_pack_tag: Annotated[
        str | None,
        typer.Option("--starter-pack-tag", help="StarterPack release tag (default: latest)."),
    ] = None,
    citruslib_tag: Annotated[
        str | None,
        typer.Option("--citruslib-tag", help="CitrusLib release tag (default: latest)."),
    ] = None,
    skip_starter_pack: Annotated[
        bool,
        typer.Option("--skip-starter-pack", help="Only reset and install BepInEx."),
    ] = False,
    skip_citruslib: Annotated[
        bool,
        typer.Option("--skip-citruslib", help="Do not install CitrusLib."),
    ] = False,
    bepinex_archive: Annotated[
        Path | None,
        typer.Option(
            "--bepinex-archive",
            help="Install BepInEx from this local zip instead of downloading it.",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            help="Seconds to wait for the first server run.",
            min=1,
        ),
    ] = None,
) -> None:
    """Reset a server directory and install the modded server.

    Everything not listed in VanillaFiles.txt is deleted first. The
    StarterPack setup tool opens once; close it to finish the install.

    Exit codes: 0 on success, 1 when cancelled, 2 on failure.

    Examples:
        tabgctl install ./server --name "My Server"
        tabgctl install ./server --skip-starter-pack
        tabgctl install ./server --bepinex-archive BepInEx_x64_5.4.22.0.zip
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_cli_config(ctx)
    if timeout is not None:
        server = config.server.model_copy(update={"first_run_timeout_seconds": timeout})
        config = config.model_copy(update={"server": server})

    token = CancellationToken()
    try:
        request = InstallRequest(
            server_dir=server_dir,
            server_name=name,
            server_password=password,
            server_description=description,
            starter_pack_tag=starter_pack_tag,
            citruslib_tag=citruslib_tag,
            skip_starter_pack=skip_starter_pack,
            skip_citruslib=skip_citruslib,
            bepinex_archive=bepinex_archive,
            cancel_token=token,
        )
    except InstallValidationError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from e

    console.print(f"[header]Installing into[/header] {server_dir}")
    orchestrator = InstallOrchestrator(request, config, on_phase=print_phase)
    summary = asyncio.run(_run(orchestrator, token))

    print_install_summary(summary)
    raise typer.Exit(code=int(summary.exit_code))
