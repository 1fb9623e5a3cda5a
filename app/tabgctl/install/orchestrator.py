"""Install orchestration.

An install is a fixed, linear sequence of phases. Phases never run
concurrently; they hand results to each other only through the server
directory. The cancellation token is checked before every phase and
raced against every long wait inside one.

Exit codes follow the classic installer contract: 0 on success, 1 when
cancelled, 2 on any failure.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path

from tabgctl.core.cancel import cancellable
from tabgctl.core.config import InstallerConfig
from tabgctl.core.errors import (
    CancellationRequested,
    InstallError,
    InstallValidationError,
    ProcessError,
    SanitizeError,
)
from tabgctl.core.paths import get_downloads_dir
from tabgctl.doorstop.bootstrapper import PLUGINS_DIR, DoorstopBootstrapper, DoorstopDescriptor
from tabgctl.fetch.github import AssetFetcher
from tabgctl.install.settings import write_game_settings
from tabgctl.models.request import InstallRequest
from tabgctl.process.stale import KillResult, kill_stale_processes
from tabgctl.process.supervisor import ProcessRunOutcome, ProcessSupervisor
from tabgctl.reset.engine import DeletionReport, WhitelistResetEngine
from tabgctl.reset.rules import ensure_whitelist
from tabgctl.sanitize.text import SanitizeResult, sanitize_file

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Installation phases in execution order."""

    INIT = "init"
    KILL_STALE_PROCESSES = "kill_stale_processes"
    WRITE_BASE_SETTINGS = "write_base_settings"
    HARD_RESET = "hard_reset"
    BOOTSTRAP_DOORSTOP = "bootstrap_doorstop"
    FETCH_ASSETS = "fetch_assets"
    FIRST_RUN = "first_run"
    AWAIT_USER_EDIT = "await_user_edit"
    SANITIZE = "sanitize"
    DONE = "done"


# Phases that only run when the StarterPack is installed
PLUGIN_PHASES = (Phase.FETCH_ASSETS, Phase.FIRST_RUN, Phase.AWAIT_USER_EDIT, Phase.SANITIZE)


class ExitCode(IntEnum):
    """Process exit codes of an install run."""

    SUCCESS = 0
    CANCELLED = 1
    FAILED = 2


@dataclass(slots=True)
class InstallSummary:
    """What happened during an install run.

    Attributes:
        exit_code: Final exit code.
        completed: Phases that finished, in order.
        failed_phase: Phase that was running when the run stopped early.
        error: Failure message, if the run failed.
        reset_report: Result of the hard reset, if it ran.
        first_run: Outcome of the supervised first server run, if it ran.
        sanitize_result: Result of sanitizing the plugin config, if it ran.
    """

    exit_code: ExitCode = ExitCode.SUCCESS
    completed: list[Phase] = field(default_factory=list)
    failed_phase: Phase | None = None
    error: str | None = None
    reset_report: DeletionReport | None = None
    first_run: ProcessRunOutcome | None = None
    sanitize_result: SanitizeResult | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the run reached DONE."""
        return self.exit_code is ExitCode.SUCCESS


ProcessKiller = Callable[[Iterable[str]], list[KillResult]]
PhaseCallback = Callable[[Phase], None]


class InstallOrchestrator:
    """Runs one installation from start to finish.

    Every collaborator can be injected; anything not given is built from
    the configuration. A fetcher created here is closed when the run ends.

    Args:
        request: What to install and where.
        config: Installer configuration. Defaults to built-in defaults.
        fetcher: GitHub asset fetcher.
        supervisor: Process supervisor for the server and setup tool.
        reset_engine: Engine for the hard reset.
        bootstrapper: BepInEx bootstrapper.
        process_killer: Function killing stale server processes by name.
        cache_dir: Download cache for the BepInEx archive.
        on_phase: Called with each phase as it starts.
    """

    def __init__(
        self,
        request: InstallRequest,
        config: InstallerConfig | None = None,
        *,
        fetcher: AssetFetcher | None = None,
        supervisor: ProcessSupervisor | None = None,
        reset_engine: WhitelistResetEngine | None = None,
        bootstrapper: DoorstopBootstrapper | None = None,
        process_killer: ProcessKiller = kill_stale_processes,
        cache_dir: Path | None = None,
        on_phase: PhaseCallback | None = None,
    ) -> None:
        self._request = request
        self._config = config or InstallerConfig()
        self._token = request.cancel_token
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        server = self._config.server
        self._supervisor = supervisor or ProcessSupervisor(
            heartbeat_marker=server.heartbeat_marker,
            elevated_grace_seconds=server.elevated_grace_seconds,
            launcher=server.launcher,
        )
        self._reset_engine = reset_engine or WhitelistResetEngine()
        self._bootstrapper = bootstrapper
        self._process_killer = process_killer
        self._cache_dir = cache_dir or get_downloads_dir()
        self._on_phase = on_phase

    @property
    def server_dir(self) -> Path:
        return self._request.server_dir

    def _steps(self) -> list[tuple[Phase, Callable[[InstallSummary], Awaitable[None]]]]:
        steps: list[tuple[Phase, Callable[[InstallSummary], Awaitable[None]]]] = [
            (Phase.INIT, self._init),
            (Phase.KILL_STALE_PROCESSES, self._kill_stale_processes),
            (Phase.WRITE_BASE_SETTINGS, self._write_base_settings),
            (Phase.HARD_RESET, self._hard_reset),
            (Phase.BOOTSTRAP_DOORSTOP, self._bootstrap_doorstop),
        ]
        if not self._request.skip_starter_pack:
            steps += [
                (Phase.FETCH_ASSETS, self._fetch_assets),
                (Phase.FIRST_RUN, self._first_run),
                (Phase.AWAIT_USER_EDIT, self._await_user_edit),
                (Phase.SANITIZE, self._sanitize),
            ]
        return steps

    async def run(self) -> InstallSummary:
        """Execute every phase in order.

        Returns:
            InstallSummary with the exit code and per-phase details.
            This method does not raise for installation failures.
        """
        summary = InstallSummary()
        phase = Phase.INIT
        try:
            for phase, step in self._steps():
                self._token.raise_if_cancelled()
                self._enter(phase)
                await step(summary)
                summary.completed.append(phase)
            if self._request.skip_starter_pack:
                logger.info("Skipping StarterPack installation as requested")
            self._enter(Phase.DONE)
            summary.completed.append(Phase.DONE)
            logger.info("Fresh install complete in %s", self.server_dir)
        except CancellationRequested:
            logger.warning("Installation cancelled during phase %s", phase.value)
            summary.exit_code = ExitCode.CANCELLED
            summary.failed_phase = phase
        except InstallError as e:
            logger.error("Installation failed in phase %s: %s", phase.value, e)
            summary.exit_code = ExitCode.FAILED
            summary.failed_phase = phase
            summary.error = str(e)
        except Exception as e:
            logger.exception("Unexpected error in phase %s", phase.value)
            summary.exit_code = ExitCode.FAILED
            summary.failed_phase = phase
            summary.error = f"{type(e).__name__}: {e}"
        finally:
            if self._owns_fetcher and self._fetcher is not None:
                await self._fetcher.aclose()
        return summary

    def _enter(self, phase: Phase) -> None:
        logger.debug("Entering phase %s", phase.value)
        if self._on_phase is not None:
            self._on_phase(phase)

    def _get_fetcher(self) -> AssetFetcher:
        if self._fetcher is None:
            github = self._config.github
            self._fetcher = AssetFetcher(
                api_url=github.api_url,
                token=github.token,
                timeout=github.timeout_seconds,
            )
        return self._fetcher

    def _get_bootstrapper(self) -> DoorstopBootstrapper:
        if self._bootstrapper is None:
            fetcher = None if self._request.bepinex_archive is not None else self._get_fetcher()
            descriptor = DoorstopDescriptor(
                redirect_output_log=self._config.doorstop.redirect_output_log,
            )
            self._bootstrapper = DoorstopBootstrapper(
                fetcher,
                self._config.bepinex,
                self._cache_dir,
                descriptor,
            )
        return self._bootstrapper

    # === Phases ===

    async def _init(self, summary: InstallSummary) -> None:
        if not self.server_dir.is_dir():
            msg = f"Server directory does not exist or is not a directory: {self.server_dir}"
            raise InstallValidationError(msg)

    async def _kill_stale_processes(self, summary: InstallSummary) -> None:
        names = self._config.server.stale_process_names
        results = await asyncio.to_thread(self._process_killer, names)
        failed = [r for r in results if not r.success]
        if failed:
            logger.warning("%d stale process(es) could not be killed", len(failed))

    async def _write_base_settings(self, summary: InstallSummary) -> None:
        request = self._request
        write_game_settings(
            self.server_dir,
            name=request.server_name,
            description=request.server_description,
            password=request.server_password,
        )

    async def _hard_reset(self, summary: InstallSummary) -> None:
        whitelist = ensure_whitelist(self.server_dir)
        logger.info("Loaded %d whitelist rules", len(whitelist.rules))
        summary.reset_report = await asyncio.to_thread(
            self._reset_engine.reset, self.server_dir, whitelist.rules
        )
        if summary.reset_report.failed:
            logger.warning("%d entries could not be deleted", len(summary.reset_report.failed))

    async def _bootstrap_doorstop(self, summary: InstallSummary) -> None:
        await self._get_bootstrapper().bootstrap(
            self.server_dir,
            archive=self._request.bepinex_archive,
            cancel_token=self._token,
        )
        if self._request.skip_citruslib:
            logger.info("Skipping CitrusLib as requested")
            return
        src = self._config.citruslib
        tag = self._request.citruslib_tag or src.tag
        await cancellable(
            self._get_fetcher().fetch_asset(
                src.owner, src.repo, src.asset, self.server_dir / PLUGINS_DIR, tag
            ),
            self._token,
        )

    async def _fetch_assets(self, summary: InstallSummary) -> None:
        src = self._config.starter_pack
        tag = self._request.starter_pack_tag or src.tag
        fetcher = self._get_fetcher()

        plugin = await cancellable(
            fetcher.resolve_asset(src.owner, src.repo, src.asset, tag), self._token
        )
        logger.info("Using StarterPack release %s", plugin.tag)
        await cancellable(
            fetcher.download(plugin.url, self.server_dir / PLUGINS_DIR, plugin.name),
            self._token,
        )
        # Pin the setup tool to the same release as the plugin
        await cancellable(
            fetcher.fetch_asset(src.owner, src.repo, src.setup_asset, self.server_dir, plugin.tag),
            self._token,
        )

    def _find_server_executable(self) -> Path:
        for name in self._config.server.executables:
            candidate = self.server_dir / name
            if candidate.is_file():
                return candidate
        names = ", ".join(self._config.server.executables)
        raise ProcessError(f"No server executable found in {self.server_dir} (looked for {names})")

    async def _first_run(self, summary: InstallSummary) -> None:
        server = self._config.server
        exe = self._find_server_executable()
        logger.info("Running server once to generate the StarterPack config")
        outcome = await self._supervisor.run_supervised(
            exe,
            server.args,
            self.server_dir,
            expect_crash_pattern=server.expected_crash_pattern,
            timeout=server.first_run_timeout_seconds,
            cancel_token=self._token,
        )
        summary.first_run = outcome
        if outcome is ProcessRunOutcome.CANCELLED:
            raise CancellationRequested("First server run cancelled")
        if outcome is ProcessRunOutcome.TIMED_OUT:
            logger.warning("First server run timed out; continuing, the config may be incomplete")

    async def _await_user_edit(self, summary: InstallSummary) -> None:
        setup = self.server_dir / self._config.starter_pack.setup_asset
        if not setup.is_file():
            raise ProcessError(f"Setup tool not found: {setup}")
        logger.info("Make your changes in the setup window, save, then close it to continue")
        code = await self._supervisor.wait_for_exit(setup, [], self.server_dir, self._token)
        if code != 0:
            logger.warning("%s exited with code %d", setup.name, code)

    async def _sanitize(self, summary: InstallSummary) -> None:
        path = self.server_dir / self._config.starter_pack.config_file
        try:
            summary.sanitize_result = sanitize_file(path)
        except SanitizeError as e:
            logger.warning("Failed to sanitize %s: %s", path.name, e)
