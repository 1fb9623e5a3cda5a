"""Supervised launches of the dedicated server and its helper tools.

The first server run exists only to make plugins generate their config
files. The run is considered done when the server logs a heartbeat, or
when it dies with the known parser crash that a fresh StarterPack config
provokes. Either way the process is always killed afterwards.
"""

import asyncio
import contextlib
import logging
import os
import signal
import sys
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

import psutil

from tabgctl.core.cancel import CancellationToken, cancellable
from tabgctl.core.errors import CancellationRequested, ProcessError
from tabgctl.process.stale import kill_processes_by_exe

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_MARKER = "Heartbeat sent!"
STREAM_LIMIT = 1024 * 1024
# Time the reader gets to drain buffered output once the process has exited
EXIT_DRAIN_SECONDS = 2.0
EXIT_POLL_SECONDS = 0.2
BEPINEX_CONFIG = Path("BepInEx") / "config" / "BepInEx.cfg"


class ProcessRunOutcome(str, Enum):
    """How a supervised run ended.

    Attributes:
        HEARTBEAT_OBSERVED: The server logged its heartbeat line.
        EXPECTED_CRASH_OBSERVED: The expected crash line appeared, or the
            process exited before anything else was classified.
        TIMED_OUT: Nothing classified within the time budget.
        CANCELLED: The run was cancelled.
    """

    HEARTBEAT_OBSERVED = "heartbeat_observed"
    EXPECTED_CRASH_OBSERVED = "expected_crash_observed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


def requires_elevation(work_dir: Path) -> bool:
    """Check whether the server has to be started with administrator rights.

    On Windows, a server under Program Files cannot write its BepInEx
    config without elevation. Once the config exists, elevation is no
    longer needed.
    """
    if sys.platform != "win32":
        return False
    return "Program Files" in str(work_dir) and not (work_dir / BEPINEX_CONFIG).exists()



def _session_kwargs() -> dict[str, Any]:
    """Start the server in its own session so helpers it spawns die with it."""
    if sys.platform == "win32":
        return {}
    return {"start_new_session": True}


async def _watch_exit(proc: asyncio.subprocess.Process) -> int:
    # proc.wait() may not return while a helper still holds the output pipe
    while proc.returncode is None:
        await asyncio.sleep(EXIT_POLL_SECONDS)
    return proc.returncode

class ProcessSupervisor:
    """Launches processes and classifies their output.

    Args:
        heartbeat_marker: Substring that marks a healthy running server.
        elevated_grace_seconds: How long an elevated run is given before
            it is assumed to have succeeded.
        launcher: Command prefix, e.g. ["wine"] to run Windows binaries.
    """

    def __init__(
        self,
        heartbeat_marker: str = DEFAULT_HEARTBEAT_MARKER,
        elevated_grace_seconds: float = 30.0,
        launcher: Sequence[str] = (),
    ) -> None:
        self._heartbeat_marker = heartbeat_marker
        self._elevated_grace_seconds = elevated_grace_seconds
        self._launcher = list(launcher)

    def build_command(self, exe_path: Path, args: Sequence[str]) -> list[str]:
        """Build the argv for a launch, including any launcher prefix."""
        return [*self._launcher, str(exe_path), *args]

    async def run_supervised(
        self,
        exe_path: Path,
        args: Sequence[str],
        work_dir: Path,
        *,
        expect_crash_pattern: str | None = None,
        timeout: float = 120.0,
        cancel_token: CancellationToken | None = None,
    ) -> ProcessRunOutcome:
        """Run a process until its output is classified.

        Output is read line by line from the merged stdout/stderr stream.
        The read races a timeout and the cancellation token; whichever
        finishes first decides the outcome. The process and its children
        are killed before this returns.

        Args:
            exe_path: Executable to run.
            args: Command-line arguments.
            work_dir: Working directory for the process.
            expect_crash_pattern: Prefix of a stripped output line that
                counts as the expected crash. None disables the check.
            timeout: Seconds to wait for a classified line.
            cancel_token: Token that aborts the run.

        Returns:
            The classified outcome.

        Raises:
            ProcessError: If the process cannot be started.
        """
        if requires_elevation(work_dir):
            return await self._run_elevated(exe_path, args, work_dir, cancel_token)

        cmd = self.build_command(exe_path, args)
        logger.info("Starting %s", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=work_dir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                limit=STREAM_LIMIT,
                **_session_kwargs(),
            )
        except OSError as e:
            raise ProcessError(f"Failed to start {exe_path}: {e}") from e

        assert proc.stdout is not None
        reader = asyncio.create_task(self._classify_output(proc.stdout, expect_crash_pattern))
        exited = asyncio.create_task(_watch_exit(proc))
        timer = asyncio.create_task(asyncio.sleep(timeout))
        tasks: list[asyncio.Task[Any]] = [reader, exited, timer]
        waiter: asyncio.Task[None] | None = None
        if cancel_token is not None:
            waiter = asyncio.create_task(cancel_token.wait())
            tasks.append(waiter)

        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            if waiter is not None and waiter in done:
                outcome = ProcessRunOutcome.CANCELLED
            elif reader in done:
                outcome = reader.result()
            elif exited in done:
                outcome = await self._after_exit(proc, reader)
            else:
                outcome = ProcessRunOutcome.TIMED_OUT
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._terminate(proc, group=True)

        if outcome is ProcessRunOutcome.TIMED_OUT:
            logger.warning("No heartbeat or expected crash within %.0fs", timeout)
        else:
            logger.info("Supervised run ended: %s", outcome.value)
        return outcome

    async def _after_exit(
        self,
        proc: asyncio.subprocess.Process,
        reader: asyncio.Task[ProcessRunOutcome],
    ) -> ProcessRunOutcome:
        """Classify a run whose process exited before its output was classified.

        Lines still buffered in the pipe are given a moment to be read. A
        helper process may keep the pipe open, so the exit alone decides
        once that moment has passed.
        """
        done, _ = await asyncio.wait({reader}, timeout=EXIT_DRAIN_SECONDS)
        if reader in done:
            return reader.result()
        logger.info("Process exited with code %s before a heartbeat", proc.returncode)
        return ProcessRunOutcome.EXPECTED_CRASH_OBSERVED

    async def _classify_output(
        self,
        stream: asyncio.StreamReader,
        crash_pattern: str | None,
    ) -> ProcessRunOutcome:
        while True:
            try:
                raw = await stream.readline()
            except ValueError:
                # Line longer than STREAM_LIMIT; the reader already dropped it
                continue
            if not raw:
                logger.info("Process output closed before a heartbeat")
                return ProcessRunOutcome.EXPECTED_CRASH_OBSERVED

            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            logger.debug("[server] %s", line)
            if self._heartbeat_marker in line:
                return ProcessRunOutcome.HEARTBEAT_OBSERVED
            if crash_pattern and line.strip().startswith(crash_pattern):
                logger.info("Expected crash observed: %s", line.strip())
                return ProcessRunOutcome.EXPECTED_CRASH_OBSERVED

    async def _run_elevated(
        self,
        exe_path: Path,
        args: Sequence[str],
        work_dir: Path,
        cancel_token: CancellationToken | None,
    ) -> ProcessRunOutcome:
        """Run the server through the Windows UAC prompt.

        An elevated process cannot have its output captured, so the run
        is assumed to have succeeded once the grace period has passed.
        """
        import ctypes

        logger.warning(
            "Server under Program Files needs administrator rights. Its output cannot be "
            "observed; success will be assumed after %.0fs without any verification.",
            self._elevated_grace_seconds,
        )
        rc = ctypes.windll.shell32.ShellExecuteW(  # type: ignore[attr-defined]
            None, "runas", str(exe_path), " ".join(args), str(work_dir), 0
        )
        if rc <= 32:
            raise ProcessError(f"Failed to start {exe_path} elevated (ShellExecute code {rc})")

        try:
            await cancellable(asyncio.sleep(self._elevated_grace_seconds), cancel_token)
        except CancellationRequested:
            return ProcessRunOutcome.CANCELLED
        finally:
            kill_processes_by_exe(exe_path)

        logger.warning("Assuming elevated server run succeeded (not observed)")
        return ProcessRunOutcome.HEARTBEAT_OBSERVED

    async def wait_for_exit(
        self,
        exe_path: Path,
        args: Sequence[str],
        work_dir: Path,
        cancel_token: CancellationToken | None = None,
    ) -> int:
        """Run an interactive tool and wait, without a time limit, for it to exit.

        Returns:
            The tool's exit code.

        Raises:
            ProcessError: If the tool cannot be started.
            CancellationRequested: If cancelled; the tool is killed first.
        """
        cmd = self.build_command(exe_path, args)
        logger.info("Starting %s and waiting for it to exit", " ".join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(*cmd, cwd=work_dir)
        except OSError as e:
            raise ProcessError(f"Failed to start {exe_path}: {e}") from e

        try:
            code = await cancellable(proc.wait(), cancel_token)
        except CancellationRequested:
            await self._terminate(proc)
            raise
        logger.info("%s exited with code %d", exe_path.name, code)
        return code

    async def _terminate(self, proc: asyncio.subprocess.Process, group: bool = False) -> None:
        """Kill a process and all of its descendants, then reap it.

        With group set, the process session is killed as well. That also
        reaches helpers whose parent has already exited.
        """
        if proc.returncode is None:
            try:
                children = psutil.Process(proc.pid).children(recursive=True)
            except psutil.NoSuchProcess:
                children = []
            for child in children:
                with contextlib.suppress(psutil.NoSuchProcess, psutil.AccessDenied):
                    child.kill()
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
        if group and sys.platform != "win32":
            with contextlib.suppress(ProcessLookupError, PermissionError):
                os.killpg(proc.pid, signal.SIGKILL)
        await proc.wait()
        logger.debug("Process %d reaped (exit code %s)", proc.pid, proc.returncode)
