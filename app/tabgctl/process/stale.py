"""Best-effort termination of server processes left over from earlier runs.

A running server keeps its files locked, which would make the reset
fail halfway. Every failure here is logged and reported, never raised.
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

import psutil

logger = logging.getLogger(__name__)

KILL_WAIT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class KillResult:
    """Result of terminating a single process.

    Attributes:
        pid: Process id.
        name: Process name as reported by the OS.
        success: Whether the process is gone.
        error: Error message if it could not be killed.
    """

    pid: int
    name: str
    success: bool
    error: str | None = None


def _stem(name: str) -> str:
    # PureWindowsPath splits on both separators
    return PureWindowsPath(name).stem.casefold()


def _kill(proc: psutil.Process, name: str) -> KillResult:
    try:
        proc.kill()
        proc.wait(timeout=KILL_WAIT_SECONDS)
    except psutil.NoSuchProcess:
        return KillResult(pid=proc.pid, name=name, success=True)
    except (psutil.AccessDenied, psutil.TimeoutExpired) as e:
        logger.warning("Could not kill %s (pid %d): %s", name, proc.pid, e)
        return KillResult(pid=proc.pid, name=name, success=False, error=str(e) or type(e).__name__)
    logger.info("Killed %s (pid %d)", name, proc.pid)
    return KillResult(pid=proc.pid, name=name, success=True)


def kill_stale_processes(names: Iterable[str]) -> list[KillResult]:
    """Kill every process whose name matches one of names.

    Names are compared without extension and ignoring case, so "TABG"
    matches both "TABG.exe" and "tabg".

    Args:
        names: Process names to look for.

    Returns:
        One KillResult per matching process.
    """
    wanted = {_stem(n) for n in names}
    own_pid = os.getpid()
    results: list[KillResult] = []

    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info.get("name") or ""
            if proc.pid == own_pid or _stem(name) not in wanted:
                continue
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        results.append(_kill(proc, name))

    if not results:
        logger.info("No running server processes found")
    return results


def kill_processes_by_exe(exe_path: Path) -> list[KillResult]:
    """Kill every process running the given executable.

    Args:
        exe_path: Executable whose processes should be stopped.

    Returns:
        One KillResult per matching process.
    """
    target = os.path.normcase(str(exe_path.resolve()))
    results: list[KillResult] = []

    for proc in psutil.process_iter(["name", "exe"]):
        try:
            exe = proc.info.get("exe")
            if not exe or os.path.normcase(str(Path(exe).resolve())) != target:
                continue
            name = proc.info.get("name") or exe
        except (psutil.NoSuchProcess, psutil.AccessDenied, OSError):
            continue
        results.append(_kill(proc, name))

    return results
