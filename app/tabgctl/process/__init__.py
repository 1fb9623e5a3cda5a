"""Process supervision and cleanup."""

from tabgctl.process.stale import KillResult, kill_processes_by_exe, kill_stale_processes
from tabgctl.process.supervisor import ProcessRunOutcome, ProcessSupervisor, requires_elevation

__all__ = [
    "KillResult",
    "ProcessRunOutcome",
    "ProcessSupervisor",
    "kill_processes_by_exe",
    "kill_stale_processes",
    "requires_elevation",
]
