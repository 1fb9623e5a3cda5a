"""Install orchestration for a TABG dedicated server."""

from tabgctl.install.orchestrator import (
    ExitCode,
    InstallOrchestrator,
    InstallSummary,
    Phase,
)
from tabgctl.install.settings import (
    DEFAULT_SERVER_NAME,
    GAME_SETTINGS_FILENAME,
    sanitize_server_name,
    write_game_settings,
)

__all__ = [
    "DEFAULT_SERVER_NAME",
    "GAME_SETTINGS_FILENAME",
    "ExitCode",
    "InstallOrchestrator",
    "InstallSummary",
    "Phase",
    "sanitize_server_name",
    "write_game_settings",
]
