"""BepInEx bootstrap through Unity Doorstop, and loader diagnostics."""

from tabgctl.doorstop.bootstrapper import (
    DESCRIPTOR_FILENAME,
    PLUGINS_DIR,
    DoorstopBootstrapper,
    DoorstopDescriptor,
    read_descriptor,
)
from tabgctl.doorstop.diagnostics import (
    CheckStatus,
    DiagnosticCheck,
    DiagnosticReport,
    diagnose,
)

__all__ = [
    "DESCRIPTOR_FILENAME",
    "PLUGINS_DIR",
    "CheckStatus",
    "DiagnosticCheck",
    "DiagnosticReport",
    "DoorstopBootstrapper",
    "DoorstopDescriptor",
    "diagnose",
    "read_descriptor",
]
