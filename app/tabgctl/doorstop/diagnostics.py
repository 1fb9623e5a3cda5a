"""Checks explaining why BepInEx might not load on a server."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tabgctl.doorstop.bootstrapper import (
    DESCRIPTOR_FILENAME,
    PRELOADER_PATH,
    PROXY_NAMES,
    read_descriptor,
)
from tabgctl.utils.formatting import format_size

LOG_CANDIDATES = (Path("LogOutput.log"), Path("BepInEx") / "LogOutput.log")


class CheckStatus(str, Enum):
    """Severity of a single diagnostic check."""

    OK = "ok"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class DiagnosticCheck:
    """Outcome of one check."""

    name: str
    status: CheckStatus
    message: str


@dataclass(slots=True)
class DiagnosticReport:
    """All checks run against one server directory."""

    server_dir: Path
    checks: list[DiagnosticCheck] = field(default_factory=list)

    def add(self, name: str, status: CheckStatus, message: str) -> None:
        self.checks.append(DiagnosticCheck(name=name, status=status, message=message))

    @property
    def ok(self) -> bool:
        """True when no check reported an error."""
        return all(c.status is not CheckStatus.ERROR for c in self.checks)


def diagnose(server_dir: Path) -> DiagnosticReport:
    """Inspect a server directory for a working BepInEx setup.

    Args:
        server_dir: Server root directory.

    Returns:
        DiagnosticReport with one entry per check, in a fixed order.
    """
    report = DiagnosticReport(server_dir=server_dir)

    if (server_dir / PRELOADER_PATH).is_file():
        report.add("preloader", CheckStatus.OK, "BepInEx core files found")
    else:
        report.add("preloader", CheckStatus.ERROR, "BepInEx is not installed")

    proxies = [name for name in PROXY_NAMES if (server_dir / name).is_file()]
    if proxies:
        sizes = ", ".join(
            f"{n} ({format_size((server_dir / n).stat().st_size)})" for n in proxies
        )
        report.add("proxy", CheckStatus.OK, f"Doorstop proxy found: {sizes}")
    else:
        names = " nor ".join(PROXY_NAMES)
        report.add("proxy", CheckStatus.ERROR, f"No Doorstop proxy found (neither {names})")

    descriptor_path = server_dir / DESCRIPTOR_FILENAME
    if not descriptor_path.is_file():
        report.add("descriptor", CheckStatus.ERROR, f"{DESCRIPTOR_FILENAME} missing")
    else:
        try:
            values = {k.lower(): v.lower() for k, v in read_descriptor(descriptor_path).items()}
        except OSError as e:
            report.add("descriptor", CheckStatus.ERROR, f"Cannot read {DESCRIPTOR_FILENAME}: {e}")
        else:
            if values.get("enabled") == "true":
                report.add("descriptor", CheckStatus.OK, "Doorstop is enabled")
            else:
                report.add("descriptor", CheckStatus.WARNING, "Doorstop is not enabled in config")
            if values.get("redirectoutputlog") != "true":
                report.add(
                    "output_log",
                    CheckStatus.INFO,
                    "Output log redirection is disabled (normal for production)",
                )

    if any((server_dir / p).is_file() for p in LOG_CANDIDATES):
        report.add("bepinex_log", CheckStatus.OK, "BepInEx log found, loader has run at least once")
    else:
        report.add(
            "bepinex_log",
            CheckStatus.WARNING,
            "No BepInEx log found; the loader may not be running. "
            "Check antivirus exclusions or move the server out of Program Files.",
        )

    if "Program Files" in str(server_dir):
        report.add(
            "location",
            CheckStatus.WARNING,
            "Server is under Program Files, which often requires administrator privileges",
        )

    return report
