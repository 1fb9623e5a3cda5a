"""Shared Rich display functions for reset plans, diagnostics and install runs."""

from rich.table import Table

from tabgctl.doorstop.diagnostics import CheckStatus, DiagnosticReport
from tabgctl.install.orchestrator import ExitCode, InstallSummary, Phase
from tabgctl.reset.engine import DeletionReport, ResetPlan
from tabgctl.utils.formatting import (
    console,
    create_table,
    print_info,
    print_success,
    print_warning,
)

PHASE_LABELS: dict[Phase, str] = {
    Phase.INIT: "Checking server directory",
    Phase.KILL_STALE_PROCESSES: "Stopping running servers",
    Phase.WRITE_BASE_SETTINGS: "Writing game_settings.txt",
    Phase.HARD_RESET: "Resetting to vanilla files",
    Phase.BOOTSTRAP_DOORSTOP: "Installing BepInEx",
    Phase.FETCH_ASSETS: "Downloading StarterPack",
    Phase.FIRST_RUN: "Generating StarterPack config",
    Phase.AWAIT_USER_EDIT: "Waiting for StarterPack setup",
    Phase.SANITIZE: "Sanitizing StarterPack config",
    Phase.DONE: "Done",
}

_STATUS_MARKUP: dict[CheckStatus, str] = {
    CheckStatus.OK: "[success]OK[/success]",
    CheckStatus.INFO: "[info]INFO[/info]",
    CheckStatus.WARNING: "[warning]WARN[/warning]",
    CheckStatus.ERROR: "[error]FAIL[/error]",
}


def print_phase(phase: Phase) -> None:
    """Print the header line for an install phase."""
    console.print(f"[phase]==>[/phase] {PHASE_LABELS[phase]}")


def create_plan_table(plan: ResetPlan, dry_run: bool = False, limit: int | None = None) -> Table:
    """Create a table listing the entries a reset would delete.

    Args:
        plan: Computed reset plan.
        dry_run: Whether this is a dry-run (changes table title).
        limit: Show at most this many entries.

    Returns:
        Rich Table configured for plan display.
    """
    title = "Planned Deletions (Dry Run)" if dry_run else "Planned Deletions"
    table = create_table(title, "Type", "Path")
    directories = set(plan.directories)

    entries = plan.deletions[:limit] if limit else plan.deletions
    for rel in entries:
        kind = "dir" if rel in directories else "file"
        table.add_row(f"[muted]{kind}[/muted]", f"[delete]{rel}[/delete]")

    return table


def print_plan_summary(plan: ResetPlan, limit: int | None = None) -> None:
    shown = min(limit, len(plan.deletions)) if limit else len(plan.deletions)
    console.print(
        f"\n[dim]{len(plan.kept)} kept, {len(plan.files)} file(s) and "
        f"{len(plan.directories)} dir(s) to delete[/dim]"
    )
    if shown < len(plan.deletions):
        console.print(f"[dim](showing {shown} of {len(plan.deletions)})[/dim]")


def print_deletion_report(report: DeletionReport) -> None:
    """Print failures and a one-line summary of a reset run."""
    if report.failed:
        table = create_table("Failed Deletions", "Path", "Error")
        for failure in report.failed:
            table.add_row(failure.path, f"[error]{failure.error}[/error]")
        console.print(table)

    if report.dry_run:
        print_info(f"Dry-run: {len(report.deleted)} entries would be deleted.")
    elif report.failed:
        print_warning(f"{len(report.deleted)} deleted, {len(report.failed)} failed")
    else:
        print_success(f"Reset complete: {len(report.deleted)} entries deleted.")


def create_diagnostics_table(report: DiagnosticReport) -> Table:
    """Create a table with one row per diagnostic check."""
    title = f"BepInEx Diagnostics: {report.server_dir}"
    table = create_table(title, "Status", "Check", "Details")
    for check in report.checks:
        table.add_row(_STATUS_MARKUP[check.status], check.name, check.message)
    return table


def print_install_summary(summary: InstallSummary) -> None:
    """Print the final result of an install run."""
    if summary.reset_report is not None and summary.reset_report.failed:
        print_warning(f"{len(summary.reset_report.failed)} file(s) could not be removed")
    if summary.sanitize_result is not None:
        for key in summary.sanitize_result.commented_keys:
            print_warning(f"'{key}' was empty and has been commented out")

    failed_label = PHASE_LABELS.get(summary.failed_phase, "") if summary.failed_phase else ""
    if summary.exit_code is ExitCode.SUCCESS:
        print_success("Fresh install complete. Your server is ready.")
    elif summary.exit_code is ExitCode.CANCELLED:
        print_warning(f"Installation cancelled ({failed_label.lower()}).")
    else:
        console.print(f"[error]Installation failed:[/error] {failed_label}")
        if summary.error:
            console.print(f"[muted]{summary.error}[/muted]")
