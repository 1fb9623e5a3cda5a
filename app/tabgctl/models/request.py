"""Install request model.

The request is created once per run and shared read-only by every phase
of the installation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from tabgctl.core.cancel import CancellationToken
from tabgctl.core.errors import InstallValidationError


@dataclass(frozen=True, slots=True)
class InstallRequest:
    """Everything the user asked for in one installation run.

    Attributes:
        server_dir: Root of the dedicated server installation.
        server_name: Display name written to game_settings.txt.
        server_password: Join password written to game_settings.txt.
        server_description: Description written to game_settings.txt.
        starter_pack_tag: StarterPack release tag. None selects the latest release.
        citruslib_tag: CitrusLib release tag. None selects the latest release.
        skip_starter_pack: Skip the StarterPack deployment and first-run phases.
        skip_citruslib: Skip installing CitrusLib.
        bepinex_archive: Local BepInEx archive to use instead of downloading one.
        cancel_token: Shared cancellation signal for the run.
    """

    server_dir: Path
    server_name: str = ""
    server_password: str = ""
    server_description: str = ""
    starter_pack_tag: str | None = None
    citruslib_tag: str | None = None
    skip_starter_pack: bool = False
    skip_citruslib: bool = False
    bepinex_archive: Path | None = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken, compare=False)

    def __post_init__(self) -> None:
        """Reject values that would corrupt the line-based settings file."""
        for name in ("server_name", "server_password", "server_description"):
            value = getattr(self, name)
            if "\n" in value or "\r" in value:
                msg = f"{name} must not contain line breaks"
                raise InstallValidationError(msg)
        for name in ("starter_pack_tag", "citruslib_tag"):
            value = getattr(self, name)
            if value is not None and not value.strip():
                msg = f"{name} must not be blank"
                raise InstallValidationError(msg)
