"""BepInEx mod-loader bootstrap.

BepInEx is injected into the Unity server through Unity Doorstop: a
proxy library placed next to the executable that the OS loader picks up
before the game's own code, plus a descriptor telling the proxy which
assembly to load. Bootstrapping extracts the BepInEx archive, places the
proxy under both names Windows will load, and rewrites the descriptor.
"""

import logging
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path

from tabgctl.core.cancel import CancellationToken, cancellable
from tabgctl.core.config import ReleaseSource
from tabgctl.core.errors import ExtractionError, FileSystemError
from tabgctl.fetch.github import AssetFetcher

logger = logging.getLogger(__name__)

DESCRIPTOR_FILENAME = "doorstop_config.ini"
PROXY_SOURCE = Path("doorstop_libs") / "x64" / "winhttp.dll"
PROXY_NAMES = ("winhttp.dll", "version.dll")
PLUGINS_DIR = Path("BepInEx") / "plugins"
PRELOADER_PATH = Path("BepInEx") / "core" / "BepInEx.Preloader.dll"


def _ini_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True, slots=True)
class DoorstopDescriptor:
    """Contents of doorstop_config.ini.

    Attributes:
        enabled: Whether the proxy injects anything at all.
        target_assembly: Assembly the proxy loads, relative to the server root.
        redirect_output_log: Redirect Unity's output log next to the executable.
        ignore_disable_switch: Ignore the command-line switch that disables injection.
        dll_search_path_override: Extra search path for managed assemblies.
    """

    enabled: bool = True
    target_assembly: str = "BepInEx\\core\\BepInEx.Preloader.dll"
    redirect_output_log: bool = False
    ignore_disable_switch: bool = False
    dll_search_path_override: str = ""

    def render(self) -> str:
        """Render the full descriptor text."""
        lines = [
            "[UnityDoorstop]",
            f"enabled={_ini_bool(self.enabled)}",
            f"targetAssembly={self.target_assembly}",
            f"redirectOutputLog={_ini_bool(self.redirect_output_log)}",
            f"ignoreDisableSwitch={_ini_bool(self.ignore_disable_switch)}",
            f"dllSearchPathOverride={self.dll_search_path_override}",
        ]
        return "\n".join(lines) + "\n"

    def write(self, server_dir: Path) -> Path:
        """Overwrite the descriptor in server_dir.

        Raises:
            FileSystemError: If the file cannot be written.
        """
        path = server_dir / DESCRIPTOR_FILENAME
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(self.render())
        except OSError as e:
            raise FileSystemError(f"Failed to write {path}: {e}") from e
        logger.info("Doorstop descriptor written to %s (enabled=%s)", path, self.enabled)
        return path


def read_descriptor(path: Path) -> dict[str, str]:
    """Parse the key/value pairs of a descriptor file.

    Keys are returned as written; section headers and comments are skipped.

    Raises:
        OSError: If the file cannot be read.
    """
    values: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8-sig").splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";", "[")) or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


class DoorstopBootstrapper:
    """Installs BepInEx into a server directory.

    Args:
        fetcher: Fetcher used to download the archive. May be None when
            a local archive is always supplied.
        source: Release holding the BepInEx archive.
        cache_dir: Directory that receives downloaded archives.
        descriptor: Descriptor written after extraction.
    """

    def __init__(
        self,
        fetcher: AssetFetcher | None,
        source: ReleaseSource,
        cache_dir: Path,
        descriptor: DoorstopDescriptor | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._source = source
        self._cache_dir = cache_dir
        self._descriptor = descriptor or DoorstopDescriptor()

    async def bootstrap(
        self,
        server_dir: Path,
        archive: Path | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Path:
        """Download (unless given) and install the BepInEx archive.

        Args:
            server_dir: Server root directory.
            archive: Local archive to install instead of downloading.
            cancel_token: Token checked before each step.

        Returns:
            Path of the archive that was installed.

        Raises:
            FetchError: If the archive cannot be downloaded.
            ExtractionError: If the archive cannot be extracted.
            FileSystemError: If the descriptor cannot be written.
            CancellationRequested: If cancelled between steps.
        """
        if archive is None:
            if self._fetcher is None:
                msg = "No archive given and no fetcher configured"
                raise ExtractionError(msg)
            src = self._source
            logger.info(
                "Downloading BepInEx %s from %s/%s", src.tag or "latest", src.owner, src.repo
            )
            archive = await cancellable(
                self._fetcher.fetch_asset(src.owner, src.repo, src.asset, self._cache_dir, src.tag),
                cancel_token,
            )
        else:
            logger.info("Using local BepInEx archive %s", archive)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        self.install_archive(archive, server_dir)
        return archive

    def install_archive(self, archive: Path, server_dir: Path) -> None:
        """Extract the archive and finish the loader setup.

        Running this twice with the same archive leaves identical files.

        Raises:
            ExtractionError: If the archive is unreadable or cannot be unpacked.
            FileSystemError: If the descriptor or plugins directory cannot be written.
        """
        self._extract(archive, server_dir)
        self._install_proxy(server_dir)
        self._descriptor.write(server_dir)

        plugins = server_dir / PLUGINS_DIR
        try:
            plugins.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Failed to create {plugins}: {e}") from e
        logger.info("BepInEx installed into %s", server_dir)

    def _extract(self, archive: Path, server_dir: Path) -> None:
        logger.info("Extracting %s into %s", archive.name, server_dir)
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(server_dir)
        except zipfile.BadZipFile as e:
            raise ExtractionError(f"Corrupt archive {archive}: {e}") from e
        except OSError as e:
            raise ExtractionError(f"Failed to extract {archive}: {e}") from e

    def _install_proxy(self, server_dir: Path) -> None:
        """Copy the x64 proxy to the root under every name the loader accepts.

        Copy failures are logged; a missing proxy is reported by diagnostics.
        """
        source = server_dir / PROXY_SOURCE
        primary = server_dir / PROXY_NAMES[0]
        try:
            if source.is_file():
                shutil.copyfile(source, primary)
                logger.info("Copied x64 Doorstop proxy to %s", primary.name)
            else:
                logger.warning("Doorstop proxy %s not found in archive", PROXY_SOURCE.as_posix())
            if primary.is_file():
                for alias in PROXY_NAMES[1:]:
                    shutil.copyfile(primary, server_dir / alias)
                    logger.info("Created %s as alternative loader", alias)
        except OSError as e:
            logger.warning("Failed to install Doorstop proxy: %s", e)
