"""Installer configuration and settings.

This module provides the configuration model and I/O functions for
tabgctl. Every value has a default matching the upstream projects the
installer deploys, so a missing config file is never an error for the
install command itself.

Configuration is stored in ~/.config/tabgctl/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tabgctl.core.paths import get_config_path

logger = logging.getLogger(__name__)


class ReleaseSource(BaseModel):
    """A GitHub release asset to deploy.

    Attributes:
        owner: Repository owner.
        repo: Repository name.
        tag: Release tag. None selects the latest release.
        asset: Asset file name within the release.
    """

    model_config = ConfigDict(extra="forbid")

    owner: Annotated[str, Field(min_length=1)]
    repo: Annotated[str, Field(min_length=1)]
    tag: str | None = None
    asset: Annotated[str, Field(min_length=1)]


class StarterPackSource(ReleaseSource):
    """The StarterPack plugin release, which ships a setup tool next to the DLL.

    Attributes:
        setup_asset: Interactive configuration tool shipped in the same release.
        config_file: Config file the plugin generates in the server root.
    """

    setup_asset: Annotated[str, Field(min_length=1)] = "StarterPackSetup.exe"
    config_file: Annotated[str, Field(min_length=1)] = "TheStarterPack.txt"


class GitHubSettings(BaseModel):
    """Settings for talking to the GitHub releases API."""

    model_config = ConfigDict(extra="forbid")

    api_url: str = "https://api.github.com"
    token: str | None = None
    timeout_seconds: Annotated[float, Field(gt=0, le=600)] = 60.0


class ServerSettings(BaseModel):
    """How the dedicated server is located, launched and supervised."""

    model_config = ConfigDict(extra="forbid")

    executables: Annotated[list[str], Field(min_length=1)] = ["TABG.exe", "TABG-DS.exe"]
    args: list[str] = ["-batchmode", "-nographics"]
    launcher: Annotated[
        list[str],
        Field(description="Command prefix for running Windows binaries, e.g. ['wine']"),
    ] = []
    stale_process_names: list[str] = [
        "TABG",
        "TABG-DS",
        "TotallyAccurateBattlegroundsDedicatedServer",
    ]
    first_run_timeout_seconds: Annotated[float, Field(gt=0, le=3600)] = 120.0
    elevated_grace_seconds: Annotated[float, Field(ge=0, le=600)] = 30.0
    heartbeat_marker: Annotated[str, Field(min_length=1)] = "Heartbeat sent!"
    expected_crash_pattern: Annotated[str, Field(min_length=1)] = (
        "FormatException: Input string was not in a correct format."
    )


class DoorstopSettings(BaseModel):
    """Values written to the Unity Doorstop descriptor."""

    model_config = ConfigDict(extra="forbid")

    redirect_output_log: bool = False


def _bepinex_default() -> ReleaseSource:
    return ReleaseSource(
        owner="BepInEx",
        repo="BepInEx",
        tag="v5.4.22",
        asset="BepInEx_x64_5.4.22.0.zip",
    )


def _starter_pack_default() -> StarterPackSource:
    return StarterPackSource(
        owner="ContagiouslyStupid",
        repo="TABGStarterPack",
        asset="StarterPack.dll",
    )


def _citruslib_default() -> ReleaseSource:
    return ReleaseSource(owner="CyrusTheLesser", repo="Citruslib", asset="Citruslib.dll")


class InstallerConfig(BaseModel):
    """Top-level configuration for tabgctl.

    Attributes:
        bepinex: Mod-loader archive release.
        starter_pack: StarterPack plugin release.
        citruslib: CitrusLib plugin release.
        github: GitHub API settings.
        server: Server launch and supervision settings.
        doorstop: Doorstop descriptor settings.
    """

    model_config = ConfigDict(extra="forbid")

    bepinex: ReleaseSource = Field(default_factory=_bepinex_default)
    starter_pack: StarterPackSource = Field(default_factory=_starter_pack_default)
    citruslib: ReleaseSource = Field(default_factory=_citruslib_default)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    doorstop: DoorstopSettings = Field(default_factory=DoorstopSettings)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> InstallerConfig:
    """Load installer configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated InstallerConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return InstallerConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> InstallerConfig:
    """Load the config file, falling back to defaults when it doesn't exist.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return InstallerConfig()


def save_config(config: InstallerConfig, path: Path | None = None) -> Path:
    """Save installer configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The InstallerConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(_config_to_dict(config), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: InstallerConfig) -> dict[str, object]:
    """Convert InstallerConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are omitted.
    """
    return config.model_dump(mode="json", exclude_none=True)
