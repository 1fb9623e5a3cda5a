"""Unit tests for installer configuration.

Tests for InstallerConfig defaults, validation and TOML round trips.
"""

from pathlib import Path

import pytest
from tabgctl.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    InstallerConfig,
    ReleaseSource,
    load_config,
    load_config_or_default,
    save_config,
)


class TestInstallerConfigDefaults:
    """Tests for the built-in defaults."""

    def test_release_sources(self) -> None:
        """Defaults point at the upstream release repositories."""
        config = InstallerConfig()

        assert config.bepinex.repo == "BepInEx"
        assert config.bepinex.asset == "BepInEx_x64_5.4.22.0.zip"
        assert config.starter_pack.asset == "StarterPack.dll"
        assert config.starter_pack.setup_asset == "StarterPackSetup.exe"
        assert config.starter_pack.tag is None
        assert config.citruslib.asset == "Citruslib.dll"

    def test_server_settings(self) -> None:
        """Server defaults match the dedicated server binaries."""
        server = InstallerConfig().server

        assert server.executables == ["TABG.exe", "TABG-DS.exe"]
        assert server.args == ["-batchmode", "-nographics"]
        assert server.heartbeat_marker == "Heartbeat sent!"
        assert server.first_run_timeout_seconds == 120.0

    def test_extra_fields_forbidden(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValueError):
            InstallerConfig.model_validate({"unknown": 1})

    def test_release_source_requires_asset(self) -> None:
        """Empty asset names are rejected."""
        with pytest.raises(ValueError):
            ReleaseSource(owner="a", repo="b", asset="")


class TestLoadConfig:
    """Tests for load_config and load_config_or_default."""

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """load_config raises ConfigNotFoundError for a missing file."""
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "config.toml")

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """load_config_or_default falls back to defaults."""
        assert load_config_or_default(tmp_path / "config.toml") == InstallerConfig()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("[server\n")

        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Values outside their bounds raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("[server]\nfirst_run_timeout_seconds = -5\n")

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_partial_file_keeps_other_defaults(self, tmp_path: Path) -> None:
        """Sections that are not in the file keep their defaults."""
        path = tmp_path / "config.toml"
        path.write_text('[starter_pack]\nowner = "me"\nrepo = "fork"\nasset = "StarterPack.dll"\n')

        config = load_config(path)

        assert config.starter_pack.owner == "me"
        assert config.starter_pack.config_file == "TheStarterPack.txt"
        assert config.bepinex == InstallerConfig().bepinex


class TestSaveConfig:
    """Tests for save_config."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back unchanged."""
        path = tmp_path / "nested" / "config.toml"
        config = InstallerConfig()
        config.server.launcher = ["wine"]

        saved = save_config(config, path)

        assert saved == path
        assert load_config(path) == config

    def test_unset_tags_are_omitted(self, tmp_path: Path) -> None:
        """TOML has no null, so a None tag is left out of the file."""
        path = save_config(InstallerConfig(), tmp_path / "config.toml")

        text = path.read_text()
        assert 'tag = "v5.4.22"' in text
        assert "[starter_pack]" in text
        assert not list(tmp_path.glob("*.tmp"))
