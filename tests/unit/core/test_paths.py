"""Unit tests for XDG path management.

Tests for the paths module that provides XDG-compliant directory paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

from tabgctl.core.paths import (
    APP_NAME,
    get_cache_dir,
    get_config_dir,
    get_config_path,
    get_downloads_dir,
    get_theme_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            os.environ.pop("XDG_CONFIG_HOME", None)

            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME


class TestFilePaths:
    """Tests for paths of individual files."""

    def test_config_and_theme_live_in_config_dir(self, tmp_path: Path) -> None:
        """config.toml and theme.toml sit in the config directory."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_config_path() == tmp_path / APP_NAME / "config.toml"
            assert get_theme_path() == tmp_path / APP_NAME / "theme.toml"

    def test_downloads_live_in_cache_dir(self, tmp_path: Path) -> None:
        """Downloaded archives are cached below the XDG cache directory."""
        with patch.dict(os.environ, {"XDG_CACHE_HOME": str(tmp_path)}):
            assert get_cache_dir() == tmp_path / APP_NAME
            assert get_downloads_dir() == tmp_path / APP_NAME / "downloads"

