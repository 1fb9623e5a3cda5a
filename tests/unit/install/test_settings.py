"""Unit tests for the base game_settings.txt."""

from pathlib import Path

import pytest
from tabgctl.core.errors import FileSystemError
from tabgctl.install.settings import (
    DEFAULT_SERVER_NAME,
    GAME_SETTINGS_FILENAME,
    render_game_settings,
    sanitize_server_name,
    write_game_settings,
)


class TestSanitizeServerName:
    """Tests for sanitize_server_name."""

    def test_keeps_allowed_characters(self) -> None:
        assert sanitize_server_name("My Server_01-EU") == "My Server_01-EU"

    def test_drops_other_characters(self) -> None:
        assert sanitize_server_name("  Best=Server!! ") == "BestServer"

    @pytest.mark.parametrize("raw", ["", "   ", "!!!"])
    def test_falls_back_to_default(self, raw: str) -> None:
        assert sanitize_server_name(raw) == DEFAULT_SERVER_NAME


class TestRenderGameSettings:
    """Tests for render_game_settings."""

    def test_fills_user_values(self) -> None:
        lines = render_game_settings("My#Server", "Fun times", "hunter2").splitlines()

        assert "ServerName=MyServer" in lines
        assert "ServerDescription=Fun times" in lines
        assert "Password=hunter2" in lines
        assert "Port=7777" in lines
        assert "AntiCheat=false" in lines


class TestWriteGameSettings:
    """Tests for write_game_settings."""

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        (tmp_path / GAME_SETTINGS_FILENAME).write_text("ServerName=Old\n")

        path = write_game_settings(tmp_path, "New", "", "")

        assert "ServerName=New" in path.read_text(encoding="utf-8").splitlines()
        assert "ServerName=Old" not in path.read_text(encoding="utf-8")

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileSystemError):
            write_game_settings(tmp_path / "missing", "Name", "", "")
