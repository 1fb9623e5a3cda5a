"""Unit tests for the sanitize command."""

import json
from pathlib import Path

from tabgctl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestSanitizeCommand:
    """Tests for tabgctl sanitize."""

    def test_sanitizes_config(self, server_dir: Path) -> None:
        config = server_dir / "TheStarterPack.txt"
        config.write_text("KillsToWin=\nRingSettings=\nMaxPlayers=10, // max\n")

        result = runner.invoke(app, ["sanitize", str(server_dir)])

        assert result.exit_code == 0
        assert "3 line(s) changed" in result.output
        assert "RingSettings" in result.output
        lines = config.read_text().splitlines()
        assert lines == ["KillsToWin=0", "// RingSettings=", "MaxPlayers=10"]

    def test_clean_config(self, server_dir: Path) -> None:
        (server_dir / "TheStarterPack.txt").write_text("KillsToWin=3\n")

        result = runner.invoke(app, ["sanitize", str(server_dir)])

        assert result.exit_code == 0
        assert "already clean" in result.output

    def test_missing_config(self, server_dir: Path) -> None:
        result = runner.invoke(app, ["sanitize", str(server_dir)])

        assert result.exit_code == 1

    def test_json_missing_file(self, server_dir: Path) -> None:
        (server_dir / "TheStarterPack.txt").write_text("KillsToWin=3\n")

        result = runner.invoke(app, ["sanitize", str(server_dir), "--json"])

        assert result.exit_code == 1

    def test_json_clean_file(self, server_dir: Path) -> None:
        (server_dir / "TheStarterPack.txt").write_text("KillsToWin=3\n")
        (server_dir / "TheStarterPack.json").write_text(json.dumps({}))

        result = runner.invoke(app, ["sanitize", str(server_dir), "--json"])

        assert result.exit_code == 0
