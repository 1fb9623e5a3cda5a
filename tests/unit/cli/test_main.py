"""Unit tests for the main CLI application."""

from tabgctl import __version__
from tabgctl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"tabgctl version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("install", "reset", "sanitize", "doctor", "config"):
            assert command in result.output

    def test_no_args_shows_help(self) -> None:
        """Running without a command prints usage instead of failing silently."""
        result = runner.invoke(app, [])

        assert "Usage" in result.output
