"""Unit tests for InstallRequest."""

from pathlib import Path

import pytest
from tabgctl.core.errors import InstallValidationError
from tabgctl.models.request import InstallRequest


class TestInstallRequest:
    """Tests for InstallRequest validation."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Only the server directory is required."""
        request = InstallRequest(server_dir=tmp_path)

        assert request.server_name == ""
        assert request.starter_pack_tag is None
        assert request.skip_starter_pack is False
        assert request.cancel_token.cancelled is False

    def test_each_request_gets_its_own_token(self, tmp_path: Path) -> None:
        """Tokens are never shared between requests by default."""
        first = InstallRequest(server_dir=tmp_path)
        second = InstallRequest(server_dir=tmp_path)

        assert first.cancel_token is not second.cancel_token
        assert first == second

    @pytest.mark.parametrize("field", ["server_name", "server_password", "server_description"])
    def test_rejects_line_breaks(self, tmp_path: Path, field: str) -> None:
        """Line breaks would inject extra settings lines."""
        with pytest.raises(InstallValidationError, match=field):
            InstallRequest(server_dir=tmp_path, **{field: "a\nPort=1"})

    def test_rejects_blank_tag(self, tmp_path: Path) -> None:
        """A blank tag is neither a tag nor 'latest'."""
        with pytest.raises(InstallValidationError, match="starter_pack_tag"):
            InstallRequest(server_dir=tmp_path, starter_pack_tag="  ")

    def test_is_frozen(self, tmp_path: Path) -> None:
        """Phases cannot modify the request."""
        request = InstallRequest(server_dir=tmp_path)

        with pytest.raises(AttributeError):
            request.server_name = "changed"  # type: ignore[misc]
