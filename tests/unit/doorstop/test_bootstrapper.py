"""Unit tests for the BepInEx bootstrapper."""

import asyncio
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from tabgctl.core.cancel import CancellationToken
from tabgctl.core.config import InstallerConfig
from tabgctl.core.errors import CancellationRequested, ExtractionError
from tabgctl.doorstop.bootstrapper import (
    DESCRIPTOR_FILENAME,
    PLUGINS_DIR,
    DoorstopBootstrapper,
    DoorstopDescriptor,
    read_descriptor,
)


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes() for p in root.rglob("*") if p.is_file()
    }


@pytest.fixture
def bootstrapper(tmp_path: Path) -> DoorstopBootstrapper:
    return DoorstopBootstrapper(None, InstallerConfig().bepinex, tmp_path / "cache")


class TestDoorstopDescriptor:
    """Tests for DoorstopDescriptor rendering."""

    def test_render_defaults(self) -> None:
        text = DoorstopDescriptor().render()

        assert text == (
            "[UnityDoorstop]\n"
            "enabled=true\n"
            "targetAssembly=BepInEx\\core\\BepInEx.Preloader.dll\n"
            "redirectOutputLog=false\n"
            "ignoreDisableSwitch=false\n"
            "dllSearchPathOverride=\n"
        )

    def test_write_and_read_back(self, tmp_path: Path) -> None:
        DoorstopDescriptor(redirect_output_log=True).write(tmp_path)

        values = read_descriptor(tmp_path / DESCRIPTOR_FILENAME)

        assert values["enabled"] == "true"
        assert values["redirectOutputLog"] == "true"
        assert b"\r\n" not in (tmp_path / DESCRIPTOR_FILENAME).read_bytes()


class TestInstallArchive:
    """Tests for DoorstopBootstrapper.install_archive."""

    def test_full_install(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, bepinex_zip: Path
    ) -> None:
        bootstrapper.install_archive(bepinex_zip, server_dir)

        assert (server_dir / "BepInEx/core/BepInEx.Preloader.dll").is_file()
        assert (server_dir / "winhttp.dll").read_bytes() == b"proxy-x64"
        assert (server_dir / "version.dll").read_bytes() == b"proxy-x64"
        assert (server_dir / PLUGINS_DIR).is_dir()
        assert read_descriptor(server_dir / DESCRIPTOR_FILENAME)["enabled"] == "true"

    def test_is_idempotent(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, bepinex_zip: Path
    ) -> None:
        """Bootstrapping twice leaves identical files."""
        bootstrapper.install_archive(bepinex_zip, server_dir)
        first = _snapshot(server_dir)

        bootstrapper.install_archive(bepinex_zip, server_dir)

        assert _snapshot(server_dir) == first

    def test_replaces_disabled_or_malformed_descriptor(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, bepinex_zip: Path
    ) -> None:
        """A previous descriptor that disables injection is fully overwritten."""
        descriptor = server_dir / DESCRIPTOR_FILENAME
        descriptor.write_text("[UnityDoorstop]\r\nenabled=false\r\n%%garbage line without key\r\n")

        bootstrapper.install_archive(bepinex_zip, server_dir)

        assert descriptor.read_text(encoding="utf-8") == DoorstopDescriptor().render()
        assert read_descriptor(descriptor)["enabled"] == "true"

    def test_missing_proxy_is_not_fatal(
        self,
        bootstrapper: DoorstopBootstrapper,
        server_dir: Path,
        make_bepinex_zip: Callable[..., Path],
    ) -> None:
        bootstrapper.install_archive(make_bepinex_zip(with_proxy=False), server_dir)

        assert not (server_dir / "winhttp.dll").exists()
        assert (server_dir / DESCRIPTOR_FILENAME).is_file()

    def test_corrupt_archive(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, tmp_path: Path
    ) -> None:
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"definitely not a zip")

        with pytest.raises(ExtractionError, match="Corrupt archive"):
            bootstrapper.install_archive(archive, server_dir)

    def test_missing_archive(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, tmp_path: Path
    ) -> None:
        with pytest.raises(ExtractionError):
            bootstrapper.install_archive(tmp_path / "nope.zip", server_dir)


class TestBootstrap:
    """Tests for DoorstopBootstrapper.bootstrap."""

    def test_downloads_when_no_archive_given(
        self, server_dir: Path, bepinex_zip: Path, tmp_path: Path
    ) -> None:
        fetcher = MagicMock()
        fetcher.fetch_asset = AsyncMock(return_value=bepinex_zip)
        source = InstallerConfig().bepinex
        cache = tmp_path / "cache"

        result = asyncio.run(DoorstopBootstrapper(fetcher, source, cache).bootstrap(server_dir))

        assert result == bepinex_zip
        fetcher.fetch_asset.assert_awaited_once_with(
            source.owner, source.repo, source.asset, cache, source.tag
        )
        assert (server_dir / "winhttp.dll").is_file()

    def test_local_archive_skips_download(
        self, server_dir: Path, bepinex_zip: Path, tmp_path: Path
    ) -> None:
        fetcher = MagicMock()
        fetcher.fetch_asset = AsyncMock()
        bootstrapper = DoorstopBootstrapper(fetcher, InstallerConfig().bepinex, tmp_path)

        asyncio.run(bootstrapper.bootstrap(server_dir, archive=bepinex_zip))

        fetcher.fetch_asset.assert_not_awaited()

    def test_cancelled_before_extraction(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path, bepinex_zip: Path
    ) -> None:
        token = CancellationToken()
        token.cancel()

        with pytest.raises(CancellationRequested):
            asyncio.run(bootstrapper.bootstrap(server_dir, archive=bepinex_zip, cancel_token=token))
        assert not (server_dir / "BepInEx").exists()

    def test_no_fetcher_and_no_archive(
        self, bootstrapper: DoorstopBootstrapper, server_dir: Path
    ) -> None:
        with pytest.raises(ExtractionError, match="no fetcher"):
            asyncio.run(bootstrapper.bootstrap(server_dir))
