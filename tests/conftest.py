"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import json
import zipfile
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

VANILLA_FILES = (
    "TABG.exe",
    "UnityPlayer.dll",
    "UnityCrashHandler64.exe",
    "TABG_Data/globalgamemanagers",
    "TABG_Data/Managed/Assembly-CSharp.dll",
    "MonoBleedingEdge/EmbedRuntime/mono-2.0-bdwgc.dll",
)


@pytest.fixture
def server_dir(tmp_path: Path) -> Path:
    """A vanilla server directory with the core game files."""
    root = tmp_path / "server"
    for rel in VANILLA_FILES:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"vanilla")
    return root


@pytest.fixture
def make_bepinex_zip(tmp_path: Path) -> Callable[..., Path]:
    """Factory building a BepInEx-like archive.

    The archive contains the preloader, the x64 Doorstop proxy and a
    stock descriptor, as the real release does.
    """

    def _make(name: str = "BepInEx_x64_5.4.22.0.zip", with_proxy: bool = True) -> Path:
        archive = tmp_path / "archives" / name
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("BepInEx/core/BepInEx.Preloader.dll", b"preloader")
            zf.writestr("BepInEx/core/BepInEx.dll", b"bepinex")
            zf.writestr("doorstop_config.ini", "[UnityDoorstop]\nenabled=false\n")
            zf.writestr("changelog.txt", "5.4.22\n")
            if with_proxy:
                zf.writestr("doorstop_libs/x64/winhttp.dll", b"proxy-x64")
                zf.writestr("doorstop_libs/x86/winhttp.dll", b"proxy-x86")
        return archive

    return _make


@pytest.fixture
def bepinex_zip(make_bepinex_zip: Callable[..., Path]) -> Path:
    """A complete BepInEx archive."""
    return make_bepinex_zip()


@pytest.fixture
def release_payload() -> Callable[..., dict[str, object]]:
    """Factory for GitHub release JSON bodies."""

    def _payload(tag: str, *asset_names: str) -> dict[str, object]:
        return {
            "tag_name": tag,
            "name": f"Release {tag}",
            "assets": [
                {
                    "name": name,
                    "browser_download_url": f"https://downloads.test/{tag}/{name}",
                    "size": 7,
                }
                for name in asset_names
            ],
        }

    return _payload


@pytest.fixture
def github_transport(
    release_payload: Callable[..., dict[str, object]],
) -> Callable[[dict[str, tuple[str, ...]]], httpx.MockTransport]:
    """Factory for a MockTransport that serves releases and their assets.

    The mapping goes from "owner/repo@tag" to asset names. The tag
    "latest" is served for the /releases/latest endpoint.
    """

    def _transport(releases: dict[str, tuple[str, ...]]) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "downloads.test":
                return httpx.Response(200, content=request.url.path.encode())
            path = request.url.path
            if "/releases/latest" in path:
                repo = path.split("/repos/", 1)[1].split("/releases", 1)[0]
                key = f"{repo}@latest"
            elif "/releases/tags/" in path:
                repo, tag = path.split("/repos/", 1)[1].split("/releases/tags/", 1)
                key = f"{repo}@{tag}"
            else:
                return httpx.Response(404)
            if key not in releases:
                return httpx.Response(404, json={"message": "Not Found"})
            tag = key.rsplit("@", 1)[1]
            tag = "v9.9.9" if tag == "latest" else tag
            return httpx.Response(200, content=json.dumps(release_payload(tag, *releases[key])))

        return httpx.MockTransport(handler)

    return _transport
