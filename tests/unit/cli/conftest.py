"""Fixtures shared by the CLI tests."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path) -> Iterator[Path]:
    """Point the config and cache locations into the test directory."""
    env = {
        "XDG_CONFIG_HOME": str(tmp_path / "xdg-config"),
        "XDG_CACHE_HOME": str(tmp_path / "xdg-cache"),
    }
    with patch.dict(os.environ, env):
        yield tmp_path / "xdg-config"
