"""XDG-compliant path management for tabgctl.

XDG defaults:
- Config: ~/.config/tabgctl/
- Cache: ~/.cache/tabgctl/
"""

import os
from pathlib import Path

APP_NAME = "tabgctl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_cache_dir() -> Path:
    """Get the cache directory path."""
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_config_path() -> Path:
    """Get the installer configuration file path.

    Returns:
        Path to ~/.config/tabgctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/tabgctl/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_downloads_dir() -> Path:
    """Get the directory where downloaded archives are cached.

    Returns:
        Path to ~/.cache/tabgctl/downloads/.
    """
    return get_cache_dir() / "downloads"

