"""Data models for tabgctl.

This module exports the core data structures shared across components.
"""

from tabgctl.models.release import GitHubAsset, GitHubRelease, ReleaseAsset
from tabgctl.models.request import InstallRequest

__all__ = [
    "GitHubAsset",
    "GitHubRelease",
    "InstallRequest",
    "ReleaseAsset",
]
