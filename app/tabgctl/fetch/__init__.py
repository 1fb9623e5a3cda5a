"""GitHub release retrieval."""

from tabgctl.fetch.github import DEFAULT_API_URL, AssetFetcher

__all__ = ["DEFAULT_API_URL", "AssetFetcher"]
