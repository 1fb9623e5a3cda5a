"""GitHub release models.

Only the fields the installer consumes are modelled; everything else in
the API response is ignored.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class GitHubAsset(BaseModel):
    """A downloadable file attached to a release."""

    model_config = ConfigDict(extra="ignore")

    name: str
    browser_download_url: str
    size: int | None = None


class GitHubRelease(BaseModel):
    """Release metadata as returned by the GitHub releases API."""

    model_config = ConfigDict(extra="ignore")

    tag_name: str
    assets: list[GitHubAsset] = []

    def find_asset(self, name: str) -> GitHubAsset | None:
        """Find an asset by exact name, ignoring case."""
        wanted = name.casefold()
        for asset in self.assets:
            if asset.name.casefold() == wanted:
                return asset
        return None


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    """A resolved asset, ready to be downloaded.

    Attributes:
        owner: Repository owner.
        repo: Repository name.
        tag: Tag of the release the asset belongs to.
        name: Asset file name.
        url: Direct download URL.
    """

    owner: str
    repo: str
    tag: str
    name: str
    url: str

    @property
    def label(self) -> str:
        """Human-readable identifier, e.g. 'BepInEx/BepInEx@v5.4.22:file.zip'."""
        return f"{self.owner}/{self.repo}@{self.tag}:{self.name}"
