"""Unit tests for GitHub release models."""

from tabgctl.models.release import GitHubRelease, ReleaseAsset


class TestGitHubRelease:
    """Tests for GitHubRelease parsing and asset lookup."""

    def test_ignores_unknown_fields(self) -> None:
        """Fields the installer does not use are dropped."""
        release = GitHubRelease.model_validate(
            {
                "tag_name": "v1.0",
                "draft": False,
                "assets": [
                    {
                        "name": "StarterPack.dll",
                        "browser_download_url": "https://example.test/StarterPack.dll",
                        "content_type": "application/octet-stream",
                    }
                ],
            }
        )

        assert release.tag_name == "v1.0"
        assert release.assets[0].size is None

    def test_find_asset_ignores_case(self) -> None:
        """Asset lookup is case-insensitive."""
        release = GitHubRelease.model_validate(
            {
                "tag_name": "v1.0",
                "assets": [{"name": "Citruslib.dll", "browser_download_url": "u"}],
            }
        )

        assert release.find_asset("citruslib.DLL") is not None
        assert release.find_asset("Other.dll") is None


class TestReleaseAsset:
    """Tests for ReleaseAsset."""

    def test_label(self) -> None:
        asset = ReleaseAsset(owner="o", repo="r", tag="v1", name="a.zip", url="u")
        assert asset.label == "o/r@v1:a.zip"
