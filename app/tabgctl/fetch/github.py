"""GitHub release lookup and asset download.

Resolves a release (latest or by tag) through the GitHub REST API and
streams the chosen asset to disk. There is no retry: any failure is
reported to the caller as a FetchError and the partial file is removed.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from urllib.parse import unquote, urlsplit

import httpx
from pydantic import ValidationError

from tabgctl import __version__
from tabgctl.core.errors import AssetNotFoundError, FetchError, ReleaseNotFoundError
from tabgctl.models.release import GitHubRelease, ReleaseAsset

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DOWNLOAD_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int, int | None], None]


class AssetFetcher:
    """Resolves and downloads GitHub release assets.

    Usable as an async context manager. When no client is injected, the
    fetcher owns an httpx.AsyncClient and closes it on exit.

    Args:
        client: Pre-configured client, e.g. one built on httpx.MockTransport.
        api_url: Base URL of the GitHub REST API.
        token: Optional token sent as a bearer credential to the API.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        token: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"User-Agent": f"tabgctl/{__version__}"},
        )
        self._api_url = api_url.rstrip("/")
        self._token = token

    async def __aenter__(self) -> "AssetFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    def _api_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def get_release(self, owner: str, repo: str, tag: str | None = None) -> GitHubRelease:
        """Fetch release metadata.

        Args:
            owner: Repository owner.
            repo: Repository name.
            tag: Release tag. None or "latest" selects the latest release.

        Returns:
            Parsed release metadata.

        Raises:
            ReleaseNotFoundError: If the repository or tag has no such release.
            FetchError: On network errors, other HTTP errors or malformed responses.
        """
        if tag is None or tag == "latest":
            url = f"{self._api_url}/repos/{owner}/{repo}/releases/latest"
            label = f"{owner}/{repo}@latest"
        else:
            url = f"{self._api_url}/repos/{owner}/{repo}/releases/tags/{tag}"
            label = f"{owner}/{repo}@{tag}"

        logger.debug("Fetching release metadata %s", url)
        try:
            response = await self._client.get(url, headers=self._api_headers())
        except httpx.HTTPError as e:
            raise FetchError(f"Could not reach GitHub for {label}: {e}") from e

        if response.status_code == 404:
            raise ReleaseNotFoundError(f"Release not found: {label}")
        if response.is_error:
            msg = f"GitHub returned HTTP {response.status_code} for {label}"
            raise FetchError(msg)

        try:
            release = GitHubRelease.model_validate_json(response.content)
        except ValidationError as e:
            raise FetchError(f"Malformed release metadata for {label}: {e}") from e

        logger.info("Resolved %s to tag %s", label, release.tag_name)
        return release

    async def resolve_asset(
        self,
        owner: str,
        repo: str,
        asset_name: str,
        tag: str | None = None,
    ) -> ReleaseAsset:
        """Find a named asset in a release.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            AssetNotFoundError: If the release has no asset with that name.
            FetchError: On any other retrieval failure.
        """
        release = await self.get_release(owner, repo, tag)
        asset = release.find_asset(asset_name)
        if asset is None:
            available = ", ".join(a.name for a in release.assets) or "none"
            msg = (
                f"Asset '{asset_name}' not found in {owner}/{repo}@{release.tag_name} "
                f"(available: {available})"
            )
            raise AssetNotFoundError(msg)
        return ReleaseAsset(
            owner=owner,
            repo=repo,
            tag=release.tag_name,
            name=asset.name,
            url=asset.browser_download_url,
        )

    async def download(
        self,
        url: str,
        dest_dir: Path,
        file_name: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> Path:
        """Stream a file into a directory.

        The body is written to a temporary ".part" file that is renamed
        into place once complete, so an interrupted download never leaves
        a truncated file under the final name.

        Args:
            url: Download URL.
            dest_dir: Target directory, created if missing.
            file_name: Target file name. Defaults to the last URL path segment.
            progress: Optional callback receiving (bytes_done, bytes_total).

        Returns:
            Path of the downloaded file.

        Raises:
            FetchError: On network errors, HTTP errors or local write failures.
        """
        name = file_name or unquote(urlsplit(url).path.rsplit("/", 1)[-1])
        if not name:
            raise FetchError(f"Cannot derive a file name from {url}")

        target = dest_dir / name
        partial = dest_dir / f"{name}.part"

        logger.info("Downloading %s", url)
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            async with self._client.stream("GET", url) as response:
                if response.is_error:
                    msg = f"Download failed with HTTP {response.status_code}: {url}"
                    raise FetchError(msg)
                total = int(response.headers.get("Content-Length", 0)) or None
                done = 0
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
                        done += len(chunk)
                        if progress is not None:
                            progress(done, total)
            partial.replace(target)
        except httpx.HTTPError as e:
            partial.unlink(missing_ok=True)
            raise FetchError(f"Download failed for {url}: {e}") from e
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise FetchError(f"Could not write {target}: {e}") from e
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        logger.info("Saved %s (%d bytes)", target, done)
        return target

    async def fetch_asset(
        self,
        owner: str,
        repo: str,
        asset_name: str,
        dest_dir: Path,
        tag: str | None = None,
    ) -> Path:
        """Resolve a release asset and download it into dest_dir.

        Raises:
            FetchError: If resolution or download fails.
        """
        asset = await self.resolve_asset(owner, repo, asset_name, tag)
        logger.info("Fetching %s", asset.label)
        return await self.download(asset.url, dest_dir, asset.name)
