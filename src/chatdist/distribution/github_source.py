"""
GitHub Release Source

This module fetches the latest GitHub release of the application repository
and turns its matching assets into artifacts.
"""

from typing import Any, Dict, List

import requests

from chatdist.constants import GITHUB_API_BASE
from chatdist.exceptions import (
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderPayloadError,
)
from chatdist.log_utils import logger
from chatdist.utils import make_github_api_request

from .base import BaseFetcher, MissingCredentialsError, NoArtifactsError
from .interfaces import FetchedArtifact
from .registry import SourceSpec
from .types import DistributionType


def _asset_timestamp(asset: Dict[str, Any]) -> str:
    # ISO 8601 UTC strings from the API sort lexicographically
    return str(asset.get("updated_at") or asset.get("created_at") or "")


class GithubReleaseSource(BaseFetcher):
    """
    Fetches assets from `/repos/{repo}/releases/latest`.

    Assets are kept when their name ends with the SourceSpec extension, matches
    its asset pattern, and carries a browser_download_url. Versions come
    from the asset name, falling back to the release tag.
    """

    provider_name = "github"

    def _not_found_label(self, spec: SourceSpec) -> str:
        return "Latest release"

    def get_latest_release(self, repo: str) -> Dict[str, Any]:
        url = f"{GITHUB_API_BASE}/{repo}/releases/latest"
        try:
            response = make_github_api_request(
                url, github_token=self.config.get("GITHUB_TOKEN") or None
            )
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ProviderHTTPError(
                f"HTTP {status} from GitHub",
                status_code=status,
                provider=self.provider_name,
                url=url,
                details=str(e),
            ) from e
        except requests.RequestException as e:
            raise ProviderNetworkError(
                "Request to GitHub failed",
                provider=self.provider_name,
                url=url,
                details=str(e),
            ) from e

        release = self._decode_json(response, url)
        if not isinstance(release, dict):
            raise ProviderPayloadError(
                "Unexpected release payload from GitHub",
                provider=self.provider_name,
                url=url,
                details=f"expected object, got {type(release).__name__}",
            )
        return release

    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        repo = (self.config.get("GITHUB_REPO") or "").strip()
        if not repo:
            raise MissingCredentialsError(
                "GITHUB_REPO not configured", provider=self.provider_name
            )

        release = self.get_latest_release(repo)
        assets = release.get("assets")
        if not isinstance(assets, list) or not assets:
            raise NoArtifactsError(
                "No assets found in latest release", provider=self.provider_name
            )

        extension = spec.extension or ""
        matching = [
            asset
            for asset in assets
            if isinstance(asset, dict)
            and isinstance(asset.get("name"), str)
            and asset["name"].endswith(extension)
            and (spec.asset_pattern is None or spec.asset_pattern.search(asset["name"]))
            and asset.get("browser_download_url")
        ]
        if not matching:
            raise NoArtifactsError(
                f"No matching {extension} files found in latest release",
                provider=self.provider_name,
            )

        tag_name = release.get("tag_name")
        artifacts: List[FetchedArtifact] = []
        for asset in sorted(matching, key=_asset_timestamp, reverse=True):
            file_name = asset["name"]
            version, build = self.version_manager.parse_filename(file_name)
            if not version:
                version, build = self.version_manager.parse_release_tag(tag_name)
            if not version:
                logger.warning(
                    f"Could not parse version from filename or tag: {file_name}"
                )
                continue

            artifacts.append(
                FetchedArtifact(
                    url=asset["browser_download_url"],
                    version=version,
                    build=build,
                    name=file_name,
                )
            )
            logger.debug(
                f"Found {dist_type}: {file_name} "
                f"({self.version_manager.format_display_version(version, build)})"
            )

        return artifacts
