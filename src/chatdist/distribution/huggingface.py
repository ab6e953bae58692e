"""
HuggingFace dataset listing fetcher.

Serves HuggingFace itself and its mirrors (hf-mirror.com, aifasthub.com),
which expose the same tree API under a different host.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from chatdist.constants import AIFASTHUB_ENDPOINT, HUGGINGFACE_ENDPOINT
from chatdist.exceptions import ProviderPayloadError
from chatdist.log_utils import logger

from .base import BaseFetcher, MissingCredentialsError, NoArtifactsError
from .interfaces import FetchedArtifact
from .registry import SourceSpec
from .types import DistributionType


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def sort_listing_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Order listing entries newest first.

    Entries are sorted by lastModified descending; entries without a usable
    timestamp sort after dated ones and fall back to path descending.
    """

    def _key(entry: Dict[str, Any]):
        ts = _parse_timestamp(entry.get("lastModified"))
        return (ts is not None, ts.timestamp() if ts else 0.0, entry.get("path", ""))

    return sorted(entries, key=_key, reverse=True)


class HuggingFaceFetcher(BaseFetcher):
    """Lists a dataset folder and turns matching files into artifacts."""

    provider_name = "huggingface"

    def _endpoint_for(self, spec: SourceSpec) -> str:
        endpoint = spec.endpoint or self.config.get("HF_ENDPOINT") or HUGGINGFACE_ENDPOINT
        return endpoint.rstrip("/")

    def _not_found_label(self, spec: SourceSpec) -> str:
        return f"Folder {spec.folder}"

    def build_download_url(self, spec: SourceSpec, repo_id: str, file_name: str) -> str:
        endpoint = self._endpoint_for(spec)
        url = f"{endpoint}/datasets/{repo_id}/resolve/main/{spec.folder}/{file_name}"
        if spec.append_download_param or endpoint == AIFASTHUB_ENDPOINT:
            url += "?download=true"
        return url

    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        repo_id = (self.config.get("HF_DATASETS_ID") or "").strip()
        if not repo_id:
            raise MissingCredentialsError(
                "HF_DATASETS_ID not configured", provider=self.provider_name
            )

        endpoint = self._endpoint_for(spec)
        api_url = f"{endpoint}/api/datasets/{repo_id}/tree/main/{spec.folder}"
        headers = {}
        token = (self.config.get("HF_TOKEN") or "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        data = self._get_json(api_url, headers=headers)
        if not isinstance(data, list):
            raise ProviderPayloadError(
                f"Unexpected listing payload for {spec.folder}",
                provider=self.provider_name,
                url=api_url,
                details=f"expected list, got {type(data).__name__}",
            )

        extension = spec.extension or ""
        files = [
            entry
            for entry in data
            if isinstance(entry, dict)
            and isinstance(entry.get("path"), str)
            and entry["path"].endswith(extension)
        ]
        if not files:
            raise NoArtifactsError(
                f"No {extension} files found in {spec.folder}",
                provider=self.provider_name,
                url=api_url,
            )

        artifacts: List[FetchedArtifact] = []
        for entry in sort_listing_entries(files):
            file_name = entry["path"].split("/")[-1]
            version, build = self.version_manager.parse_filename(file_name)
            if not version:
                logger.warning(f"Could not parse version from filename: {file_name}")
                continue

            artifacts.append(
                FetchedArtifact(
                    url=self.build_download_url(spec, repo_id, file_name),
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
