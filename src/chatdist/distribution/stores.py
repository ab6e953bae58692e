"""
Fixed-link store fetchers (Apple App Store, Google Play).

The link to a store listing never changes, so these fetchers always yield
exactly one artifact. Only the version is looked up; when the lookup fails
the version degrades to "latest".
"""

import json
import re
from typing import Any, List, Optional

from chatdist.constants import (
    APP_STORE_APP_ID,
    APP_STORE_URL,
    BROWSER_USER_AGENT,
    ITUNES_LOOKUP_URL,
    LATEST_VERSION_SENTINEL,
    PLAY_STORE_URL,
    STORE_LOOKUP_TIMEOUT,
)
from chatdist.exceptions import ProviderError
from chatdist.log_utils import logger

from .base import BaseFetcher
from .interfaces import FetchedArtifact
from .registry import SourceSpec
from .types import DistributionType

DIRECT_VERSION_RX = re.compile(r'\[\["(\d+\.\d+\.\d+)"\]\]')
QUOTED_VERSION_RX = re.compile(r'"(\d+\.\d+\.\d+)"')
EXACT_VERSION_RX = re.compile(r"^(\d+\.\d+\.\d+)$")
AF_INIT_DATA_RX = re.compile(
    r"AF_initDataCallback\s*\([^)]*data:\s*(\[[\s\S]{0,50000}\])\s*[,}]",
    re.IGNORECASE,
)
JSON_LD_RX = re.compile(
    r"<script[^>]*type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)
TEXT_VERSION_PATTERNS = (
    re.compile(r"Current Version[^>]*>(\d+\.\d+\.\d+)", re.IGNORECASE),
    re.compile(r"Version[^>]*>(\d+\.\d+\.\d+)", re.IGNORECASE),
    re.compile(r'"version":"(\d+\.\d+\.\d+)"', re.IGNORECASE),
    re.compile(r"versionCode[\"\s]*:[\"\s]*(\d+)", re.IGNORECASE),
    re.compile(
        r"<div[^>]*>(\d+\.\d+\.\d+)</div>[^<]*Current Version", re.IGNORECASE
    ),
)


def find_version_in_nested(data: Any) -> Optional[str]:
    """Depth-first search of nested lists for the first "X.Y.Z" string."""
    if not isinstance(data, list):
        return None
    for item in data:
        if isinstance(item, str):
            match = EXACT_VERSION_RX.match(item)
            if match:
                return match.group(1)
        elif isinstance(item, list):
            found = find_version_in_nested(item)
            if found:
                return found
    return None


def _version_from_af_init_data(html: str) -> Optional[str]:
    af_match = AF_INIT_DATA_RX.search(html)
    if not af_match:
        return None

    data_str = af_match.group(1)
    in_data = DIRECT_VERSION_RX.search(data_str)
    if in_data:
        return in_data.group(1)

    flexible = QUOTED_VERSION_RX.search(data_str)
    if flexible:
        return flexible.group(1)

    try:
        return find_version_in_nested(json.loads(data_str))
    except (ValueError, RecursionError) as e:
        logger.debug(f"Failed to parse AF_initDataCallback data: {e}")
        return None


def _version_from_json_ld(html: str) -> Optional[str]:
    ld_match = JSON_LD_RX.search(html)
    if not ld_match:
        return None
    try:
        json_ld = json.loads(ld_match.group(1))
    except ValueError:
        return None
    if isinstance(json_ld, dict) and json_ld.get("softwareVersion"):
        return str(json_ld["softwareVersion"])
    return None


def extract_play_store_version(html: str) -> Optional[str]:
    """
    Scrape the app version out of a Google Play listing page.

    Tries, in order: a literal [["X.Y.Z"]] in the page, the AF_initDataCallback
    data block, JSON-LD softwareVersion, and a set of text patterns.

    Returns:
        The version string, or None if no pattern matched.
    """
    if not html:
        return None

    direct = DIRECT_VERSION_RX.search(html)
    if direct:
        logger.debug(f"Play Store version from AF_initDataCallback (direct): {direct.group(1)}")
        return direct.group(1)

    version = _version_from_af_init_data(html)
    if version:
        logger.debug(f"Play Store version from AF_initDataCallback: {version}")
        return version

    version = _version_from_json_ld(html)
    if version:
        logger.debug(f"Play Store version from JSON-LD: {version}")
        return version

    for pattern in TEXT_VERSION_PATTERNS:
        match = pattern.search(html)
        if match and len(match.group(1)) > 1:
            logger.debug(f"Play Store version from HTML: {match.group(1)}")
            return match.group(1)

    return None


class AppStoreFetcher(BaseFetcher):
    """Looks up the App Store version through the iTunes lookup API."""

    provider_name = "app_store"

    def lookup_version(self) -> Optional[str]:
        data = self._get_json(
            ITUNES_LOOKUP_URL,
            params={"id": APP_STORE_APP_ID},
            timeout=STORE_LOOKUP_TIMEOUT,
        )
        results = data.get("results") if isinstance(data, dict) else None
        if isinstance(results, list) and results and isinstance(results[0], dict):
            version = results[0].get("version")
            return str(version) if version else None
        return None

    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        version = LATEST_VERSION_SENTINEL
        try:
            looked_up = self.lookup_version()
            if looked_up:
                version = looked_up
                logger.info(f"Fetched App Store version: {version}")
        except ProviderError as e:
            logger.warning(f"Failed to fetch App Store version: {e}")

        return [FetchedArtifact(url=APP_STORE_URL, version=version, name="App Store link")]


class PlayStoreFetcher(BaseFetcher):
    """Scrapes the Google Play listing page for the current version."""

    provider_name = "play_store"

    REQUEST_HEADERS = {
        "User-Agent": BROWSER_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }

    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        version = LATEST_VERSION_SENTINEL
        try:
            response = self._get_response(
                PLAY_STORE_URL,
                headers=self.REQUEST_HEADERS,
                timeout=STORE_LOOKUP_TIMEOUT,
            )
            scraped = extract_play_store_version(response.text)
            if scraped:
                version = scraped
                logger.info(f"Fetched Play Store version: {version}")
            else:
                logger.warning("Could not find a version on the Play Store page")
        except ProviderError as e:
            logger.warning(f"Failed to fetch Play Store version: {e}")

        return [
            FetchedArtifact(url=PLAY_STORE_URL, version=version, name="Google Play link")
        ]
