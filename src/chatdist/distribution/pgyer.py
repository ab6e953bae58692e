"""
Pgyer build host fetcher.

One API call serves two types: the direct APK install link and the
download page link of the current build.
"""

from typing import List

from chatdist.constants import (
    PGYER_APP_VIEW_URL,
    PGYER_INSTALL_URL_TEMPLATE,
    PGYER_SHORTCUT_URL_TEMPLATE,
)
from chatdist.exceptions import ProviderPayloadError
from chatdist.log_utils import logger

from .base import BaseFetcher, MissingCredentialsError
from .interfaces import FetchedArtifact
from .registry import PGYER_LINK_INSTALL, SourceSpec
from .types import DistributionType


class PgyerFetcher(BaseFetcher):
    provider_name = "pgyer"

    def _not_found_label(self, spec: SourceSpec) -> str:
        return "Pgyer app"

    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        api_key = (self.config.get("PGYER_API_KEY") or "").strip()
        app_key = (self.config.get("PGYER_APP_KEY") or "").strip()
        if not api_key:
            raise MissingCredentialsError(
                "PGYER_API_KEY not configured", provider=self.provider_name
            )
        if not app_key:
            raise MissingCredentialsError(
                "PGYER_APP_KEY not configured", provider=self.provider_name
            )

        logger.debug(
            f"Calling Pgyer API for {dist_type} with appKey: {app_key}, "
            f"apiKey length: {len(api_key)}"
        )
        payload = self._get_json(
            PGYER_APP_VIEW_URL, params={"_api_key": api_key, "appKey": app_key}
        )

        if not isinstance(payload, dict) or payload.get("code") != 0:
            message = payload.get("message") if isinstance(payload, dict) else None
            logger.debug(f"Pgyer API response: {payload!r}")
            raise ProviderPayloadError(
                "Failed to get Pgyer app info",
                provider=self.provider_name,
                url=PGYER_APP_VIEW_URL,
                details=message or "Unknown error",
            )

        app_data = payload.get("data")
        if not isinstance(app_data, dict):
            raise ProviderPayloadError(
                "No app data in Pgyer response",
                provider=self.provider_name,
                url=PGYER_APP_VIEW_URL,
            )

        if spec.pgyer_link == PGYER_LINK_INSTALL:
            link_field = "buildKey"
            template = PGYER_INSTALL_URL_TEMPLATE
        else:
            link_field = "buildShortcutUrl"
            template = PGYER_SHORTCUT_URL_TEMPLATE

        link_value = app_data.get(link_field)
        if not link_value:
            raise ProviderPayloadError(
                f"No {link_field} found in Pgyer response",
                provider=self.provider_name,
                url=PGYER_APP_VIEW_URL,
            )

        version = self.version_manager.extract_semver(app_data.get("buildVersion"))
        build = self.version_manager.extract_first_int(app_data.get("buildVersionNo"))
        if not version:
            raise ProviderPayloadError(
                "Could not parse version from Pgyer response",
                provider=self.provider_name,
                url=PGYER_APP_VIEW_URL,
            )

        if spec.pgyer_link == PGYER_LINK_INSTALL:
            url = template.format(build_key=link_value)
        else:
            url = template.format(shortcut=link_value)

        logger.debug(
            f"Found {dist_type}: {url} "
            f"({self.version_manager.format_display_version(version, build)})"
        )
        return [FetchedArtifact(url=url, version=version, build=build)]
