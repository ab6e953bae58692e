"""
Base Fetcher Implementation

This module provides the base implementation of the DistributionFetcher
interface. Subclasses implement `_fetch_artifacts` and raise ProviderError
subclasses on failure; the base class turns every outcome into a FetchResult.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from chatdist.constants import (
    ERROR_TYPE_CONFIG,
    ERROR_TYPE_EMPTY,
    ERROR_TYPE_HTTP,
    ERROR_TYPE_NETWORK,
    ERROR_TYPE_PAYLOAD,
    ERROR_TYPE_UNKNOWN,
    LISTING_REQUEST_TIMEOUT,
)
from chatdist.exceptions import (
    ProviderError,
    ProviderHTTPError,
    ProviderNetworkError,
    ProviderPayloadError,
)
from chatdist.log_utils import logger
from chatdist.utils import make_api_request

from .interfaces import DistributionFetcher, FetchedArtifact, FetchResult
from .registry import SourceSpec
from .types import DistributionType
from .version import VersionManager


class MissingCredentialsError(ProviderError):
    """Raised by a fetcher when a required key is not configured."""


class NoArtifactsError(ProviderError):
    """Raised by a fetcher when the provider answered but nothing matched."""


class BaseFetcher(DistributionFetcher, ABC):
    """
    Base implementation of the DistributionFetcher interface.

    Provides shared request handling, exception translation and result
    construction for the provider fetchers.
    """

    provider_name = "provider"

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.version_manager = VersionManager()

    @abstractmethod
    def _fetch_artifacts(
        self, dist_type: DistributionType, spec: SourceSpec
    ) -> List[FetchedArtifact]:
        """Query the provider; raise ProviderError subclasses on failure."""

    def fetch(self, dist_type: DistributionType, spec: SourceSpec) -> FetchResult:
        """
        Run the provider query and fold every failure into a FetchResult.

        Missing credentials produce a skipped result, a 404 is logged as a warning,
        and other provider failures are logged as errors. Nothing is raised.
        """
        try:
            artifacts = self._fetch_artifacts(dist_type, spec)
        except MissingCredentialsError as e:
            logger.warning(f"{e.message}, skipping {dist_type}")
            return self.create_fetch_result(
                False, error_message=str(e), error_type=ERROR_TYPE_CONFIG, was_skipped=True
            )
        except NoArtifactsError as e:
            logger.warning(f"{e.message} for {dist_type}")
            return self.create_fetch_result(
                False, error_message=str(e), error_type=ERROR_TYPE_EMPTY
            )
        except ProviderHTTPError as e:
            if e.status_code == 404:
                logger.warning(f"{self._not_found_label(spec)} not found for {dist_type}")
            else:
                logger.error(f"Error checking {dist_type}: {e}")
            return self.create_fetch_result(
                False,
                error_message=str(e),
                error_type=ERROR_TYPE_HTTP,
                http_status_code=e.status_code,
            )
        except ProviderNetworkError as e:
            logger.error(f"Error checking {dist_type}: {e}")
            return self.create_fetch_result(
                False, error_message=str(e), error_type=ERROR_TYPE_NETWORK
            )
        except ProviderPayloadError as e:
            logger.error(f"Error checking {dist_type}: {e}")
            return self.create_fetch_result(
                False, error_message=str(e), error_type=ERROR_TYPE_PAYLOAD
            )
        except ProviderError as e:
            logger.error(f"Error checking {dist_type}: {e}")
            return self.create_fetch_result(
                False, error_message=str(e), error_type=ERROR_TYPE_UNKNOWN
            )

        logger.info(f"Processed {len(artifacts)} file(s) for {dist_type}")
        return self.create_fetch_result(True, artifacts=artifacts)

    def _not_found_label(self, spec: SourceSpec) -> str:
        return "Resource"

    def create_fetch_result(
        self,
        success: bool,
        *,
        artifacts: Optional[List[FetchedArtifact]] = None,
        error_message: Optional[str] = None,
        error_type: Optional[str] = None,
        http_status_code: Optional[int] = None,
        was_skipped: bool = False,
    ) -> FetchResult:
        return FetchResult(
            success=success,
            artifacts=list(artifacts or []),
            error_message=error_message,
            error_type=error_type,
            http_status_code=http_status_code,
            was_skipped=was_skipped,
        )

    def _get_response(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = LISTING_REQUEST_TIMEOUT,
    ) -> requests.Response:
        """
        Issue a GET and translate requests exceptions into provider errors.

        Raises:
            ProviderHTTPError: For non-2xx responses.
            ProviderNetworkError: For connection-level failures and timeouts.
        """
        try:
            return make_api_request(url, params=params, headers=headers, timeout=timeout)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ProviderHTTPError(
                f"HTTP {status} from {self.provider_name}",
                status_code=status,
                provider=self.provider_name,
                url=url,
                details=str(e),
            ) from e
        except requests.RequestException as e:
            raise ProviderNetworkError(
                f"Request to {self.provider_name} failed",
                provider=self.provider_name,
                url=url,
                details=str(e),
            ) from e

    def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = LISTING_REQUEST_TIMEOUT,
    ) -> Any:
        response = self._get_response(url, params=params, headers=headers, timeout=timeout)
        return self._decode_json(response, url)

    def _decode_json(self, response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise ProviderPayloadError(
                f"Invalid JSON from {self.provider_name}",
                provider=self.provider_name,
                url=url,
                details=str(e),
            ) from e
