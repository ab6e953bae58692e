"""
Refresh Orchestration

This module runs one refresh cycle: every distribution type is fetched from
its provider and each artifact found is saved to the store. A failure in one
type never stops the others.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from chatdist.log_utils import logger

from .base import BaseFetcher
from .github_source import GithubReleaseSource
from .huggingface import HuggingFaceFetcher
from .interfaces import (
    DistributionFetcher,
    FetchResult,
    RefreshSummary,
    SaveOutcome,
    TypeRefreshResult,
)
from .pgyer import PgyerFetcher
from .registry import get_source_spec
from .store import DistributionStore
from .stores import AppStoreFetcher, PlayStoreFetcher
from .types import DistributionType, Provider
from .version import format_display_version


def build_default_fetchers(config: Dict[str, Any]) -> Dict[Provider, BaseFetcher]:
    return {
        Provider.HUGGINGFACE: HuggingFaceFetcher(config),
        Provider.GITHUB: GithubReleaseSource(config),
        Provider.PGYER: PgyerFetcher(config),
        Provider.APP_STORE: AppStoreFetcher(config),
        Provider.PLAY_STORE: PlayStoreFetcher(config),
    }


class RefreshOrchestrator:
    """
    Orchestrates a refresh cycle over all distribution types.

    This class coordinates:
    - Resolving each type's source from the registry
    - Dispatching to the provider fetcher
    - Saving found artifacts through the store's upsert policy
    - Per-type error isolation and summary reporting
    """

    def __init__(
        self,
        config: Dict[str, Any],
        store: DistributionStore,
        fetchers: Optional[Dict[Provider, DistributionFetcher]] = None,
        types: Optional[Iterable[DistributionType]] = None,
    ):
        """
        Parameters:
            config (Dict[str, Any]): Loaded configuration, handed to the default fetchers.
            store (DistributionStore): Destination for fetched artifacts.
            fetchers (Optional[Dict[Provider, DistributionFetcher]]): Provider fetchers; defaults to build_default_fetchers(config).
            types (Optional[Iterable[DistributionType]]): Types to refresh; defaults to every DistributionType.
        """
        self.config = config
        self.store = store
        self.fetchers = fetchers if fetchers is not None else build_default_fetchers(config)
        self.types = list(types) if types is not None else None

    def run_refresh_cycle(self) -> RefreshSummary:
        """
        Fetch and save every distribution type, sequentially.

        Returns:
            RefreshSummary: Per-type fetch results and save counters.
        """
        start_time = time.time()
        summary = RefreshSummary(started_at=datetime.now(timezone.utc))
        logger.info("Starting distribution refresh...")

        try:
            types = self.types if self.types is not None else list(DistributionType)
            for dist_type in types:
                summary.results[dist_type] = self._process_type(dist_type)
        except Exception as e:
            logger.error(f"Fatal error in refresh cycle: {e}", exc_info=True)
            summary.fatal_error = str(e)

        summary.finished_at = datetime.now(timezone.utc)
        self._log_refresh_summary(summary, start_time)
        return summary

    def _process_type(self, dist_type: DistributionType) -> TypeRefreshResult:
        result = TypeRefreshResult(dist_type=dist_type)
        try:
            spec = get_source_spec(dist_type)
            if spec is None:
                logger.debug(f"No source configured for {dist_type}, skipping")
                result.fetch_result = FetchResult(
                    success=False,
                    error_message="No source configured",
                    was_skipped=True,
                )
                return result

            fetcher = self.fetchers.get(spec.provider)
            if fetcher is None:
                logger.warning(f"No fetcher registered for {spec.provider.value}, skipping {dist_type}")
                result.fetch_result = FetchResult(
                    success=False,
                    error_message=f"No fetcher for {spec.provider.value}",
                    was_skipped=True,
                )
                return result

            fetch_result = fetcher.fetch(dist_type, spec)
            result.fetch_result = fetch_result

            for artifact in fetch_result.artifacts:
                outcome = self.store.save(
                    dist_type, artifact.url, artifact.version, artifact.build
                )
                if outcome is SaveOutcome.CREATED:
                    result.created += 1
                    logger.info(
                        f"Saved {dist_type}: {artifact.name or artifact.url} "
                        f"({format_display_version(artifact.version, artifact.build)})"
                    )
                elif outcome is SaveOutcome.UPDATED:
                    result.updated += 1
                    logger.info(
                        f"Updated {dist_type}: {artifact.url} "
                        f"({format_display_version(artifact.version, artifact.build)})"
                    )
                else:
                    result.unchanged += 1
        except Exception as e:
            logger.error(f"Error checking distribution type {dist_type}: {e}", exc_info=True)
            result.error_message = str(e)

        return result

    def _log_refresh_summary(self, summary: RefreshSummary, start_time: float) -> None:
        """
        Log a concise summary of the refresh cycle.

        Logs the elapsed time, type counts by outcome, and row counters. Emits a
        warning if any type failed.
        """
        elapsed_time = time.time() - start_time
        logger.info("Distribution refresh completed")
        logger.info(f"Time taken: {elapsed_time:.2f} seconds")
        logger.info(
            f"Types: {summary.succeeded} refreshed, {summary.skipped} skipped, "
            f"{summary.failed} failed; rows: {summary.created} created, {summary.updated} updated"
        )
        if summary.failed > 0:
            logger.warning(
                f"{summary.failed} distribution types failed - check logs for details"
            )
