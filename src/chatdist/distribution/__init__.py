"""
chatdist Distribution Subsystem

Tracks where each build of the chat application can be downloaded.

Core Components:
- types: DistributionType catalogue and fixed-URL types
- registry: per-type fetch configuration
- huggingface, github_source, pgyer, stores: provider fetchers
- store: SQLAlchemy persistence with upsert rules
- version: filename parsing, version comparison, latest selection
- orchestrator, scheduler: refresh cycle and its timer
- release_notes: markdown release notes reader
"""

from .base import BaseFetcher
from .github_source import GithubReleaseSource
from .huggingface import HuggingFaceFetcher
from .interfaces import (
    DistributionFetcher,
    DistributionRecord,
    FetchedArtifact,
    FetchResult,
    RefreshSummary,
    ReleaseNote,
    SaveOutcome,
    TypeRefreshResult,
)
from .orchestrator import RefreshOrchestrator, build_default_fetchers
from .pgyer import PgyerFetcher
from .registry import SOURCE_SPECS, SourceSpec, get_source_spec
from .release_notes import ReleaseNotesReader
from .scheduler import RefreshScheduler
from .store import DistributionStore
from .stores import AppStoreFetcher, PlayStoreFetcher
from .types import FIXED_URL_TYPES, DistributionType, Platform, Provider
from .version import VersionManager, select_latest_record

__all__ = [
    # Types
    "DistributionType",
    "Platform",
    "Provider",
    "FIXED_URL_TYPES",
    # Interfaces
    "DistributionFetcher",
    "DistributionRecord",
    "FetchedArtifact",
    "FetchResult",
    "RefreshSummary",
    "ReleaseNote",
    "SaveOutcome",
    "TypeRefreshResult",
    # Registry
    "SourceSpec",
    "SOURCE_SPECS",
    "get_source_spec",
    # Fetchers
    "BaseFetcher",
    "HuggingFaceFetcher",
    "GithubReleaseSource",
    "PgyerFetcher",
    "AppStoreFetcher",
    "PlayStoreFetcher",
    # Persistence and selection
    "DistributionStore",
    "VersionManager",
    "select_latest_record",
    # Orchestration
    "RefreshOrchestrator",
    "RefreshScheduler",
    "build_default_fetchers",
    # Release notes
    "ReleaseNotesReader",
]
