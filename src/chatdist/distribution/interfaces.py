"""
Core Interfaces for the chatdist Distribution Subsystem

This module defines the data structures exchanged between fetchers, the
store, and the refresh orchestrator, plus the abstract fetcher contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .types import DistributionType

if TYPE_CHECKING:
    from .registry import SourceSpec


@dataclass(frozen=True)
class FetchedArtifact:
    """One artifact observed at a provider."""

    url: str
    """Download or store URL for the artifact"""

    version: str
    """Semantic version (MAJOR.MINOR.PATCH) or the "latest" sentinel"""

    build: Optional[int] = None
    """Build number when the source encodes one"""

    name: Optional[str] = None
    """Original filename, for logging only"""


@dataclass
class FetchResult:
    """Result of querying a provider for one distribution type."""

    success: bool
    """Whether the provider answered with usable data"""

    artifacts: List[FetchedArtifact] = field(default_factory=list)
    """Artifacts extracted from the response, newest first"""

    error_message: Optional[str] = None
    """Error message (if failed or skipped)"""

    error_type: Optional[str] = None
    """Type/category of error (network, http, payload, config, empty)"""

    http_status_code: Optional[int] = None
    """HTTP status code if the request failed with an HTTP error"""

    was_skipped: bool = False
    """Whether the fetch was not attempted, e.g. because credentials are missing"""


class SaveOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class DistributionRecord:
    """A persisted distribution row, detached from the database session."""

    id: int
    type: str
    url: str
    version: str
    build: Optional[int]
    created_at: datetime
    updated_at: datetime

    def to_public_dict(self) -> Dict[str, Any]:
        """
        Serialize the record for API consumers.

        The database id is omitted and timestamps are rendered as ISO 8601 strings
        under camelCase keys.
        """
        return {
            "type": self.type,
            "url": self.url,
            "version": self.version,
            "build": self.build,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class ReleaseNote:
    build: int
    version: Optional[str]
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"build": self.build, "version": self.version, "content": self.content}


@dataclass
class TypeRefreshResult:
    """Outcome of one distribution type within a refresh cycle."""

    dist_type: DistributionType
    fetch_result: Optional[FetchResult] = None
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    error_message: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error_message is not None:
            return "failed"
        if self.fetch_result is None or self.fetch_result.was_skipped:
            return "skipped"
        if not self.fetch_result.success:
            return "failed"
        return "ok"

    def to_dict(self) -> Dict[str, Any]:
        fetch = self.fetch_result
        return {
            "status": self.status,
            "artifacts": len(fetch.artifacts) if fetch else 0,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "error": self.error_message or (fetch.error_message if fetch else None),
            "errorType": fetch.error_type if fetch else None,
        }


@dataclass
class RefreshSummary:
    """Aggregated results of a refresh cycle."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    results: Dict[DistributionType, TypeRefreshResult] = field(default_factory=dict)
    fatal_error: Optional[str] = None

    def _count_status(self, status: str) -> int:
        return sum(1 for r in self.results.values() if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count_status("ok")

    @property
    def failed(self) -> int:
        return self._count_status("failed")

    @property
    def skipped(self) -> int:
        return self._count_status("skipped")

    @property
    def created(self) -> int:
        return sum(r.created for r in self.results.values())

    @property
    def updated(self) -> int:
        return sum(r.updated for r in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "created": self.created,
            "updated": self.updated,
            "fatalError": self.fatal_error,
            "types": {str(t): r.to_dict() for t, r in self.results.items()},
        }


class DistributionFetcher(ABC):
    """
    Abstract base class for provider fetchers.

    A fetcher queries one hosting-provider family and reports what it found as
    a FetchResult. Implementations must never raise for provider failures.
    """

    @abstractmethod
    def fetch(self, dist_type: DistributionType, spec: "SourceSpec") -> FetchResult:
        """
        Query the provider described by `spec` for artifacts of `dist_type`.

        Returns:
            FetchResult: Success flag, extracted artifacts, and error metadata.
        """
