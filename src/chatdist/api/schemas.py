from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DistributionOut(BaseModel):
    """
    Public view of a distribution row. The database id is never exposed.
    """

    type: str
    url: str
    version: str
    build: Optional[int] = None
    createdAt: str
    updatedAt: str


class ReleaseNoteOut(BaseModel):
    build: int
    version: Optional[str] = None
    content: str = ""


class TypeRefreshOut(BaseModel):
    status: str
    artifacts: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    error: Optional[str] = None
    errorType: Optional[str] = None


class RefreshSummaryOut(BaseModel):
    startedAt: str
    finishedAt: Optional[str] = None
    succeeded: int
    failed: int
    skipped: int
    created: int
    updated: int
    fatalError: Optional[str] = None
    types: Dict[str, TypeRefreshOut] = Field(default_factory=dict)


class RefreshResponse(BaseModel):
    """
    Result of a manual refresh. `success` stays true on partial failure;
    per-type problems are reported inside the summary.
    """

    success: bool = True
    summary: RefreshSummaryOut
    latest: Dict[str, Optional[DistributionOut]]


class LocationOut(BaseModel):
    country: str
    countryCode: str = ""
    region: str = ""
    regionCode: str = ""
    isMainlandChina: bool = False


class HealthOut(BaseModel):
    status: str
    scheduler_running: bool


LatestDistributions = Dict[str, Optional[DistributionOut]]
ReleaseNotesList = List[ReleaseNoteOut]
