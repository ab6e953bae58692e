from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from chatdist.distribution.types import DistributionType
from chatdist.location import detect_location, get_client_ip
from chatdist.log_utils import logger
from chatdist.web import (
    LOCALE_NAMES,
    build_platform_groups,
    get_translations,
    negotiate_locale,
    prefers_mirrors,
    templates,
)

from .schemas import (
    HealthOut,
    LatestDistributions,
    LocationOut,
    RefreshResponse,
    ReleaseNoteOut,
    ReleaseNotesList,
)

router = APIRouter()
pages_router = APIRouter()


def _latest_public(request: Request, types: Optional[List[DistributionType]] = None) -> Dict[str, Any]:
    latest = request.app.state.store.get_latest_distributions(types)
    return {key: record.to_public_dict() if record else None for key, record in latest.items()}


def _default_locale(request: Request) -> str:
    return request.app.state.config.get("DEFAULT_LOCALE") or "en"


def _client_location(request: Request):
    peer = request.client.host if request.client else None
    ip = get_client_ip(request.headers, peer)
    return request.app.state.location_cache.get_or_lookup(ip, detect_location)


def _parse_build(build: Optional[str]) -> int:
    if build is None or not build.strip():
        raise HTTPException(status_code=400, detail="build query parameter is required")
    try:
        value = int(build.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid build number: {build}")
    if value <= 0:
        raise HTTPException(status_code=400, detail=f"Invalid build number: {build}")
    return value


@router.get("/distributions/latest", response_model=LatestDistributions)
def get_latest_distributions(request: Request, key: Optional[List[str]] = Query(None)):
    """
    Latest record per distribution type.

    With one or more `key` parameters only those types are returned; unknown
    keys are ignored.
    """
    types = None
    if key:
        types = [t for t in (DistributionType.from_key(k) for k in key) if t is not None]
    return _latest_public(request, types)


@router.post("/distributions/refresh", response_model=RefreshResponse)
def refresh_distributions(request: Request):
    logger.info("Manual distribution refresh requested")
    summary = request.app.state.orchestrator.run_refresh_cycle()
    return {"success": True, "summary": summary.to_dict(), "latest": _latest_public(request)}


@router.get("/distributions/release-notes", response_model=ReleaseNoteOut)
def get_release_notes(
    request: Request,
    build: Optional[str] = None,
    version: Optional[str] = None,
    locale: Optional[str] = None,
):
    build_number = _parse_build(build)
    note = request.app.state.reader.get_release_notes(
        build_number, version=version, locale=locale or _default_locale(request)
    )
    if note is None:
        return {"build": build_number, "version": None, "content": ""}
    return note.to_dict()


@router.get("/distributions/release-notes/all", response_model=ReleaseNotesList)
def get_all_release_notes(request: Request, locale: Optional[str] = None):
    notes = request.app.state.reader.get_all_release_notes(locale=locale or _default_locale(request))
    return [note.to_dict() for note in notes]


@router.get("/location", response_model=LocationOut)
def get_location(request: Request):
    return _client_location(request).to_dict()


@router.get("/health", response_model=HealthOut)
def health_check(request: Request):
    scheduler = request.app.state.scheduler
    return {
        "status": "active",
        "scheduler_running": bool(scheduler is not None and scheduler.is_running),
    }


def _page_context(request: Request, lang: Optional[str]) -> Dict[str, Any]:
    locale = negotiate_locale(
        lang, request.headers.get("accept-language"), _default_locale(request)
    )
    return {"locale": locale, "t": get_translations(locale), "locale_names": LOCALE_NAMES}


@pages_router.get("/", response_class=HTMLResponse)
def download_page(request: Request, lang: Optional[str] = None):
    context = _page_context(request, lang)
    locale = context["locale"]

    mirror_first = prefers_mirrors(locale)
    if not mirror_first:
        location = _client_location(request)
        mirror_first = prefers_mirrors(locale, location.isMainlandChina)

    context["groups"] = build_platform_groups(
        _latest_public(request), context["t"], mirror_first=mirror_first
    )
    return templates.TemplateResponse(request, "index.html", context)


@pages_router.get("/changelog", response_class=HTMLResponse)
def changelog_page(request: Request, lang: Optional[str] = None):
    context = _page_context(request, lang)
    context["notes"] = request.app.state.reader.get_all_release_notes(locale=context["locale"])
    return templates.TemplateResponse(request, "changelog.html", context)
