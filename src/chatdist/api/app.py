"""
FastAPI application factory.

The lifespan creates the database tables, configures file logging and starts
the refresh scheduler; shutdown stops the scheduler and disposes the engine.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from chatdist import __version__
from chatdist.config import load_config
from chatdist.distribution.orchestrator import RefreshOrchestrator
from chatdist.distribution.release_notes import ReleaseNotesReader
from chatdist.distribution.scheduler import RefreshScheduler
from chatdist.distribution.store import DistributionStore
from chatdist.location import LocationCache
from chatdist.log_utils import add_file_logging, logger, set_log_level
from chatdist.web import STATIC_DIR

from .routes import pages_router, router


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    logger.info("Starting chatdist API...")

    set_log_level(state.config.get("LOG_LEVEL") or "INFO")
    if state.config.get("LOG_DIR"):
        add_file_logging(Path(state.config["LOG_DIR"]), state.config.get("LOG_LEVEL") or "INFO")

    state.store.create_all()

    if state.start_scheduler:
        state.scheduler.start()

    yield

    logger.info("Stopping chatdist API...")
    state.scheduler.stop()
    state.store.dispose()


def create_app(
    config: Optional[Dict[str, Any]] = None,
    store: Optional[DistributionStore] = None,
    orchestrator: Optional[RefreshOrchestrator] = None,
    reader: Optional[ReleaseNotesReader] = None,
    start_scheduler: Optional[bool] = None,
) -> FastAPI:
    """
    Build the application and its services.

    Parameters:
        config: Loaded configuration; defaults to load_config().
        store: Distribution store; defaults to one on config DATABASE_URL.
        orchestrator: Refresh orchestrator; defaults to the standard fetchers.
        reader: Release notes reader; defaults to config RELEASE_NOTES_DIR.
        start_scheduler: Start the refresh timer on startup; defaults to config REFRESH_ON_STARTUP.

    Returns:
        FastAPI: The configured application.
    """
    config = config if config is not None else load_config()
    store = store or DistributionStore(config["DATABASE_URL"])
    orchestrator = orchestrator or RefreshOrchestrator(config, store)
    reader = reader or ReleaseNotesReader(
        config["RELEASE_NOTES_DIR"],
        default_locale=config.get("DEFAULT_LOCALE") or "en",
        version_lines=config.get("RELEASE_NOTES_VERSION_LINES") or None,
    )
    if start_scheduler is None:
        start_scheduler = bool(config.get("REFRESH_ON_STARTUP", True))

    app = FastAPI(title="chatdist API", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.orchestrator = orchestrator
    app.state.reader = reader
    app.state.start_scheduler = start_scheduler
    app.state.location_cache = LocationCache()
    app.state.scheduler = RefreshScheduler(
        orchestrator.run_refresh_cycle,
        interval_minutes=config.get("REFRESH_INTERVAL_MINUTES") or 30,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(router)
    app.include_router(pages_router)
    return app
