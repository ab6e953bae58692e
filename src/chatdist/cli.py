# src/chatdist/cli.py

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn

from chatdist import __version__, log_utils
from chatdist.api.app import create_app
from chatdist.config import load_config
from chatdist.distribution.orchestrator import RefreshOrchestrator
from chatdist.distribution.release_notes import ReleaseNotesReader
from chatdist.distribution.store import DistributionStore
from chatdist.distribution.types import DistributionType
from chatdist.exceptions import ChatdistError


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _load_config_or_exit(config_path: Optional[str]) -> Dict[str, Any]:
    try:
        config = load_config(config_path)
    except ChatdistError as error:
        log_utils.logger.error(f"Failed to load configuration: {error}")
        sys.exit(1)

    log_utils.set_log_level(config.get("LOG_LEVEL") or "INFO")
    if config.get("LOG_DIR"):
        log_utils.add_file_logging(Path(config["LOG_DIR"]), config.get("LOG_LEVEL") or "INFO")
    return config


def _open_store(config: Dict[str, Any]) -> DistributionStore:
    store = DistributionStore(config["DATABASE_URL"])
    store.create_all()
    return store


def run_serve(config: Dict[str, Any], host: Optional[str], port: Optional[int]) -> None:
    app = create_app(config)
    uvicorn.run(app, host=host or config["HOST"], port=port or config["PORT"])


def run_refresh(config: Dict[str, Any]) -> int:
    store = _open_store(config)
    try:
        summary = RefreshOrchestrator(config, store).run_refresh_cycle()
    finally:
        store.dispose()
    _print_json(summary.to_dict())
    return 1 if summary.fatal_error else 0


def run_latest(config: Dict[str, Any], keys) -> int:
    types = None
    if keys:
        types = []
        for key in keys:
            dist_type = DistributionType.from_key(key)
            if dist_type is None:
                log_utils.logger.warning(f"Ignoring unknown distribution type: {key}")
                continue
            types.append(dist_type)

    store = _open_store(config)
    try:
        latest = store.get_latest_distributions(types)
    finally:
        store.dispose()
    _print_json({key: record.to_public_dict() if record else None for key, record in latest.items()})
    return 0


def run_release_notes(
    config: Dict[str, Any], build: int, version: Optional[str], locale: Optional[str]
) -> int:
    reader = ReleaseNotesReader(
        config["RELEASE_NOTES_DIR"],
        default_locale=config.get("DEFAULT_LOCALE") or "en",
        version_lines=config.get("RELEASE_NOTES_VERSION_LINES") or None,
    )
    note = reader.get_release_notes(build, version=version, locale=locale)
    if note is None:
        log_utils.logger.info(f"No release notes found for build {build}")
        return 1
    _print_json(note.to_dict())
    return 0


def main(argv=None):
    """
    Entry point for the chatdist command-line interface.

    Subcommands: serve (HTTP API and download page), refresh (one refresh
    cycle), latest (print the latest record per type), release-notes, version.
    """
    parser = argparse.ArgumentParser(
        description="chatdist - chat app distribution tracker and download site"
    )
    parser.add_argument(
        "--config", dest="config_path", help="Path to a YAML configuration file"
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API and download page")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    subparsers.add_parser("refresh", help="Run one refresh cycle and print the summary")

    latest_parser = subparsers.add_parser(
        "latest", help="Print the latest distribution per type"
    )
    latest_parser.add_argument(
        "keys", nargs="*", metavar="TYPE", help="Distribution types to show (default: all)"
    )

    notes_parser = subparsers.add_parser(
        "release-notes", help="Print the release notes for a build"
    )
    notes_parser.add_argument("--build", type=int, required=True, help="Build number")
    notes_parser.add_argument("--version", dest="note_version", help="Version hint for fallback lookup")
    notes_parser.add_argument("--locale", help="Preferred locale (e.g. zh-CN)")

    subparsers.add_parser("version", help="Display chatdist version")
    subparsers.add_parser("help", help="Display help information")

    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"chatdist version {__version__}")
        return
    if args.command in (None, "help"):
        parser.print_help()
        return

    config = _load_config_or_exit(args.config_path)

    if args.command == "serve":
        run_serve(config, args.host, args.port)
    elif args.command == "refresh":
        sys.exit(run_refresh(config))
    elif args.command == "latest":
        sys.exit(run_latest(config, args.keys))
    elif args.command == "release-notes":
        sys.exit(run_release_notes(config, args.build, args.note_version, args.locale))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
