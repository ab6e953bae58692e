"""
Server-rendered download page and changelog.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from .i18n import LOCALE_NAMES, get_translations, negotiate_locale
from .pages import (
    PLATFORM_CHANNELS,
    build_platform_groups,
    format_version_text,
    prefers_mirrors,
    render_markdown,
)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["markdown"] = render_markdown

__all__ = [
    "LOCALE_NAMES",
    "PLATFORM_CHANNELS",
    "STATIC_DIR",
    "TEMPLATES_DIR",
    "build_platform_groups",
    "format_version_text",
    "get_translations",
    "negotiate_locale",
    "prefers_mirrors",
    "render_markdown",
    "templates",
]
