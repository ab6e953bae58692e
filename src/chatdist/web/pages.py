"""
View models for the download page and changelog.

Builds per-platform button groups from the latest distributions. Mirror
channels are listed first for zh-CN visitors and visitors located in
mainland China.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from markdown_it import MarkdownIt

from chatdist.constants import LATEST_VERSION_SENTINEL, TESTFLIGHT_URL
from chatdist.distribution.types import DistributionType, Platform

# (platform, title key, icon, [(type, channel label key, mainland mirror)])
PLATFORM_CHANNELS: List[Tuple[Platform, str, str, List[Tuple[DistributionType, str, bool]]]] = [
    (
        Platform.MACOS,
        "macos",
        "🍎",
        [
            (DistributionType.macosHF, "huggingface", False),
            (DistributionType.macosAF, "aifasthub", True),
            (DistributionType.macosGR, "github", False),
            (DistributionType.macosHFM, "hfMirror", True),
        ],
    ),
    (
        Platform.LINUX,
        "linux",
        "🐧",
        [
            (DistributionType.linuxHF, "huggingface", False),
            (DistributionType.linuxAF, "aifasthub", True),
            (DistributionType.linuxGR, "github", False),
            (DistributionType.linuxHFM, "hfMirror", True),
        ],
    ),
    (
        Platform.WINDOWS,
        "windowsInstaller",
        "🪟",
        [
            (DistributionType.winHF, "huggingface", False),
            (DistributionType.winAF, "aifasthub", True),
            (DistributionType.winGR, "github", False),
            (DistributionType.winHFM, "hfMirror", True),
        ],
    ),
    (
        Platform.WINDOWS_ZIP,
        "windowsZip",
        "📦",
        [
            (DistributionType.winZipHF, "huggingface", False),
            (DistributionType.winZipAF, "aifasthub", True),
            (DistributionType.winZipGR, "github", False),
            (DistributionType.winZipHFM, "hfMirror", True),
        ],
    ),
    (
        Platform.IOS,
        "ios",
        "📱",
        [
            (DistributionType.iOSTF, "testFlight", False),
            (DistributionType.iOSAS, "appStore", False),
        ],
    ),
    (
        Platform.ANDROID,
        "android",
        "🤖",
        [
            (DistributionType.androidHF, "huggingface", False),
            (DistributionType.androidAF, "aifasthub", True),
            (DistributionType.androidGR, "github", False),
            (DistributionType.androidHFM, "hfMirror", True),
            (DistributionType.androidPgyerAPK, "pgyerApk", True),
            (DistributionType.androidPgyer, "pgyer", True),
            (DistributionType.androidGooglePlay, "playStore", False),
        ],
    ),
]


# Channels without an automated source, linked directly
STATIC_CHANNEL_URLS = {DistributionType.iOSTF: TESTFLIGHT_URL}


@dataclass
class DownloadButton:
    dist_type: str
    label: str
    url: Optional[str]
    version_text: str
    available: bool
    mirror: bool


@dataclass
class PlatformGroup:
    platform: str
    title: str
    icon: str
    buttons: List[DownloadButton]


def format_version_text(record: Optional[Mapping[str, Any]], t: Mapping[str, str]) -> str:
    """
    Label shown under a button: "Available" for store links without a version,
    "3.4.0 (609)" with a build, the bare version otherwise, "Not available"
    with no record.
    """
    if not record:
        return t["notAvailable"]
    version = record.get("version")
    if version == LATEST_VERSION_SENTINEL:
        return t["available"]
    build = record.get("build")
    if build is not None:
        return f"{version} ({build})"
    return str(version)


def prefers_mirrors(locale: str, is_mainland_china: bool = False) -> bool:
    return locale == "zh-CN" or is_mainland_china


def build_platform_groups(
    latest: Mapping[str, Optional[Mapping[str, Any]]],
    t: Mapping[str, str],
    mirror_first: bool = False,
) -> List[PlatformGroup]:
    """
    Arrange the latest records into platform groups of download buttons.

    Parameters:
        latest: Type value -> public record dict (or None).
        t: Translation table for the page locale.
        mirror_first: List mirror channels before canonical ones within each group.
    """
    groups: List[PlatformGroup] = []
    for platform, title_key, icon, channels in PLATFORM_CHANNELS:
        ordered = channels
        if mirror_first:
            # sorted() is stable, so each partition keeps its canonical order
            ordered = sorted(channels, key=lambda channel: not channel[2])

        buttons = []
        for dist_type, channel_key, is_mirror in ordered:
            record = latest.get(dist_type.value)
            url = record.get("url") if record else None
            version_text = format_version_text(record, t)
            if not url and dist_type in STATIC_CHANNEL_URLS:
                url = STATIC_CHANNEL_URLS[dist_type]
                version_text = t["available"]
            buttons.append(
                DownloadButton(
                    dist_type=dist_type.value,
                    label=f"{t[title_key]} ({t[channel_key]})",
                    url=url,
                    version_text=version_text,
                    available=bool(url),
                    mirror=is_mirror,
                )
            )
        groups.append(
            PlatformGroup(platform=platform.value, title=t[title_key], icon=icon, buttons=buttons)
        )
    return groups


# Raw HTML in note files is escaped, not passed through
_markdown = MarkdownIt("commonmark", {"html": False})


def render_markdown(text: Optional[str]) -> str:
    """Render release-note markdown to an HTML fragment."""
    return _markdown.render(text or "")
