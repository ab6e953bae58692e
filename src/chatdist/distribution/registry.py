"""
Per-type fetch configuration.

Each DistributionType with a source maps to a SourceSpec describing which
provider serves it and where to look. Fetchers are parameterized by these
specs instead of having one code path per type.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional, Pattern

from chatdist.constants import AIFASTHUB_ENDPOINT, HF_MIRROR_ENDPOINT

from .types import DistributionType, Platform, Provider

# Folder / extension pairs in the HuggingFace dataset
MACOS_FOLDER = ("macos-universal", ".dmg")
LINUX_FOLDER = ("linux-x64", ".tar.gz")
WIN_INSTALLER_FOLDER = ("windows-x64-installer", ".exe")
WIN_ZIP_FOLDER = ("windows-x64", ".zip")
ANDROID_FOLDER = ("android-arm64", ".apk")

# GitHub release asset name filters
MACOS_ASSET_RX = re.compile(r"macos|universal", re.IGNORECASE)
LINUX_ASSET_RX = re.compile(r"linux", re.IGNORECASE)
WIN_INSTALLER_ASSET_RX = re.compile(r"windows.*installer|setup", re.IGNORECASE)
WIN_ZIP_ASSET_RX = re.compile(r"windows", re.IGNORECASE)
ANDROID_ASSET_RX = re.compile(r"^(?!.*(?:macos|linux|windows|universal))", re.IGNORECASE)

PGYER_LINK_INSTALL = "install"
PGYER_LINK_SHORTCUT = "shortcut"


@dataclass(frozen=True)
class SourceSpec:
    """Location descriptor handed to a fetcher."""

    provider: Provider
    platform: Platform
    folder: Optional[str] = None
    extension: Optional[str] = None
    endpoint: Optional[str] = None
    """Listing endpoint; None means the configured HF_ENDPOINT"""
    append_download_param: bool = False
    asset_pattern: Optional[Pattern[str]] = None
    pgyer_link: Optional[str] = None


def _listing(
    platform: Platform,
    folder_ext: tuple,
    endpoint: Optional[str] = None,
    append_download_param: bool = False,
) -> SourceSpec:
    folder, extension = folder_ext
    return SourceSpec(
        provider=Provider.HUGGINGFACE,
        platform=platform,
        folder=folder,
        extension=extension,
        endpoint=endpoint,
        append_download_param=append_download_param,
    )


def _github(platform: Platform, extension: str, pattern: Pattern[str]) -> SourceSpec:
    return SourceSpec(
        provider=Provider.GITHUB,
        platform=platform,
        extension=extension,
        asset_pattern=pattern,
    )


def _listing_family(platform: Platform, folder_ext: tuple) -> Dict[str, SourceSpec]:
    """HuggingFace, Aifasthub and HF-Mirror specs for one folder."""
    return {
        "HF": _listing(platform, folder_ext),
        "AF": _listing(
            platform, folder_ext, AIFASTHUB_ENDPOINT, append_download_param=True
        ),
        "HFM": _listing(platform, folder_ext, HF_MIRROR_ENDPOINT),
    }


_macos = _listing_family(Platform.MACOS, MACOS_FOLDER)
_linux = _listing_family(Platform.LINUX, LINUX_FOLDER)
_win = _listing_family(Platform.WINDOWS, WIN_INSTALLER_FOLDER)
_win_zip = _listing_family(Platform.WINDOWS_ZIP, WIN_ZIP_FOLDER)
_android = _listing_family(Platform.ANDROID, ANDROID_FOLDER)

SOURCE_SPECS: Dict[DistributionType, SourceSpec] = {
    DistributionType.macosHF: _macos["HF"],
    DistributionType.macosAF: _macos["AF"],
    DistributionType.macosGR: _github(Platform.MACOS, ".dmg", MACOS_ASSET_RX),
    DistributionType.macosHFM: _macos["HFM"],
    DistributionType.linuxHF: _linux["HF"],
    DistributionType.linuxAF: _linux["AF"],
    DistributionType.linuxGR: _github(Platform.LINUX, ".tar.gz", LINUX_ASSET_RX),
    DistributionType.linuxHFM: _linux["HFM"],
    DistributionType.winHF: _win["HF"],
    DistributionType.winAF: _win["AF"],
    DistributionType.winGR: _github(Platform.WINDOWS, ".exe", WIN_INSTALLER_ASSET_RX),
    DistributionType.winHFM: _win["HFM"],
    DistributionType.winZipHF: _win_zip["HF"],
    DistributionType.winZipAF: _win_zip["AF"],
    DistributionType.winZipGR: _github(Platform.WINDOWS_ZIP, ".zip", WIN_ZIP_ASSET_RX),
    DistributionType.winZipHFM: _win_zip["HFM"],
    DistributionType.iOSAS: SourceSpec(
        provider=Provider.APP_STORE, platform=Platform.IOS
    ),
    DistributionType.androidHF: _android["HF"],
    DistributionType.androidAF: _android["AF"],
    DistributionType.androidGR: _github(Platform.ANDROID, ".apk", ANDROID_ASSET_RX),
    DistributionType.androidHFM: _android["HFM"],
    DistributionType.androidPgyerAPK: SourceSpec(
        provider=Provider.PGYER, platform=Platform.ANDROID, pgyer_link=PGYER_LINK_INSTALL
    ),
    DistributionType.androidPgyer: SourceSpec(
        provider=Provider.PGYER,
        platform=Platform.ANDROID,
        pgyer_link=PGYER_LINK_SHORTCUT,
    ),
    DistributionType.androidGooglePlay: SourceSpec(
        provider=Provider.PLAY_STORE, platform=Platform.ANDROID
    ),
}

# Types that are tracked but have no automated source yet
UNSOURCED_TYPES = frozenset({DistributionType.iOSTF})


def get_source_spec(dist_type: DistributionType) -> Optional[SourceSpec]:
    """Return the fetch configuration for a type, or None when it has no source."""
    return SOURCE_SPECS.get(dist_type)
