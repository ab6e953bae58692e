"""
Distribution type catalogue.

Every downloadable artifact is identified by a platform and a hosting channel.
The combination is a DistributionType; the set is append-only because values are
persisted in the database and exposed over the API.
"""

from enum import Enum
from typing import FrozenSet


class DistributionType(str, Enum):
    """Artifact type x hosting provider."""

    macosHF = "macosHF"
    macosAF = "macosAF"
    macosGR = "macosGR"
    macosHFM = "macosHFM"
    linuxHF = "linuxHF"
    linuxAF = "linuxAF"
    linuxGR = "linuxGR"
    linuxHFM = "linuxHFM"
    winHF = "winHF"
    winAF = "winAF"
    winGR = "winGR"
    winHFM = "winHFM"
    winZipHF = "winZipHF"
    winZipAF = "winZipAF"
    winZipGR = "winZipGR"
    winZipHFM = "winZipHFM"
    iOSTF = "iOSTF"
    iOSAS = "iOSAS"
    androidHF = "androidHF"
    androidAF = "androidAF"
    androidGR = "androidGR"
    androidHFM = "androidHFM"
    androidPgyerAPK = "androidPgyerAPK"
    androidPgyer = "androidPgyer"
    androidGooglePlay = "androidGooglePlay"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_key(cls, key: str) -> "DistributionType | None":
        """Return the member named `key`, or None for unknown keys."""
        try:
            return cls(key)
        except ValueError:
            return None


class Provider(str, Enum):
    """Hosting provider families; each one is served by a single fetcher."""

    HUGGINGFACE = "huggingface"
    GITHUB = "github"
    PGYER = "pgyer"
    APP_STORE = "app_store"
    PLAY_STORE = "play_store"


class Platform(str, Enum):
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"
    WINDOWS_ZIP = "windows_zip"
    IOS = "ios"
    ANDROID = "android"


# Types whose URL never changes; one logical row per type, updated in place.
FIXED_URL_TYPES: FrozenSet[DistributionType] = frozenset(
    {DistributionType.iOSAS, DistributionType.androidGooglePlay}
)


def is_fixed_url_type(dist_type: DistributionType) -> bool:
    return dist_type in FIXED_URL_TYPES
