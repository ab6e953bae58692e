"""
Version handling for the chatdist Distribution Subsystem

This module extracts (version, build) pairs from artifact filenames and
release tags, compares dotted numeric versions, and picks the latest record
out of a type's history.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from packaging.version import InvalidVersion, Version
from packaging.version import parse as parse_version

from chatdist.constants import (
    GENERIC_VERSION_PATTERN,
    LATEST_VERSION_SENTINEL,
    RELEASE_TAG_PATTERN,
    RWKV_CHAT_FILENAME_PATTERN,
)
from chatdist.log_utils import logger

from .interfaces import DistributionRecord

ParsedVersion = Tuple[Optional[str], Optional[int]]


class VersionManager:
    """
    Parses and compares application versions.

    This class encapsulates all version-related logic including:
    - (version, build) extraction from artifact filenames and release tags
    - Dotted numeric comparison tolerant of "v" prefixes and suffixes
    - Release tuple extraction backed by packaging.version
    """

    RWKV_CHAT_RX = re.compile(RWKV_CHAT_FILENAME_PATTERN)
    GENERIC_VERSION_RX = re.compile(GENERIC_VERSION_PATTERN)
    RELEASE_TAG_RX = re.compile(RELEASE_TAG_PATTERN)
    SEMVER_RX = re.compile(r"(\d+\.\d+\.\d+)")
    LEADING_DIGITS_RX = re.compile(r"^(\d+)")

    def parse_filename(self, filename: str) -> ParsedVersion:
        """
        Extract version and build number from an artifact filename.

        Recognized forms, first match wins:
            rwkv_chat_3.4.0_609.apk, rwkv_chat_3.4.0_609_linux-x64.tar.gz
            app-3.4.0+609.dmg, app_3.4.0_609.zip, app-3.4.0.dmg

        Returns:
            (version, build): version is None when nothing matched; build is None
            when the filename carries no build number.
        """
        if not filename:
            return None, None

        m_chat = self.RWKV_CHAT_RX.search(filename)
        if m_chat:
            return m_chat.group(1), int(m_chat.group(2))

        m_generic = self.GENERIC_VERSION_RX.search(filename)
        if m_generic:
            build_str = m_generic.group(2) or m_generic.group(3)
            return m_generic.group(1), int(build_str) if build_str else None

        return None, None

    def parse_release_tag(self, tag: Optional[str]) -> ParsedVersion:
        """
        Extract version and build number from a release tag such as v3.4.0+609 or 3.4.0-609.
        """
        if not tag:
            return None, None

        m_tag = self.RELEASE_TAG_RX.search(tag)
        if not m_tag:
            return None, None

        build_str = m_tag.group(2) or m_tag.group(3)
        return m_tag.group(1), int(build_str) if build_str else None

    def extract_semver(self, value: Optional[str]) -> Optional[str]:
        """Return the first X.Y.Z found in `value`, the stripped raw value otherwise."""
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        match = self.SEMVER_RX.search(text)
        return match.group(1) if match else text

    def extract_first_int(self, value: Optional[object]) -> Optional[int]:
        """Return the first run of digits in `value` as an int."""
        if value is None:
            return None
        match = re.search(r"(\d+)", str(value))
        return int(match.group(1)) if match else None

    def get_release_tuple(self, version: Optional[str]) -> Optional[Tuple[int, ...]]:
        """
        Return the numeric release components of a version string.

        A leading "v" is ignored, and each dot-separated part contributes the
        integer value of its leading digits (non-digit suffixes are dropped; a
        part with no leading digits counts as 0).

        Returns:
            Tuple such as (3, 4, 0), or None for empty, missing, or "latest" input.
        """
        if version is None:
            return None

        trimmed = version.strip()
        if not trimmed or trimmed == LATEST_VERSION_SENTINEL:
            return None

        if trimmed.lower().startswith("v"):
            trimmed = trimmed[1:]

        try:
            parsed = parse_version(trimmed)
        except InvalidVersion:
            parsed = None

        if isinstance(parsed, Version) and parsed.release and not parsed.local:
            if "." not in trimmed or trimmed.count(".") + 1 == len(parsed.release):
                return tuple(parsed.release)

        parts = []
        for part in trimmed.split("."):
            m_digits = self.LEADING_DIGITS_RX.match(part)
            parts.append(int(m_digits.group(1)) if m_digits else 0)
        return tuple(parts) if parts else None

    def compare_versions(self, version1: Optional[str], version2: Optional[str]) -> int:
        """
        Compare two dotted numeric versions.

        Components are compared numerically left to right; the shorter sequence
        is padded with zeros so "3.4" equals "3.4.0". Empty versions sort first.

        Returns:
            int: 1 if version1 > version2, 0 if equal, -1 if version1 < version2
        """
        t1 = self.get_release_tuple(version1) or ()
        t2 = self.get_release_tuple(version2) or ()

        if not t1 and not t2:
            return 0
        if not t1:
            return -1
        if not t2:
            return 1

        width = max(len(t1), len(t2))
        p1 = t1 + (0,) * (width - len(t1))
        p2 = t2 + (0,) * (width - len(t2))

        if p1 > p2:
            return 1
        if p1 < p2:
            return -1
        return 0

    def format_display_version(self, version: Optional[str], build: Optional[int]) -> str:
        """Render a version for log lines: "3.4.0+609", "3.4.0", or "unknown"."""
        if not version:
            return "unknown"
        if build is not None:
            return f"{version}+{build}"
        return version

    def select_latest_record(
        self, records: Iterable[DistributionRecord]
    ) -> Optional[DistributionRecord]:
        """
        Pick the current record out of all rows for one distribution type.

        Rules, in order:
        1. Any row whose version is "latest" wins (store links without a version).
        2. Otherwise the highest version wins, comparing dotted numerically.
        3. For equal versions the higher build wins when both have one, and a
           row with a build beats a row without.

        Rows are first ordered newest created first (then highest id), so ties on
        (version, build) resolve to the most recently created row and the result
        does not depend on input order.

        Returns:
            The selected record, or None if `records` is empty.
        """
        ordered: List[DistributionRecord] = sorted(
            records, key=lambda r: (r.created_at, r.id), reverse=True
        )
        if not ordered:
            return None

        for record in ordered:
            if record.version == LATEST_VERSION_SENTINEL:
                return record

        best = ordered[0]
        for record in ordered:
            if not record.version:
                continue

            cmp = self.compare_versions(record.version, best.version)
            if cmp > 0:
                best = record
            elif cmp == 0 and record is not best:
                if record.build is not None and best.build is not None:
                    if record.build > best.build:
                        best = record
                elif record.build is not None and best.build is None:
                    best = record

        return best


# ==============================================================================
# Module-level helpers delegating to a shared VersionManager
# ==============================================================================

_version_manager = VersionManager()


def parse_filename(filename: str) -> ParsedVersion:
    return _version_manager.parse_filename(filename)


def parse_release_tag(tag: Optional[str]) -> ParsedVersion:
    return _version_manager.parse_release_tag(tag)


def compare_versions(version1: Optional[str], version2: Optional[str]) -> int:
    return _version_manager.compare_versions(version1, version2)


def format_display_version(version: Optional[str], build: Optional[int]) -> str:
    return _version_manager.format_display_version(version, build)


def select_latest_record(
    records: Sequence[DistributionRecord],
) -> Optional[DistributionRecord]:
    return _version_manager.select_latest_record(records)


def generate_patch_fallbacks(version: str) -> List[str]:
    """
    List the versions to try when release notes for `version` are missing.

    "3.7.4" yields ["3.7.4", "3.7.3", "3.7.2", "3.7.1", "3.7.0"]. A version that
    is not strictly MAJOR.MINOR.PATCH yields just itself.
    """
    match = re.match(r"^(\d+)\.(\d+)\.(\d+)$", version.strip())
    if not match:
        logger.debug(f"Version {version!r} is not MAJOR.MINOR.PATCH; no patch fallback")
        return [version]

    major, minor, patch = (int(g) for g in match.groups())
    return [f"{major}.{minor}.{p}" for p in range(patch, -1, -1)]
