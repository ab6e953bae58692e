"""
Release notes reader.

Notes are markdown files laid out as:

    {root}/{locale}/{build}-{version}.md    (current layout)
    {root}/{locale}/{build}.md              (legacy, no version)
    {root}/{build}-{version}.md             (flat legacy layout)

Files are only ever read, and every read is confined to the root directory.
"""

import os
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from chatdist.constants import (
    DEFAULT_LOCALE,
    DEFAULT_RELEASE_NOTES_VERSION_LINES,
    RELEASE_NOTE_FILENAME_PATTERN,
    RELEASE_NOTES_EXTENSION,
)
from chatdist.exceptions import PathValidationError
from chatdist.log_utils import logger
from chatdist.utils import resolve_within, sanitize_path_component

from .interfaces import ReleaseNote
from .version import compare_versions, generate_patch_fallbacks

NOTE_FILENAME_RX = re.compile(RELEASE_NOTE_FILENAME_PATTERN)
SEMVER_EXACT_RX = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True)
class _NoteFile:
    file_name: str
    build: int
    version: str


def _semver_tuple(version: str) -> Optional[Tuple[int, int, int]]:
    match = SEMVER_EXACT_RX.match(version)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


class ReleaseNotesReader:
    """
    Reads release notes for a build, with locale and version fallbacks.
    """

    def __init__(
        self,
        root_dir: str,
        default_locale: str = DEFAULT_LOCALE,
        version_lines: Optional[Sequence[str]] = None,
    ):
        """
        Parameters:
            root_dir (str): Release-notes root directory.
            default_locale (str): Locale used when the requested one has no directory.
            version_lines (Optional[Sequence[str]]): MAJOR.MINOR lines listed by get_all_release_notes.
        """
        self.root_dir = os.path.realpath(root_dir)
        self.default_locale = sanitize_path_component(default_locale) or DEFAULT_LOCALE
        lines = version_lines if version_lines is not None else DEFAULT_RELEASE_NOTES_VERSION_LINES
        self.version_lines = {line.strip() for line in lines if line and line.strip()}
        logger.debug(f"Release notes directory: {self.root_dir}")

    # ------------------------------------------------------------------
    # Directory resolution
    # ------------------------------------------------------------------

    def _candidate_locales(self, locale: Optional[str]) -> List[str]:
        candidates: List[str] = []
        safe_locale = sanitize_path_component(locale) if locale else None
        if locale and safe_locale is None:
            logger.warning(f"Ignoring unsafe locale {locale!r}")
        if safe_locale:
            candidates.append(safe_locale)
            prefix = re.split(r"[-_]", safe_locale, maxsplit=1)[0]
            if prefix and prefix != safe_locale:
                candidates.append(prefix)
        if self.default_locale not in candidates:
            candidates.append(self.default_locale)
        return candidates

    def resolve_locale_dir(self, locale: Optional[str] = None) -> str:
        """
        Return the directory to read notes from.

        Tries {root}/{locale}, {root}/{language prefix}, {root}/{default locale},
        and finally the root itself.
        """
        for candidate in self._candidate_locales(locale):
            try:
                path = resolve_within(self.root_dir, candidate)
            except PathValidationError:
                logger.error(f"Path traversal attempt detected for locale {candidate!r}")
                continue
            if os.path.isdir(path):
                return path
        return self.root_dir

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _list_note_files(self, directory: str) -> List[_NoteFile]:
        try:
            names = os.listdir(directory)
        except OSError as e:
            logger.error(f"Error listing release notes in {directory}: {e}")
            return []

        notes = []
        for name in names:
            match = NOTE_FILENAME_RX.match(name)
            if match:
                notes.append(
                    _NoteFile(file_name=name, build=int(match.group(1)), version=match.group(2))
                )
        return notes

    def _read_file(self, directory: str, file_name: str) -> Optional[str]:
        """Read a note file; None if it is missing, unreadable, or outside the root."""
        try:
            path = resolve_within(self.root_dir, os.path.relpath(directory, self.root_dir), file_name)
        except PathValidationError as e:
            logger.error(f"Path traversal attempt detected: {e}")
            return None

        if not os.path.isfile(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading release notes file {file_name}: {e}")
            return None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_release_notes(
        self,
        build: int,
        version: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> Optional[ReleaseNote]:
        """
        Find the release notes for a build.

        Lookup order:
        1. {build}-{version}.md; with several, the highest version wins
        2. Legacy {build}.md, returned without a version
        3. When `version` is given, the closest earlier patch of the same
           MAJOR.MINOR line (highest patch first, then highest build)

        Parameters:
            build (int): Positive build number.
            version (Optional[str]): Version hint for the patch fallback.
            locale (Optional[str]): Preferred locale.

        Returns:
            ReleaseNote or None when nothing matched or the build is invalid.
        """
        if isinstance(build, bool) or not isinstance(build, int) or build <= 0:
            logger.warning(f"Invalid build number: {build!r}")
            return None

        directory = self.resolve_locale_dir(locale)
        note_files = self._list_note_files(directory)

        matching = [note for note in note_files if note.build == build]
        if len(matching) > 1:
            logger.warning(
                f"Multiple files found for build {build}: "
                f"{', '.join(sorted(n.file_name for n in matching))}. Using the highest version."
            )
        if matching:
            best = matching[0]
            for note in matching[1:]:
                if compare_versions(note.version, best.version) > 0:
                    best = note
            content = self._read_file(directory, best.file_name)
            if content is not None:
                logger.debug(f"Read release notes for build {build}, version {best.version}")
                return ReleaseNote(build=build, version=best.version, content=content)

        legacy_content = self._read_file(directory, f"{build}{RELEASE_NOTES_EXTENSION}")
        if legacy_content is not None:
            logger.debug(f"Found release notes in legacy format for build {build}")
            return ReleaseNote(build=build, version=None, content=legacy_content)

        if version and version.strip():
            fallback = self._find_by_version(directory, note_files, version.strip())
            if fallback is not None:
                return fallback
            logger.debug(f"No release notes found via fallback for version {version}")

        logger.debug(f"Release notes not found for build {build}")
        return None

    def _find_by_version(
        self, directory: str, note_files: Iterable[_NoteFile], version: str
    ) -> Optional[ReleaseNote]:
        fallback_versions = generate_patch_fallbacks(version)
        logger.debug(f"Generated fallback versions: {', '.join(fallback_versions)}")

        candidates = [note for note in note_files if note.version in fallback_versions]

        def _rank(note: _NoteFile) -> Tuple[int, int]:
            parsed = _semver_tuple(note.version)
            return (parsed[2] if parsed else 0, note.build)

        for note in sorted(candidates, key=_rank, reverse=True):
            content = self._read_file(directory, note.file_name)
            if content is not None:
                logger.debug(
                    f"Found release notes via fallback: build {note.build}, version {note.version}"
                )
                return ReleaseNote(build=note.build, version=note.version, content=content)
        return None

    def get_all_release_notes(self, locale: Optional[str] = None) -> List[ReleaseNote]:
        """
        List one note per allowed MAJOR.MINOR line, newest line first.

        Within a line the highest patch wins, then the highest build. Files whose
        version is not strictly MAJOR.MINOR.PATCH are ignored.
        """
        directory = self.resolve_locale_dir(locale)

        best_per_line: Dict[str, Tuple[Tuple[int, int, int], _NoteFile]] = {}
        for note in self._list_note_files(directory):
            parsed = _semver_tuple(note.version)
            if parsed is None:
                continue
            line = f"{parsed[0]}.{parsed[1]}"
            if line not in self.version_lines:
                continue
            existing = best_per_line.get(line)
            if existing is None or (parsed[2], note.build) > (existing[0][2], existing[1].build):
                best_per_line[line] = (parsed, note)

        results: List[Tuple[Tuple[int, int, int], ReleaseNote]] = []
        for parsed, note in best_per_line.values():
            content = self._read_file(directory, note.file_name)
            if content is None:
                continue
            results.append(
                (parsed, ReleaseNote(build=note.build, version=note.version, content=content))
            )

        results.sort(key=lambda item: item[0], reverse=True)
        logger.debug(f"Returning {len(results)} filtered release notes")
        return [note for _, note in results]
