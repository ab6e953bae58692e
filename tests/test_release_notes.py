import pytest

from chatdist.distribution.release_notes import ReleaseNotesReader

pytestmark = [pytest.mark.unit]


@pytest.fixture
def notes_root(tmp_path):
    root = tmp_path / "release-notes"
    (root / "en").mkdir(parents=True)
    (root / "zh-CN").mkdir()
    return root


def _write(directory, name, content):
    (directory / name).write_text(content, encoding="utf-8")


class TestGetReleaseNotes:
    def test_exact_build_match(self, notes_root):
        _write(notes_root / "en", "609-3.4.0.md", "  New chat UI \n")
        reader = ReleaseNotesReader(str(notes_root))

        note = reader.get_release_notes(609)

        assert note.build == 609
        assert note.version == "3.4.0"
        assert note.content == "New chat UI"

    def test_locale_directory_preferred(self, notes_root):
        _write(notes_root / "en", "609-3.4.0.md", "English")
        _write(notes_root / "zh-CN", "609-3.4.0.md", "中文")
        reader = ReleaseNotesReader(str(notes_root))

        assert reader.get_release_notes(609, locale="zh-CN").content == "中文"
        assert reader.get_release_notes(609, locale="en").content == "English"

    def test_unknown_locale_falls_back_to_default(self, notes_root):
        _write(notes_root / "en", "609-3.4.0.md", "English")
        reader = ReleaseNotesReader(str(notes_root))
        assert reader.get_release_notes(609, locale="fr").content == "English"

    def test_language_prefix_directory(self, notes_root):
        (notes_root / "ja").mkdir()
        _write(notes_root / "ja", "609-3.4.0.md", "日本語")
        reader = ReleaseNotesReader(str(notes_root))
        assert reader.get_release_notes(609, locale="ja-JP").content == "日本語"

    def test_flat_root_layout(self, tmp_path):
        root = tmp_path / "flat"
        root.mkdir()
        _write(root, "12-1.8.0.md", "flat")
        reader = ReleaseNotesReader(str(root))
        assert reader.get_release_notes(12).content == "flat"

    def test_multiple_files_highest_version_wins(self, notes_root):
        _write(notes_root / "en", "609-3.4.0.md", "old")
        _write(notes_root / "en", "609-3.4.10.md", "new")
        _write(notes_root / "en", "609-3.4.2.md", "middle")
        reader = ReleaseNotesReader(str(notes_root))

        note = reader.get_release_notes(609)

        assert note.version == "3.4.10"
        assert note.content == "new"

    def test_legacy_file_without_version(self, notes_root):
        _write(notes_root / "en", "500.md", "legacy notes")
        reader = ReleaseNotesReader(str(notes_root))

        note = reader.get_release_notes(500)

        assert note.version is None
        assert note.content == "legacy notes"

    def test_patch_fallback_picks_closest_earlier_patch(self, notes_root):
        _write(notes_root / "en", "600-3.4.0.md", "3.4.0")
        _write(notes_root / "en", "605-3.4.2.md", "3.4.2")
        _write(notes_root / "en", "700-3.5.0.md", "other line")
        reader = ReleaseNotesReader(str(notes_root))

        note = reader.get_release_notes(650, version="3.4.5")

        assert note.build == 605
        assert note.version == "3.4.2"

    def test_patch_fallback_prefers_highest_build(self, notes_root):
        _write(notes_root / "en", "601-3.4.1.md", "first")
        _write(notes_root / "en", "603-3.4.1.md", "rebuild")
        reader = ReleaseNotesReader(str(notes_root))

        assert reader.get_release_notes(650, version="3.4.1").build == 603

    def test_no_match_without_version(self, notes_root):
        _write(notes_root / "en", "600-3.4.0.md", "3.4.0")
        reader = ReleaseNotesReader(str(notes_root))
        assert reader.get_release_notes(650) is None

    @pytest.mark.parametrize("build", [0, -3, True, "609"])
    def test_invalid_build(self, notes_root, build):
        _write(notes_root / "en", "609-3.4.0.md", "x")
        reader = ReleaseNotesReader(str(notes_root))
        assert reader.get_release_notes(build) is None

    def test_traversal_locale_is_ignored(self, tmp_path, notes_root):
        secret_dir = tmp_path / "secret"
        secret_dir.mkdir()
        _write(secret_dir, "609-9.9.9.md", "secret")
        _write(notes_root / "en", "609-3.4.0.md", "public")
        reader = ReleaseNotesReader(str(notes_root))

        note = reader.get_release_notes(609, locale="../secret")

        assert note.content == "public"

    def test_missing_root_returns_none(self, tmp_path):
        reader = ReleaseNotesReader(str(tmp_path / "does-not-exist"))
        assert reader.get_release_notes(1) is None


class TestGetAllReleaseNotes:
    def test_one_note_per_line_newest_first(self, notes_root):
        en = notes_root / "en"
        _write(en, "500-3.3.0.md", "3.3.0")
        _write(en, "510-3.3.4.md", "3.3.4")
        _write(en, "600-3.4.1.md", "3.4.1 a")
        _write(en, "602-3.4.1.md", "3.4.1 b")
        _write(en, "900-3.9.0.md", "not an allowed line")
        _write(en, "601-3.4.1-beta.md", "pre-release")
        reader = ReleaseNotesReader(str(notes_root), version_lines=["3.3", "3.4"])

        notes = reader.get_all_release_notes()

        assert [(n.version, n.build) for n in notes] == [("3.4.1", 602), ("3.3.4", 510)]

    def test_lines_sort_numerically(self, notes_root):
        en = notes_root / "en"
        _write(en, "1-1.9.0.md", "1.9")
        _write(en, "2-1.10.0.md", "1.10")
        reader = ReleaseNotesReader(str(notes_root), version_lines=["1.9", "1.10"])

        assert [n.version for n in reader.get_all_release_notes()] == ["1.10.0", "1.9.0"]

    def test_uses_locale_directory(self, notes_root):
        _write(notes_root / "en", "600-3.4.0.md", "English")
        _write(notes_root / "zh-CN", "600-3.4.0.md", "中文")
        reader = ReleaseNotesReader(str(notes_root), version_lines=["3.4"])

        notes = reader.get_all_release_notes(locale="zh-CN")

        assert [n.content for n in notes] == ["中文"]

    def test_empty_directory(self, notes_root):
        assert ReleaseNotesReader(str(notes_root)).get_all_release_notes() == []
