"""Tests for pairing catalogs across the destination and source folders."""
import pytest

from apps.translations.errors import AmbiguousMatchError, CatalogMergeError
from apps.translations.locator import (
    FilePair,
    is_language_dir,
    language_root,
    list_languages,
    locate,
)

PO = 'msgid "a"\nmsgstr ""\n'


def _touch(path, text=PO):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def roots(tmp_path):
    destination = tmp_path / "taoItems" / "locales" / "fr-FR"
    source = tmp_path / "incoming"
    destination.mkdir(parents=True)
    source.mkdir()
    return destination, source


class TestLocate:

    def test_pairs_by_basename(self, roots):
        destination, source = roots
        _touch(destination / "messages.po")
        _touch(destination / "messages_po.js.po")
        _touch(source / "messages.po")
        _touch(source / "messages_po.js.po")

        result = locate(destination, source)

        assert [pair.name for pair in result.pairs] == ["messages.po", "messages_po.js.po"]
        assert result.pairs[0] == FilePair(destination / "messages.po", source / "messages.po")
        assert result.unmatched == []
        assert result.errors == []

    def test_basename_match_ignores_depth(self, roots):
        destination, source = roots
        _touch(destination / "messages.po")
        _touch(source / "export" / "fr" / "messages.po")

        result = locate(destination, source)

        assert result.pairs == [
            FilePair(destination / "messages.po", source / "export" / "fr" / "messages.po")
        ]

    def test_unmatched_files_reported_not_paired(self, roots):
        destination, source = roots
        _touch(destination / "messages.po")
        _touch(destination / "only_here.po")
        _touch(source / "messages.po")
        _touch(source / "only_there.po")

        result = locate(destination, source)

        assert [pair.name for pair in result.pairs] == ["messages.po"]
        assert result.unmatched_count == 2
        sides = {(u.side, u.path.name) for u in result.unmatched}
        assert sides == {("destination", "only_here.po"), ("source", "only_there.po")}

    def test_duplicate_basename_is_ambiguous(self, roots):
        destination, source = roots
        _touch(destination / "messages.po")
        _touch(source / "messages.po")
        _touch(source / "old" / "messages.po")
        _touch(destination / "other.po")
        _touch(source / "other.po")

        result = locate(destination, source)

        assert [pair.name for pair in result.pairs] == ["other.po"]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert isinstance(error, AmbiguousMatchError)
        assert error.name == "messages.po"
        assert len(error.candidates) == 3

    def test_other_files_ignored(self, roots):
        destination, source = roots
        _touch(destination / "messages.po")
        _touch(source / "messages.po")
        _touch(source / "README.md", "notes")
        _touch(destination / "messages.mo", "binary")

        result = locate(destination, source)

        assert len(result.pairs) == 1
        assert result.unmatched == []

    def test_suffix_from_settings(self, roots, settings):
        settings.TRANSLATION_MERGE = {"CATALOG_SUFFIX": ".pot"}
        destination, source = roots
        _touch(destination / "messages.pot")
        _touch(source / "messages.pot")
        _touch(destination / "messages.po")

        result = locate(destination, source)

        assert [pair.name for pair in result.pairs] == ["messages.pot"]
        assert result.unmatched == []

    def test_missing_root_raises(self, roots):
        destination, source = roots
        with pytest.raises(CatalogMergeError):
            locate(destination, source / "nope")


class TestFilePair:

    def test_basenames_must_match(self, tmp_path):
        with pytest.raises(ValueError):
            FilePair(tmp_path / "a.po", tmp_path / "b.po")


class TestLanguages:

    def test_language_discovery(self, tmp_path):
        extension = tmp_path / "taoItems"
        _touch(extension / "locales" / "fr-FR" / "messages.po")
        _touch(extension / "locales" / "de-DE" / "messages.po")
        (extension / "locales" / "empty").mkdir()

        assert list_languages(extension) == ["de-DE", "fr-FR"]
        assert is_language_dir(extension / "locales" / "fr-FR")
        assert not is_language_dir(extension / "locales" / "empty")

    def test_no_locales_folder(self, tmp_path):
        assert list_languages(tmp_path) == []

    def test_language_root(self, tmp_path):
        extension = tmp_path / "taoItems"
        _touch(extension / "locales" / "fr-FR" / "messages.po")

        assert language_root(extension, "fr-FR") == extension / "locales" / "fr-FR"
        with pytest.raises(CatalogMergeError):
            language_root(extension, "xx-XX")
