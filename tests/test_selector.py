"""Tests for entry selection and SearchMode construction."""
import pytest

from apps.translations.catalog import parse
from apps.translations.selector import SearchMode, is_eligible, select

CATALOG = parse(
    'msgid ""\n'
    'msgstr "Content-Type: text/plain; charset=UTF-8\\n"\n'
    '\n'
    'msgid "greeting"\n'
    'msgstr ""\n'
    '\n'
    'msgid "farewell"\n'
    'msgstr "Bye"\n'
    '\n'
    'msgid "label_TODO"\n'
    'msgstr "x"\n'
    '\n'
    'msgid "Save"\n'
    'msgstr "Enregistrer_TODO"\n'
    '\n'
    'msgid "%d file"\n'
    'msgid_plural "%d files"\n'
    'msgstr[0] ""\n'
    'msgstr[1] ""\n'
)


class TestSearchMode:

    def test_default_selects_empty_only(self):
        assert SearchMode().ends_with is None

    def test_from_input_trims(self):
        assert SearchMode.from_input("  _TODO ").ends_with == "_TODO"

    @pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
    def test_blank_input_means_absent(self, raw):
        assert SearchMode.from_input(raw) == SearchMode()

    def test_empty_suffix_rejected_by_constructor(self):
        with pytest.raises(ValueError):
            SearchMode(ends_with="")

    def test_non_string_suffix_rejected(self):
        with pytest.raises(TypeError):
            SearchMode(ends_with=5)

    def test_describe(self):
        assert SearchMode().describe() == "empty messages"
        assert "_TODO" in SearchMode("_TODO").describe()


class TestSelect:

    def test_empty_values_only_by_default(self):
        assert select(CATALOG, SearchMode()) == {"greeting"}

    def test_suffix_matches_key_or_value(self):
        selected = select(CATALOG, SearchMode(ends_with="_TODO"))
        assert selected == {"greeting", "label_TODO", "Save"}

    def test_header_never_selected(self):
        header_only = parse('msgid ""\nmsgstr ""\n')
        assert select(header_only, SearchMode()) == frozenset()

    def test_plural_entries_never_selected(self):
        assert "%d file" not in select(CATALOG, SearchMode())

    def test_selection_is_sound(self):
        mode = SearchMode(ends_with="_TODO")
        selected = select(CATALOG, mode)
        for entry in CATALOG:
            if entry.key in selected:
                assert entry.value == "" or (
                    entry.key.endswith("_TODO") or entry.value.endswith("_TODO")
                )

    def test_deterministic(self):
        mode = SearchMode(ends_with="_TODO")
        assert select(CATALOG, mode) == select(CATALOG, mode)

    def test_is_eligible_matches_select(self):
        mode = SearchMode(ends_with="Bye")
        assert is_eligible(CATALOG.get("farewell"), mode)
        assert not is_eligible(CATALOG.get("farewell"), SearchMode())
