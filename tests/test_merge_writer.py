"""Tests for applying diffs and writing merged catalogs."""
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from apps.translations.catalog import parse, read_catalog, serialize
from apps.translations.diff_engine import DiffRecord
from apps.translations.errors import StaleDiffError, UnknownKeyError, WriteFailure
from apps.translations.locator import FilePair
from apps.translations.merge_writer import apply, write_catalog

PAIR = FilePair(Path("locales/fr-FR/messages.po"), Path("incoming/messages.po"))

DESTINATION = (
    '# Translators: keep it short.\n'
    'msgid "greeting"\n'
    'msgstr ""\n'
    '\n'
    '#: views/templates/form.tpl:3\n'
    'msgid "farewell"\n'
    'msgstr "Bye"\n'
    '\n'
    'msgid "label_TODO"\n'
    'msgstr "x"\n'
)


class TestApply:

    def test_example_scenario(self):
        catalog = parse(DESTINATION)
        merged = apply(catalog, [DiffRecord(PAIR, "greeting", "", "Hello")])

        assert merged.get("greeting").value == "Hello"
        assert merged.get("farewell").value == "Bye"
        assert serialize(merged) == DESTINATION.replace(
            'msgid "greeting"\nmsgstr ""', 'msgid "greeting"\nmsgstr "Hello"'
        )

    def test_input_catalog_not_mutated(self):
        catalog = parse(DESTINATION)
        apply(catalog, [DiffRecord(PAIR, "greeting", "", "Hello")])
        assert catalog.get("greeting").value == ""

    def test_untouched_entries_identical(self):
        catalog = parse(DESTINATION)
        merged = apply(catalog, [DiffRecord(PAIR, "label_TODO", "x", "y")])

        for before, after in zip(catalog, merged):
            if before.key != "label_TODO":
                assert before == after
        assert merged.keys() == catalog.keys()
        assert merged.get("label_TODO").leading_trivia == catalog.get("label_TODO").leading_trivia

    def test_applying_twice_is_idempotent(self):
        catalog = parse(DESTINATION)
        records = [
            DiffRecord(PAIR, "greeting", "", "Hello"),
            DiffRecord(PAIR, "label_TODO", "x", "y"),
        ]
        once = apply(catalog, records)
        twice = apply(once, records)
        assert serialize(twice) == serialize(once)

    def test_unknown_key(self):
        with pytest.raises(UnknownKeyError) as exc_info:
            apply(parse(DESTINATION), [DiffRecord(PAIR, "vanished", "", "Gone")])
        assert exc_info.value.key == "vanished"

    def test_stale_record(self):
        with pytest.raises(StaleDiffError):
            apply(parse(DESTINATION), [DiffRecord(PAIR, "farewell", "Ciao", "Goodbye")])

    def test_no_records(self):
        catalog = parse(DESTINATION)
        assert serialize(apply(catalog, [])) == DESTINATION


class TestWriteCatalog:

    def test_writes_merged_text(self, tmp_path):
        path = tmp_path / "messages.po"
        path.write_text(DESTINATION, encoding="utf-8")
        merged = apply(read_catalog(path), [DiffRecord(PAIR, "greeting", "", "Bonjour")])

        assert write_catalog(merged) == path
        assert read_catalog(path).get("greeting").value == "Bonjour"
        assert os.listdir(tmp_path) == ["messages.po"]

    def test_crlf_file_keeps_crlf(self, tmp_path):
        path = tmp_path / "messages.po"
        path.write_bytes(DESTINATION.replace("\n", "\r\n").encode("utf-8"))
        merged = apply(read_catalog(path), [DiffRecord(PAIR, "greeting", "", "Bonjour")])

        write_catalog(merged, path)

        assert path.read_bytes() == DESTINATION.replace(
            'msgstr ""\n', 'msgstr "Bonjour"\n', 1
        ).replace("\n", "\r\n").encode("utf-8")

    def test_failed_write_leaves_file_untouched(self, tmp_path):
        path = tmp_path / "messages.po"
        path.write_text(DESTINATION, encoding="utf-8")
        merged = apply(read_catalog(path), [DiffRecord(PAIR, "greeting", "", "Bonjour")])

        with patch(
            "apps.translations.merge_writer.shutil.move",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(WriteFailure) as exc_info:
                write_catalog(merged, path)

        assert exc_info.value.path == path
        assert path.read_text(encoding="utf-8") == DESTINATION
        assert os.listdir(tmp_path) == ["messages.po"]

    def test_missing_directory(self, tmp_path):
        merged = parse(DESTINATION)
        with pytest.raises(WriteFailure):
            write_catalog(merged, tmp_path / "gone" / "messages.po")
