"""Compute the proposed msgstr replacements for each catalog pair.

The diff never invents content: a record is only produced when the incoming
catalog has a non-empty value for the key that differs from what the
destination already holds. Records keep destination file order so two runs
over the same files print the same diff.
"""
import logging
from dataclasses import dataclass, field
from typing import Tuple

from .locator import FilePair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffRecord:
    """One proposed value replacement."""
    file_pair: FilePair
    key: str
    old_value: str
    new_value: str

    def __post_init__(self):
        if not self.new_value:
            raise ValueError(f"Diff record for {self.key!r} has an empty new value")
        if self.old_value == self.new_value:
            raise ValueError(f"Diff record for {self.key!r} changes nothing")


@dataclass(frozen=True)
class FileDiff:
    """Records and skip counts for one catalog pair."""
    file_pair: FilePair
    records: Tuple[DiffRecord, ...] = ()
    skipped_no_source: int = 0
    skipped_both_empty: int = 0
    skipped_unchanged: int = 0

    @property
    def proposed(self):
        return len(self.records)


@dataclass(frozen=True)
class DiffResult:
    """All file diffs of a run, in locator pairing order."""
    file_diffs: Tuple[FileDiff, ...] = field(default_factory=tuple)

    @property
    def records(self):
        return [record for file_diff in self.file_diffs for record in file_diff.records]

    @property
    def proposed(self):
        return sum(d.proposed for d in self.file_diffs)

    @property
    def skipped_no_source(self):
        return sum(d.skipped_no_source for d in self.file_diffs)

    @property
    def skipped_both_empty(self):
        return sum(d.skipped_both_empty for d in self.file_diffs)

    @property
    def skipped_unchanged(self):
        return sum(d.skipped_unchanged for d in self.file_diffs)

    @property
    def is_empty(self):
        return self.proposed == 0

    def summary(self):
        return {
            "proposed": self.proposed,
            "skipped_no_source": self.skipped_no_source,
            "skipped_both_empty": self.skipped_both_empty,
            "skipped_unchanged": self.skipped_unchanged,
        }


def diff(file_pair, destination, source, selected_keys):
    """Compare the selected destination entries with the incoming catalog.

    Args:
        file_pair: The FilePair both catalogs were read from.
        destination: Catalog being updated.
        source: Catalog providing new translations.
        selected_keys: Keys chosen by the selector for this destination.

    Returns:
        FileDiff with records in destination entry order.
    """
    records = []
    no_source = both_empty = unchanged = 0

    for entry in destination:
        if entry.key not in selected_keys:
            continue

        incoming = source.get(entry.key)
        if incoming is None or incoming.is_plural:
            no_source += 1
            continue
        if not incoming.value:
            if not entry.value:
                both_empty += 1
            else:
                unchanged += 1
            continue
        if incoming.value == entry.value:
            unchanged += 1
            continue

        logger.debug("%s: %r -> %r", file_pair.name, entry.value, incoming.value)
        records.append(DiffRecord(file_pair, entry.key, entry.value, incoming.value))

    return FileDiff(
        file_pair=file_pair,
        records=tuple(records),
        skipped_no_source=no_source,
        skipped_both_empty=both_empty,
        skipped_unchanged=unchanged,
    )


def build_diff_result(file_diffs):
    return DiffResult(file_diffs=tuple(file_diffs))
