"""Translation merge run: locate, diff, approve, merge, write.

Two phases with a single approval point between them:

    plan = prepare_merge(config)          # nothing written yet
    if approve(plan.diff_result):
        report = execute_merge(plan)      # writes, one file at a time

``run_merge(config, approve)`` chains both. A failure on one catalog pair is
logged and recorded in the plan/report; the other pairs carry on. There is
no cross-file rollback: the report lists which files were written and
which failed.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings

from .catalog import Catalog, read_catalog
from .diff_engine import FileDiff, build_diff_result, diff
from .errors import CatalogMergeError, WriteFailure
from .locator import locate
from .merge_writer import apply, write_catalog
from .selector import SearchMode, select

logger = logging.getLogger(__name__)

STAGE_LOCATE = "locate"
STAGE_PARSE = "parse"
STAGE_SELECT = "select"
STAGE_DIFF = "diff"
STAGE_MERGE = "merge"
STAGE_WRITE = "write"


@dataclass(frozen=True)
class MergeConfig:
    """Everything a run needs, fixed before the run starts."""
    destination_root: Path
    source_root: Path
    search_mode: SearchMode = field(default_factory=SearchMode)

    def __post_init__(self):
        object.__setattr__(self, "destination_root", Path(self.destination_root))
        object.__setattr__(self, "source_root", Path(self.source_root))
        if not isinstance(self.search_mode, SearchMode):
            raise TypeError("search_mode must be a SearchMode")

    @classmethod
    def from_options(cls, destination, source, ends_with=None):
        """Build a config from raw option values, falling back to settings for the suffix."""
        if ends_with is None:
            ends_with = getattr(settings, "TRANSLATION_MERGE", {}).get("SEARCH_ENDS_WITH")
        return cls(
            destination_root=destination,
            source_root=source,
            search_mode=SearchMode.from_input(ends_with),
        )


@dataclass(frozen=True)
class FileFailure:
    """A catalog (or basename) whose processing stopped at ``stage``."""
    name: str
    stage: str
    error: Exception

    def __str__(self):
        return f"{self.name} [{self.stage}]: {self.error}"


@dataclass(frozen=True)
class PreparedFile:
    """A file diff together with the destination snapshot it was built from."""
    file_diff: FileDiff
    destination: Catalog


class MergePlan:
    """The computed diff of a run, waiting for approval. Single use."""

    def __init__(self, config, located, prepared, failures):
        self.config = config
        self.located = located
        self.prepared = list(prepared)
        self.failures = list(failures)
        self.diff_result = build_diff_result(p.file_diff for p in self.prepared)
        self._consumed = False

    @property
    def consumed(self):
        return self._consumed

    def consume(self):
        if self._consumed:
            raise CatalogMergeError("This merge plan has already been used")
        self._consumed = True


@dataclass
class MergeReport:
    """What happened to every catalog of the run."""
    written: list = field(default_factory=list)     # [Path]
    unchanged: list = field(default_factory=list)   # [Path] paired, nothing to merge
    failures: list = field(default_factory=list)    # [FileFailure]
    unmatched: list = field(default_factory=list)   # [UnmatchedFileError]
    cancelled: bool = False

    @property
    def modified_paths(self):
        return list(self.written)

    @property
    def ok(self):
        return not self.failures and not self.cancelled

    @property
    def is_partial_failure(self):
        return bool(self.written) and bool(self.failures)


def prepare_merge(config):
    """Locate, parse, select and diff. Writes nothing.

    Raises:
        CatalogMergeError: Only when the run cannot start at all
            (missing root folder). Per-pair problems are recorded.
    """
    located = locate(config.destination_root, config.source_root)
    failures = [FileFailure(error.name, STAGE_LOCATE, error) for error in located.errors]
    prepared = []

    for pair in located.pairs:
        stage = STAGE_PARSE
        try:
            destination = read_catalog(pair.destination)
            source = read_catalog(pair.source)
            stage = STAGE_SELECT
            selected = select(destination, config.search_mode)
            stage = STAGE_DIFF
            file_diff = diff(pair, destination, source, selected)
        except CatalogMergeError as exc:
            logger.warning("Skipping %s (%s failed): %s", pair.name, stage, exc)
            failures.append(FileFailure(pair.name, stage, exc))
            continue

        logger.info(
            "%s: %d change(s) proposed, %d selected key(s) missing from source",
            pair.name, file_diff.proposed, file_diff.skipped_no_source,
        )
        prepared.append(PreparedFile(file_diff=file_diff, destination=destination))

    return MergePlan(config, located, prepared, failures)


def execute_merge(plan):
    """Apply and write every file diff of an approved plan."""
    plan.consume()
    report = MergeReport(
        failures=list(plan.failures),
        unmatched=list(plan.located.unmatched),
    )

    for item in plan.prepared:
        pair = item.file_diff.file_pair
        if not item.file_diff.records:
            report.unchanged.append(pair.destination)
            continue

        try:
            merged = apply(item.destination, item.file_diff.records)
        except CatalogMergeError as exc:
            logger.warning("Not merging %s: %s", pair.name, exc)
            report.failures.append(FileFailure(pair.name, STAGE_MERGE, exc))
            continue

        try:
            write_catalog(merged, pair.destination)
        except WriteFailure as exc:
            report.failures.append(FileFailure(pair.name, STAGE_WRITE, exc))
            continue
        report.written.append(pair.destination)

    logger.info(
        "Merge finished: %d written, %d unchanged, %d failed",
        len(report.written), len(report.unchanged), len(report.failures),
    )
    return report


def cancel_merge(plan):
    """Discard an unapproved plan; every destination file stays untouched."""
    plan.consume()
    logger.info("Merge cancelled, no files written")
    return MergeReport(
        failures=list(plan.failures),
        unmatched=list(plan.located.unmatched),
        cancelled=True,
    )


def run_merge(config, approve):
    """Run a full merge.

    Args:
        config: MergeConfig for the run.
        approve: Callable receiving the DiffResult, returning True to go on.
            Not called when there is nothing to merge.

    Returns:
        MergeReport (``cancelled`` set when approval was refused).
    """
    plan = prepare_merge(config)
    if not plan.diff_result.is_empty and not approve(plan.diff_result):
        return cancel_merge(plan)
    return execute_merge(plan)
