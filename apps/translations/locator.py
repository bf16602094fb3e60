"""Find the catalogs to merge and the language directories that hold them.

Extensions keep their catalogs in ``<extension>/locales/<language>/``.
Incoming translations arrive as a plain folder of .po files, so files are
paired by basename only. A basename that shows up twice in one tree is
never guessed at; it is reported as ambiguous.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings

from .errors import AmbiguousMatchError, CatalogMergeError, UnmatchedFileError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_SUFFIX = ".po"
DEFAULT_LOCALES_DIR = "locales"


def _merge_setting(name, default):
    return getattr(settings, "TRANSLATION_MERGE", {}).get(name, default)


def catalog_suffix():
    return _merge_setting("CATALOG_SUFFIX", DEFAULT_CATALOG_SUFFIX)


@dataclass(frozen=True)
class FilePair:
    """A destination catalog and the incoming catalog with the same basename."""
    destination: Path
    source: Path

    def __post_init__(self):
        object.__setattr__(self, "destination", Path(self.destination))
        object.__setattr__(self, "source", Path(self.source))
        if self.destination.name != self.source.name:
            raise ValueError(
                f"Cannot pair {self.destination} with {self.source}: basenames differ"
            )

    @property
    def name(self):
        return self.destination.name


@dataclass
class LocateResult:
    """Outcome of pairing two catalog trees."""
    pairs: list = field(default_factory=list)       # [FilePair] ordered by basename
    unmatched: list = field(default_factory=list)   # [UnmatchedFileError]
    errors: list = field(default_factory=list)      # [AmbiguousMatchError]

    @property
    def unmatched_count(self):
        return len(self.unmatched)


def _collect(root, suffix):
    """Map basename -> [paths] for every catalog under root."""
    found = defaultdict(list)
    for path in sorted(root.rglob(f"*{suffix}")):
        if path.is_file():
            found[path.name].append(path)
    return found


def _require_dir(path, label):
    path = Path(path)
    if not path.is_dir():
        raise CatalogMergeError(f"The {label} folder {path} does not exist")
    return path


def locate(destination_root, source_root, suffix=None):
    """Pair the catalogs of two directory trees by basename.

    Returns:
        LocateResult. Ambiguous basenames end up in ``errors`` and files
        without a counterpart in ``unmatched``; neither is paired.

    Raises:
        CatalogMergeError: If either root is not a directory.
    """
    suffix = suffix or catalog_suffix()
    destination_root = _require_dir(destination_root, "destination")
    source_root = _require_dir(source_root, "source")

    destination = _collect(destination_root, suffix)
    source = _collect(source_root, suffix)

    result = LocateResult()
    for name in sorted(set(destination) | set(source)):
        dest_paths = destination.get(name, [])
        source_paths = source.get(name, [])

        if len(dest_paths) > 1 or len(source_paths) > 1:
            error = AmbiguousMatchError(name, dest_paths + source_paths)
            logger.warning("%s", error)
            result.errors.append(error)
        elif not source_paths:
            result.unmatched.append(UnmatchedFileError(dest_paths[0], "destination"))
        elif not dest_paths:
            result.unmatched.append(UnmatchedFileError(source_paths[0], "source"))
        else:
            result.pairs.append(FilePair(dest_paths[0], source_paths[0]))

    logger.info(
        "Located %d catalog pair(s) (%d unmatched, %d ambiguous)",
        len(result.pairs), len(result.unmatched), len(result.errors),
    )
    return result


# ----------------------------------------------------------------------
# Language directories
# ----------------------------------------------------------------------

def is_language_dir(path, suffix=None):
    """A language directory directly contains at least one catalog file."""
    suffix = suffix or catalog_suffix()
    path = Path(path)
    if not path.is_dir():
        return False
    return any(child.is_file() for child in path.glob(f"*{suffix}"))


def list_languages(extension_path):
    """Return the language codes available under ``<extension>/locales``."""
    locales = Path(extension_path) / _merge_setting("LOCALES_DIR", DEFAULT_LOCALES_DIR)
    if not locales.is_dir():
        return []
    return sorted(
        child.name for child in locales.iterdir() if is_language_dir(child)
    )


def language_root(extension_path, language):
    """Resolve the destination root for one language of an extension."""
    root = Path(extension_path) / _merge_setting("LOCALES_DIR", DEFAULT_LOCALES_DIR) / language
    if not is_language_dir(root):
        raise CatalogMergeError(f"{root} must be a valid language directory")
    return root
