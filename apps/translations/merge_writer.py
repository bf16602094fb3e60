"""Apply an approved diff to a destination catalog and write it back."""
import logging
import os
import shutil
import tempfile
from dataclasses import replace
from pathlib import Path

from .catalog import serialize
from .errors import StaleDiffError, UnknownKeyError, WriteFailure

logger = logging.getLogger(__name__)


def apply(destination, records):
    """Return a new catalog with each record's value written into its entry.

    Entries not named by a record, and all comments, are carried over as-is.
    Re-applying records that are already applied changes nothing.

    Raises:
        UnknownKeyError: A record names a key the catalog does not have.
        StaleDiffError: The entry's value is neither the record's old nor
            its new value, i.e. the diff was built from another snapshot.
    """
    entries = list(destination.entries)
    for record in records:
        if record.key not in destination:
            raise UnknownKeyError(record.key, destination.path)
        position = destination.index_of(record.key)
        current = entries[position]
        if current.value not in (record.old_value, record.new_value):
            raise StaleDiffError(record.key, current.value, destination.path)
        entries[position] = current.with_value(record.new_value)
    return replace(destination, entries=tuple(entries))


def write_catalog(catalog, path=None):
    """Serialise and write a catalog atomically via a temp file.

    The target is replaced only once the full text is on disk, so a failed
    write leaves the previous file in place.

    Raises:
        WriteFailure: On any I/O or encoding error.
    """
    path = Path(path or catalog.path)
    tmp_path = None
    try:
        text = serialize(catalog)
        fd, tmp_path = tempfile.mkstemp(suffix=path.suffix, dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            shutil.copymode(str(path), tmp_path)
        shutil.move(tmp_path, str(path))
    except (OSError, UnicodeEncodeError) as exc:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        logger.error("Writing %s failed: %s", path, exc)
        raise WriteFailure(path, exc) from exc
    logger.info("Wrote %s", path)
    return path
