"""Byte-stable parser and serializer for gettext .po catalogs.

polib is great for reading and compiling catalogs, but saving through it
re-wraps long lines and normalises comments, which produces noisy diffs in
the extension repositories. This module keeps every line it reads: an entry
remembers its raw comment lines, its raw msgid lines and its raw msgstr
lines, and only the msgstr block of an entry whose value changed is ever
re-rendered.

    catalog = read_catalog(path)
    merged = catalog.with_value("Hello", "Bonjour")
    assert serialize(catalog) == path.read_text()   # untouched round trip

String escaping follows polib (``polib.escape`` / ``polib.unescape``).
"""
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

import polib

from .errors import CatalogMergeError, MalformedCatalogError

logger = logging.getLogger(__name__)

# gettext joins msgctxt and msgid with EOT to build the lookup key.
CONTEXT_SEPARATOR = "\x04"

BOM = "\ufeff"

_QUOTED = r'"((?:[^"\\]|\\.)*)"'

KEYWORD_RE = re.compile(
    r"^(msgctxt|msgid_plural|msgid|msgstr(?:\[(\d+)\])?)[ \t]*" + _QUOTED + r"[ \t]*$"
)
CONTINUATION_RE = re.compile(r"^" + _QUOTED + r"[ \t]*$")

# A value is rendered one quoted line per newline-terminated segment.
_SEGMENT_RE = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass(frozen=True)
class Entry:
    """One message of a catalog.

    ``key_lines`` and ``value_lines`` hold the raw text of the entry as read
    from disk (newlines included). ``original_value`` is the msgstr at parse
    time; when ``value`` no longer matches it the serializer renders a new
    msgstr block instead of replaying ``value_lines``.
    """
    key: str
    value: str = ""
    leading_trivia: Tuple[str, ...] = ()
    key_lines: Tuple[str, ...] = ()
    value_lines: Tuple[str, ...] = ()
    original_value: Optional[str] = None
    is_plural: bool = False
    line: Optional[int] = None

    @property
    def msgctxt(self):
        if CONTEXT_SEPARATOR in self.key:
            return self.key.split(CONTEXT_SEPARATOR, 1)[0]
        return None

    @property
    def msgid(self):
        return self.key.split(CONTEXT_SEPARATOR, 1)[-1]

    @property
    def is_header(self):
        return self.key == ""

    @property
    def modified(self):
        return self.value != self.original_value

    def with_value(self, value):
        if self.is_plural:
            raise CatalogMergeError(
                f"Plural entry {self.msgid!r} cannot take a single value"
            )
        return replace(self, value=value)


@dataclass(frozen=True)
class Catalog:
    """An ordered sequence of entries plus whatever follows the last one."""
    entries: Tuple[Entry, ...] = ()
    trailing_trivia: Tuple[str, ...] = ()
    path: Optional[Path] = None
    _index: dict = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "trailing_trivia", tuple(self.trailing_trivia))
        index = {}
        for position, entry in enumerate(self.entries):
            if entry.key in index:
                raise MalformedCatalogError(
                    f"duplicate msgid {entry.msgid!r}", self.path, entry.line
                )
            index[entry.key] = position
        object.__setattr__(self, "_index", index)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __contains__(self, key):
        return key in self._index

    def get(self, key, default=None):
        position = self._index.get(key)
        if position is None:
            return default
        return self.entries[position]

    def keys(self):
        return [entry.key for entry in self.entries]

    def index_of(self, key):
        return self._index[key]

    def with_value(self, key, value):
        """Return a copy of the catalog with one entry's value replaced."""
        position = self._index[key]
        entries = list(self.entries)
        entries[position] = entries[position].with_value(value)
        return replace(self, entries=tuple(entries))


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------

class _PendingEntry:
    """Accumulates the lines of the entry currently being parsed."""

    def __init__(self, line, leading_trivia):
        self.line = line
        self.leading_trivia = tuple(leading_trivia)
        self.key_lines = []
        self.value_lines = []
        self.msgctxt = None
        self.msgid = None
        self.msgid_plural = None
        self.msgstr = {}
        self.field = None
        self.index = None

    def add(self, keyword, index, text, raw):
        self.field = keyword
        self.index = index
        if keyword == "msgstr":
            self.msgstr[index] = [text]
            self.value_lines.append(raw)
            return
        setattr(self, keyword, [text])
        self.key_lines.append(raw)

    def extend(self, text, raw):
        if self.field == "msgstr":
            self.msgstr[self.index].append(text)
            self.value_lines.append(raw)
        else:
            getattr(self, self.field).append(text)
            self.key_lines.append(raw)

    @property
    def has_msgid(self):
        return self.msgid is not None

    @property
    def is_plural(self):
        return self.msgid_plural is not None


def _split_lines(text):
    # Split on "\n" only: str.splitlines() also breaks on form feeds and
    # unicode separators, which may legitimately occur inside strings.
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def _line_body(raw):
    body = raw[:-1] if raw.endswith("\n") else raw
    return body[:-1] if body.endswith("\r") else body


def _decode(parts):
    return "".join(polib.unescape(part) for part in parts)


def parse(text, path=None):
    """Parse .po text into a Catalog.

    Raises:
        MalformedCatalogError: On a truncated entry, a duplicated key, a
            badly quoted string, or a line that fits no rule of the grammar.
    """
    entries = []
    seen = {}
    trivia = []
    pending = None

    def fail(message, line):
        raise MalformedCatalogError(message, path, line)

    def finish(entry):
        if not entry.has_msgid:
            fail("msgctxt without a msgid", entry.line)
        if not entry.msgstr:
            fail(f"entry {_decode(entry.msgid)!r} has no msgstr (truncated)", entry.line)
        msgid = _decode(entry.msgid)
        key = msgid
        if entry.msgctxt is not None:
            key = _decode(entry.msgctxt) + CONTEXT_SEPARATOR + msgid
        if key in seen:
            fail(f"duplicate msgid {msgid!r} (first defined on line {seen[key]})", entry.line)
        seen[key] = entry.line

        if entry.is_plural:
            value = _decode(entry.msgstr.get(0, []))
        else:
            value = _decode(entry.msgstr[None])
        entries.append(Entry(
            key=key,
            value=value,
            leading_trivia=entry.leading_trivia,
            key_lines=tuple(entry.key_lines),
            value_lines=tuple(entry.value_lines),
            original_value=value,
            is_plural=entry.is_plural,
            line=entry.line,
        ))

    lines = _split_lines(text)
    if lines and lines[0].startswith(BOM):
        trivia.append(BOM)
        lines[0] = lines[0][len(BOM):]

    for lineno, raw in enumerate(lines, start=1):
        stripped = _line_body(raw).strip()

        if not stripped or stripped.startswith("#"):
            if pending is not None:
                finish(pending)
                pending = None
            trivia.append(raw)
            continue

        match = KEYWORD_RE.match(stripped)
        if match:
            keyword, index, text = match.groups()
            if keyword.startswith("msgstr"):
                keyword = "msgstr"
                index = int(index) if index is not None else None

            if keyword == "msgctxt" or (
                keyword == "msgid" and (pending is None or pending.field != "msgctxt")
            ):
                if pending is not None:
                    finish(pending)
                pending = _PendingEntry(lineno, trivia)
                trivia = []
            elif keyword == "msgid_plural":
                if pending is None or pending.field != "msgid":
                    fail("msgid_plural must follow msgid", lineno)
            elif keyword == "msgstr":
                if pending is None or not pending.has_msgid:
                    fail("msgstr without a preceding msgid", lineno)
                if pending.is_plural and index is None:
                    fail("plural entry needs indexed msgstr[N]", lineno)
                if not pending.is_plural and index is not None:
                    fail("msgstr[N] on an entry without msgid_plural", lineno)
                if index in pending.msgstr:
                    fail("msgstr defined twice", lineno)

            pending.add(keyword, index, text, raw)
            continue

        match = CONTINUATION_RE.match(stripped)
        if match:
            if pending is None:
                fail("string continuation outside of an entry", lineno)
            pending.extend(match.group(1), raw)
            continue

        fail(f"unexpected line {stripped[:40]!r}", lineno)

    if pending is not None:
        finish(pending)

    logger.debug("Parsed %d entries from %s", len(entries), path or "<string>")
    return Catalog(entries=entries, trailing_trivia=trivia, path=Path(path) if path else None)


def read_catalog(path):
    """Read and parse a UTF-8 catalog file, keeping its newline style."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
    except UnicodeDecodeError as exc:
        raise MalformedCatalogError(f"not valid UTF-8 ({exc.reason})", path) from exc
    except OSError as exc:
        raise CatalogMergeError(f"Could not read {path}: {exc}") from exc
    return parse(text, path=path)


# ----------------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------------

def _newline_of(entry):
    for raw in entry.key_lines + entry.value_lines:
        if raw.endswith("\r\n"):
            return "\r\n"
        if raw.endswith("\n"):
            return "\n"
    return "\n"


def render_string(keyword, value, newline="\n"):
    """Render a keyword and its value as .po lines.

    Values with embedded newlines use the gettext multi-line layout:
    an empty first string, then one quoted line per segment.
    """
    segments = _SEGMENT_RE.findall(value)
    if len(segments) <= 1:
        return [f'{keyword} "{polib.escape(value)}"{newline}']
    lines = [f'{keyword} ""{newline}']
    lines.extend(f'"{polib.escape(segment)}"{newline}' for segment in segments)
    return lines


def _render_key(entry, newline):
    lines = []
    if entry.msgctxt is not None:
        lines.extend(render_string("msgctxt", entry.msgctxt, newline))
    lines.extend(render_string("msgid", entry.msgid, newline))
    return lines


def _render_value(entry, newline):
    lines = render_string("msgstr", entry.value, newline)
    if entry.value_lines:
        # Keep the ending of the block as it was (no newline at EOF stays so).
        last = entry.value_lines[-1]
        ending = last[len(_line_body(last)):]
        lines[-1] = lines[-1][:-len(newline)] + ending
    return lines


def serialize(catalog):
    """Render a catalog back to text.

    Untouched entries are replayed byte for byte; a modified entry keeps its
    comments and msgid lines and only gets a new msgstr block.
    """
    chunks = []
    for entry in catalog.entries:
        newline = _newline_of(entry)
        chunks.extend(entry.leading_trivia)
        chunks.extend(entry.key_lines or _render_key(entry, newline))
        if entry.modified or not entry.value_lines:
            chunks.extend(_render_value(entry, newline))
        else:
            chunks.extend(entry.value_lines)
    chunks.extend(catalog.trailing_trivia)
    return "".join(chunks)
