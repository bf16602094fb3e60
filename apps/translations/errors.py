"""Errors raised by the translation merge engine.

Every error carries the file it concerns so the run report can list
failures per catalog. Silent recovery is NOT acceptable for translation
content; callers must handle these explicitly.
"""


class CatalogMergeError(Exception):
    """Base class for all catalog merge errors."""


class MalformedCatalogError(CatalogMergeError):
    """A catalog file violates the .po grammar (truncated entry, duplicate key, bad quoting)."""

    def __init__(self, message, path=None, line=None):
        self.message = message
        self.path = path
        self.line = line
        location = str(path) if path else "<string>"
        if line is not None:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {message}")


class AmbiguousMatchError(CatalogMergeError):
    """The same basename appears more than once in one of the roots."""

    def __init__(self, name, candidates):
        self.name = name
        self.candidates = tuple(candidates)
        listed = ", ".join(str(c) for c in self.candidates)
        super().__init__(f"{name} matches several files: {listed}")


class UnmatchedFileError(CatalogMergeError):
    """A catalog exists in only one of the two roots.

    Never raised by the locator; collected and reported as a list.
    """

    def __init__(self, path, side):
        self.path = path
        self.side = side
        super().__init__(f"{path} has no counterpart in the {_other_side(side)} folder")


class UnknownKeyError(CatalogMergeError):
    """A diff record references a key that is not in the catalog being merged."""

    def __init__(self, key, path=None):
        self.key = key
        self.path = path
        super().__init__(f"{path or '<catalog>'}: no entry for msgid {key!r}")


class StaleDiffError(UnknownKeyError):
    """A diff record was computed against a different version of the entry."""

    def __init__(self, key, current_value, path=None):
        self.current_value = current_value
        super().__init__(key, path)
        self.args = (
            f"{path or '<catalog>'}: entry {key!r} changed since the diff was built",
        )


class WriteFailure(CatalogMergeError):
    """Serialising or writing a merged catalog failed. The file is left untouched."""

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not write {path}: {cause}")


def _other_side(side):
    return "source" if side == "destination" else "destination"
