"""Choose which destination entries may receive a merged translation.

An entry is eligible when its msgstr is empty, or when a suffix is
configured and the msgid or the msgstr ends with it (translators often
park placeholder values such as "Save_TODO" in the catalog).
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SearchMode:
    """Selection predicate configuration.

    Build it with ``SearchMode.from_input()`` when the suffix comes from
    user input; the constructor itself refuses a blank suffix.
    """
    ends_with: Optional[str] = None

    def __post_init__(self):
        if self.ends_with is None:
            return
        if not isinstance(self.ends_with, str):
            raise TypeError(
                f"ends_with must be a string, not {type(self.ends_with).__name__}"
            )
        if not self.ends_with:
            raise ValueError("ends_with must not be empty; use None to select empty messages only")

    @classmethod
    def from_input(cls, raw):
        """Trim user input; a blank answer means "empty messages only"."""
        if raw is None:
            return cls()
        raw = str(raw).strip()
        return cls(ends_with=raw or None)

    def describe(self):
        if self.ends_with:
            return f'empty messages and messages ending with "{self.ends_with}"'
        return "empty messages"


def is_eligible(entry, search_mode):
    if entry.is_header or entry.is_plural:
        return False
    if entry.value == "":
        return True
    suffix = search_mode.ends_with
    return bool(suffix) and (entry.key.endswith(suffix) or entry.value.endswith(suffix))


def select(catalog, search_mode):
    """Return the keys of the entries eligible for merge."""
    return frozenset(
        entry.key for entry in catalog if is_eligible(entry, search_mode)
    )
