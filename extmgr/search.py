"""
Pattern search and pagination over extension collections.

Both entry points are pure: they never modify their input and keep no
state between calls.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence

from .extension import Extension

# Added before and after the user pattern so it matches anywhere in a field
SEARCH_PATTERN_SUFFIXNPREFIX = ".*"


@dataclass(frozen=True)
class SearchResult:
    """A window of matches plus the total number of matches."""

    total_hits: int
    offset: int
    items: tuple[Extension, ...]

    def __iter__(self) -> Iterator[Extension]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def search_in_collection(
    pattern: str | None,
    offset: int,
    limit: int,
    extensions: Sequence[Extension],
) -> SearchResult:
    """
    Filter `extensions` by `pattern` then return the requested window.

    A blank pattern keeps every extension, in input order. `limit < 0`
    means no cap.
    """
    if pattern is None or not pattern.strip():
        result = list(extensions)
    else:
        result = _filter(pattern, extensions)

    return paginate(offset, limit, result)


def paginate(offset: int, limit: int, extensions: Sequence[Extension]) -> SearchResult:
    """Return the `[offset, offset + limit)` window of an already ordered list."""
    total = len(extensions)

    if limit == 0 or offset >= total:
        return SearchResult(total_hits=total, offset=offset, items=())

    from_index = max(offset, 0)

    if limit > 0:
        to_index = min(from_index + limit, total)
    else:
        to_index = total

    return SearchResult(total_hits=total, offset=offset, items=tuple(extensions[from_index:to_index]))


def _filter(pattern: str, extensions: Sequence[Extension]) -> list[Extension]:
    matcher = re.compile(SEARCH_PATTERN_SUFFIXNPREFIX + pattern + SEARCH_PATTERN_SUFFIXNPREFIX)
    return [e for e in extensions if matches(matcher, e)]


def matches(matcher: re.Pattern[str], extension: Extension) -> bool:
    """True if one of the searchable fields of `extension` matches."""
    return matches_any(
        matcher,
        extension.id.id,
        extension.description,
        extension.summary,
        extension.name,
        *extension.features,
    )


def matches_any(matcher: re.Pattern[str], *elements: object) -> bool:
    """True if `matcher` matches the whole string of any non-None element."""
    for element in elements:
        if element is not None and matcher.fullmatch(str(element)):
            return True
    return False
