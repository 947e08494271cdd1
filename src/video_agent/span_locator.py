"""
Span Locator

Finds where an LLM-quoted text span sits inside the original narrative. The
quote may have been normalized on the way (curly quotes straightened,
em/en dashes turned into hyphens, whitespace collapsed), so an exact search
is tried first and a normalized search second. Offsets always refer to the
original, unnormalized text.

A missing span is an expected outcome: ``locate_span`` returns ``None`` and
callers skip the span.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .span_locator_helpers.normalizer import normalize_text, normalize_with_offsets

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 80


@dataclass(frozen=True)
class SpanMatch:
    """Half-open ``[start, end)`` character range in the haystack."""

    start: int
    end: int
    normalized: bool = False

    def slice(self, haystack: str) -> str:
        return haystack[self.start : self.end]


def locate_span(haystack: str, needle: str) -> Optional[SpanMatch]:
    """
    Locate the first occurrence of ``needle`` in ``haystack``.

    Matching is case-sensitive. The exact occurrence wins; otherwise the
    normalized needle is searched in the normalized haystack and the hit is
    mapped back to original offsets.

    Args:
        haystack: Text to search
        needle: Span to find

    Returns:
        The leftmost match, or None when the span cannot be located
    """
    if not needle:
        return None

    exact = haystack.find(needle)
    if exact != -1:
        return SpanMatch(start=exact, end=exact + len(needle))

    return _locate_normalized(haystack, needle)


def _locate_normalized(haystack: str, needle: str) -> Optional[SpanMatch]:
    normalized_needle = normalize_text(needle)
    if not normalized_needle:
        return None

    normalized_haystack, offsets = normalize_with_offsets(haystack)
    index = normalized_haystack.find(normalized_needle)
    if index == -1:
        logger.debug(
            "Span not found (needle %r, %d chars of text)",
            normalized_needle[:_PREVIEW_CHARS],
            len(haystack),
        )
        return None

    start = offsets[index]
    end = offsets[index + len(normalized_needle) - 1] + 1
    return SpanMatch(start=start, end=end, normalized=True)


__all__ = ["SpanMatch", "locate_span"]
