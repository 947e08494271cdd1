"""Lossy text normalization used to tolerate typographic drift in quoted spans."""

from __future__ import annotations

from typing import List, Tuple

# Typographic punctuation that LLM output tends to flatten to ASCII.
CHARACTER_SUBSTITUTIONS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2014": "-",
    "\u2013": "-",
}


def normalize_with_offsets(text: str) -> Tuple[str, List[int]]:
    """
    Normalize ``text`` and record where each output character came from.

    Quotes and dashes are unified, whitespace runs collapse to one space and
    leading/trailing whitespace is dropped. ``offsets[k]`` is the index in
    ``text`` of the character that produced ``normalized[k]``; a collapsed
    space points at the first character of its run.

    Args:
        text: Original string

    Returns:
        Tuple of (normalized string, offsets into ``text``)
    """
    chars: List[str] = []
    offsets: List[int] = []
    pending_space = -1

    for index, char in enumerate(text):
        if char.isspace():
            if pending_space < 0:
                pending_space = index
            continue

        if pending_space >= 0:
            if chars:
                chars.append(" ")
                offsets.append(pending_space)
            pending_space = -1

        chars.append(CHARACTER_SUBSTITUTIONS.get(char, char))
        offsets.append(index)

    return "".join(chars), offsets


def normalize_text(text: str) -> str:
    """Return the normalized form of ``text``."""
    normalized, _offsets = normalize_with_offsets(text)
    return normalized


__all__ = ["CHARACTER_SUBSTITUTIONS", "normalize_text", "normalize_with_offsets"]
