"""Helper modules for locating quoted spans in text."""

from .normalizer import normalize_text, normalize_with_offsets

__all__ = ["normalize_text", "normalize_with_offsets"]
