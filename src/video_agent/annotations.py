"""Place LLM annotations onto the narrative they quote.

Each annotation quotes a span of the annotated narrative. Spans are located
independently with :func:`video_agent.span_locator.locate_span`; the ones
that cannot be found are skipped. The located spans are then turned into an
ordered list of plain and annotated segments, grouped into paragraphs.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from .span_locator import locate_span

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = "\n\n"
_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d{1,3}):([0-5]\d)$")


class AnnotationType(Enum):
    """Kinds of insight attached to a narrative span"""

    CONCEPT = "concept"
    TENSION = "tension"
    PREDICTION = "prediction"
    STRATEGY = "strategy"

    @property
    def label(self) -> str:
        return self.value.capitalize()


DEFAULT_ANNOTATION_LABEL = "Note"


@dataclass(frozen=True)
class Annotation:
    """One insight the analysis attached to a quoted span."""

    text_span: str
    insight: str
    timestamp: Optional[str] = None
    annotation_type: Optional[AnnotationType] = None

    @property
    def label(self) -> str:
        if self.annotation_type is None:
            return DEFAULT_ANNOTATION_LABEL
        return self.annotation_type.label

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Annotation":
        """Build from the analysis JSON shape (``textSpan``, ``insight``, ``timestamp``, ``type``)."""
        raw_type = payload.get("type")
        try:
            annotation_type = AnnotationType(raw_type) if raw_type else None
        except ValueError:
            logger.debug("Unknown annotation type %r; labelling as %s", raw_type, DEFAULT_ANNOTATION_LABEL)
            annotation_type = None

        timestamp = payload.get("timestamp")
        return cls(
            text_span=str(payload.get("textSpan") or ""),
            insight=str(payload.get("insight") or ""),
            timestamp=str(timestamp) if timestamp else None,
            annotation_type=annotation_type,
        )


@dataclass(frozen=True)
class AnnotationPlacement:
    """Where an annotation landed in the text."""

    start: int
    end: int
    annotation: Annotation
    match_kind: str


@dataclass(frozen=True)
class TextSegment:
    """A run of text, annotated or plain."""

    text: str
    annotation: Optional[Annotation] = None

    @property
    def is_annotated(self) -> bool:
        return self.annotation is not None


def place_annotations(text: str, annotations: Iterable[Annotation]) -> List[AnnotationPlacement]:
    """
    Locate every annotation in ``text``.

    Unlocatable annotations are dropped, as are placements overlapping one
    that starts earlier. The result is sorted by start offset.
    """
    located: List[AnnotationPlacement] = []
    total = 0
    for annotation in annotations:
        total += 1
        match = locate_span(text, annotation.text_span)
        if match is None:
            logger.debug("Skipping %s annotation; span not found: %r", annotation.label, annotation.text_span[:80])
            continue
        located.append(
            AnnotationPlacement(
                start=match.start,
                end=match.end,
                annotation=annotation,
                match_kind="normalized" if match.normalized else "exact",
            )
        )

    located.sort(key=lambda placement: (placement.start, placement.end))

    placements: List[AnnotationPlacement] = []
    cursor = 0
    for placement in located:
        if placement.start < cursor:
            logger.debug("Skipping %s annotation overlapping an earlier span at %d", placement.annotation.label, placement.start)
            continue
        placements.append(placement)
        cursor = placement.end

    logger.debug("Placed %d/%d annotations", len(placements), total)
    return placements


def build_segments(text: str, placements: Iterable[AnnotationPlacement]) -> List[TextSegment]:
    """Split ``text`` into plain and annotated segments covering it exactly once."""
    segments: List[TextSegment] = []
    cursor = 0
    for placement in placements:
        if placement.start < cursor:
            raise ValueError(f"Placements overlap at offset {placement.start}")
        if placement.start > cursor:
            segments.append(TextSegment(text=text[cursor : placement.start]))
        segments.append(TextSegment(text=text[placement.start : placement.end], annotation=placement.annotation))
        cursor = placement.end

    if cursor < len(text):
        segments.append(TextSegment(text=text[cursor:]))
    return segments


def split_paragraphs(segments: Iterable[TextSegment]) -> List[List[TextSegment]]:
    """
    Group segments into paragraphs separated by blank lines.

    A segment spanning a paragraph break is split; only its first piece keeps
    the annotation. Whitespace-only pieces are dropped.
    """
    paragraphs: List[List[TextSegment]] = []
    current: List[TextSegment] = []

    for segment in segments:
        parts = segment.text.split(PARAGRAPH_BREAK)
        for index, part in enumerate(parts):
            if index > 0 and current:
                paragraphs.append(current)
                current = []
            if not part.strip():
                continue
            annotation = segment.annotation if index == 0 else None
            current.append(TextSegment(text=part, annotation=annotation))

    if current:
        paragraphs.append(current)
    return paragraphs


def annotate_text(text: str, annotations: Iterable[Annotation]) -> List[List[TextSegment]]:
    """Locate ``annotations`` in ``text`` and return its paragraphs of segments."""
    return split_paragraphs(build_segments(text, place_annotations(text, annotations)))


def parse_timestamp(value: str) -> int:
    """
    Convert an ``M:SS`` or ``H:MM:SS`` timestamp to seconds.

    Raises:
        ValueError: If ``value`` is not a timestamp
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid timestamp: {value!r}")
    hours, minutes, seconds = match.groups()
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)


__all__ = [
    "Annotation",
    "AnnotationPlacement",
    "AnnotationType",
    "TextSegment",
    "annotate_text",
    "build_segments",
    "parse_timestamp",
    "place_annotations",
    "split_paragraphs",
]
