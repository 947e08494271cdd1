import logging

import pytest

from video_agent.span_locator import SpanMatch, locate_span

SENTENCE = "The quick brown fox jumps over the lazy dog."


def test_exact_match_returns_literal_offsets():
    match = locate_span(SENTENCE, "quick brown fox")

    assert match == SpanMatch(start=4, end=19)
    assert match.slice(SENTENCE) == "quick brown fox"
    assert match.normalized is False


def test_straight_apostrophe_matches_exactly():
    haystack = "The AI's ability to understand context is crucial."

    assert locate_span(haystack, "AI's ability") == SpanMatch(start=4, end=16)


def test_typographic_apostrophe_maps_back_to_original():
    haystack = "The AI’s ability to understand context is crucial."

    match = locate_span(haystack, "AI's ability")

    assert (match.start, match.end) == (4, 16)
    assert match.normalized is True
    assert match.slice(haystack) == "AI’s ability"


def test_curly_double_quotes_and_dashes():
    haystack = "He said “wait—what?” and left."

    match = locate_span(haystack, '"wait-what?"')

    assert match.slice(haystack) == "“wait—what?”"


def test_en_dash_in_needle_matches_hyphen_in_text():
    haystack = "pages 10-12 were missing"

    match = locate_span(haystack, "10–12")

    assert (match.start, match.end) == (6, 11)


def test_collapsed_whitespace_spans_original_run():
    haystack = "The  quick\n\tbrown fox"

    match = locate_span(haystack, "quick brown fox")

    assert (match.start, match.end) == (5, 21)
    assert match.slice(haystack) == "quick\n\tbrown fox"


def test_start_after_collapsed_whitespace_is_exact():
    haystack = "x  ’s"

    assert locate_span(haystack, "'s") == SpanMatch(start=3, end=5, normalized=True)


def test_needle_whitespace_is_normalized():
    haystack = "first line\nsecond line"

    match = locate_span(haystack, "  line   second ")

    assert match.slice(haystack) == "line\nsecond"


def test_empty_needle_is_not_found():
    assert locate_span(SENTENCE, "") is None


def test_whitespace_only_needle_is_not_found():
    assert locate_span("a b", "   ") is None


def test_missing_span_is_not_found(caplog):
    caplog.set_level(logging.DEBUG, logger="video_agent.span_locator")

    assert locate_span(SENTENCE, "purple elephant") is None
    assert "Span not found" in caplog.text


def test_matching_is_case_sensitive():
    assert locate_span(SENTENCE, "Quick brown") is None


@pytest.mark.parametrize(
    ("haystack", "needle", "expected_start"),
    [
        ("ab ab ab", "ab", 0),
        ("x’s and x’s", "x's", 0),
        ("say  hi, say  hi", "say hi", 0),
    ],
)
def test_first_occurrence_wins(haystack, needle, expected_start):
    assert locate_span(haystack, needle).start == expected_start


def test_empty_haystack():
    assert locate_span("", "anything") is None
