"""Tests for the document model and front matter detection."""
import pytest

from mdlint.core.document import Document, Event, detect_front_matter
from mdlint.core.errors import LineNotFoundError


def test_get_line_strips_terminators():
    doc = Document.from_text("first\r\nsecond\n")
    assert doc.get_line(1) == "first"
    assert doc.get_line(2) == "second"
    assert doc.line_count == 2


def test_get_line_beyond_count_raises():
    doc = Document.from_text("only\n")
    with pytest.raises(LineNotFoundError):
        doc.get_line(2)
    with pytest.raises(LineNotFoundError):
        doc.get_line(0)


def test_lines_is_restartable():
    doc = Document.from_text("a\nb\nc")
    first = list(doc.lines())
    second = list(doc.lines())
    assert first == second == [(1, "a"), (2, "b"), (3, "c")]


def test_events_are_returned_unmodified():
    events = [Event("leaf", "thematic_break", 0, 3, {"marker": "***"})]
    doc = Document.from_text("***\n", events=events)
    assert doc.events() == tuple(events)


def test_front_matter_range_and_lookup():
    text = "---\ntitle: x\n---\n# Heading\n"
    doc = Document.from_text(text)
    assert doc.front_matter == (0, 17)
    assert doc.is_in_front_matter(0)
    assert doc.is_in_front_matter(16)
    assert not doc.is_in_front_matter(17)
    assert doc.is_line_in_front_matter(3)
    assert not doc.is_line_in_front_matter(4)
    assert doc.front_matter_text == "---\ntitle: x\n---\n"


def test_front_matter_is_not_parsed():
    doc = Document.from_text("---\ntitle: x\n---\n# Heading\n")
    headings = list(doc.iter_events("heading", kind="start"))
    assert len(headings) == 1
    assert doc.position(headings[0].start) == (4, 1)
    assert not list(doc.iter_events("thematic_break"))


def test_unclosed_front_matter_is_ordinary_text():
    assert detect_front_matter("---\ntitle: x\n") is None


def test_toml_front_matter():
    assert detect_front_matter("+++\na = 1\n+++\nText\n") == (0, 14)


def test_front_matter_pattern_replaces_default():
    text = "<!--meta-->\nText\n"
    assert detect_front_matter(text, r"<!--meta-->\n") == (0, 12)
    assert detect_front_matter("---\na\n---\n", "") is None


def test_code_lines_cover_fences():
    doc = Document.from_text("Text\n\n```\ncode\n```\n\nMore\n")
    assert doc.code_lines == frozenset({3, 4, 5})


def test_slice_and_offsets():
    doc = Document.from_text("héllo\nworld\n")
    assert doc.line_offset(2) == 7
    assert doc.slice(7, 12) == "world"
    assert doc.offset(2, 3) == 9
    assert doc.line_of(8) == 2
