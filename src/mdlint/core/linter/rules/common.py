"""Helpers shared by the built-in rules."""
import re
from typing import Iterator

from mdlint.core.document import Document, Event

BLANK_RE = re.compile(r'^[\s>]*$')
BLOCKQUOTE_PREFIX_RE = re.compile(r'^(?: {0,3}> ?)+')

INLINE_SKIP_TAGS = ("code_span", "autolink", "html_inline", "link", "image")


def is_blank(text: str) -> bool:
    """A line with nothing but whitespace and blockquote markers."""
    return bool(BLANK_RE.match(text))


def blockquote_prefix(text: str) -> str:
    match = BLOCKQUOTE_PREFIX_RE.match(text)
    return match.group() if match else ""


def walk(doc: Document) -> Iterator[tuple[Event, tuple[Event, ...]]]:
    """Yield every event with the start events of its enclosing containers."""
    stack: list[Event] = []
    for event in doc.events():
        if event.kind == "end":
            if stack:
                stack.pop()
            yield event, tuple(stack)
            continue
        yield event, tuple(stack)
        if event.kind == "start":
            stack.append(event)


def event_lines(doc: Document, event: Event) -> tuple[int, int]:
    """First and last line an event covers."""
    first = doc.line_of(event.start)
    last = doc.line_of(max(event.start, event.end - 1))
    return first, last


def html_block_lines(doc: Document) -> frozenset[int]:
    covered: set[int] = set()
    for event in doc.iter_events("html_block"):
        first, last = event_lines(doc, event)
        covered.update(range(first, last + 1))
    return frozenset(covered)


def content_lines(doc: Document, code: bool = False, html: bool = True) -> Iterator[tuple[int, str]]:
    """Document lines outside front matter, optionally skipping code and html blocks."""
    skip_html = frozenset() if html else html_block_lines(doc)
    for number, text in doc.lines():
        if doc.is_line_in_front_matter(number):
            continue
        if not code and number in doc.code_lines:
            continue
        if number in skip_html:
            continue
        yield number, text


def first_content_line(doc: Document) -> int:
    for number, _ in content_lines(doc, code=True):
        return number
    return 1


def inline_ranges(doc: Document, *tags: str) -> list[tuple[int, int]]:
    return [(e.start, e.end) for e in doc.iter_events(*(tags or INLINE_SKIP_TAGS))]


def covered(ranges: list[tuple[int, int]], offset: int) -> bool:
    return any(start <= offset < end for start, end in ranges)


def mask_ranges(doc: Document, number: int, text: str, ranges: list[tuple[int, int]]) -> str:
    """Replace characters of line ``number`` that fall inside ``ranges`` with NULs."""
    line_start = doc.line_offset(number)
    line_end = line_start + len(text.encode("utf-8"))
    chars = list(text)
    for start, end in ranges:
        if end <= line_start or start >= line_end:
            continue
        first = len(doc.slice(line_start, max(start, line_start)))
        last = len(doc.slice(line_start, min(end, line_end)))
        for k in range(first, last):
            chars[k] = "\x00"
    return "".join(chars)


def front_matter_has_title(doc: Document, pattern: str | None) -> bool:
    if not pattern or doc.front_matter is None:
        return False
    return re.search(pattern, doc.front_matter_text, re.MULTILINE | re.IGNORECASE) is not None
