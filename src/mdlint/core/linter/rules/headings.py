"""Heading structure and ATX heading spacing rules."""
import re
from typing import Generator

from mdlint.core.document import Document

from ..models import Violation
from ..rule import fix_range, line_fix, option, rule
from .common import (
    content_lines,
    event_lines,
    first_content_line,
    front_matter_has_title,
    is_blank,
    walk,
)

FRONT_MATTER_TITLE = r'^\s*"?title"?\s*[:=]'
HEADING_STYLES = (
    "consistent", "atx", "atx_closed", "setext",
    "setext_with_atx", "setext_with_atx_closed",
)

MISSING_SPACE_ATX_RE = re.compile(r'^( {0,3})(#{1,6})(?=[^#\s])')
MULTIPLE_SPACE_ATX_RE = re.compile(r'^( {0,3})(#{1,6})([ \t]{2,})(?=\S)')
CLOSED_ATX_RE = re.compile(r'^( {0,3})(#+)([ \t]*)([^#\s](?:.*?[^\s\\])?)([ \t]*)(#+)[ \t]*$')
ENTITY_RE = re.compile(r'&#?[0-9A-Za-z]+;$')


def _headings(doc: Document):
    return doc.iter_events("heading", kind="start")


@rule("MD001", "heading-increment", tags=("headings",))
def heading_increment(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Heading levels should only increment by one level at a time.

    Each heading is compared with the level actually seen before it, so
    after a skip the next heading is judged against the skipped-to level.
    """
    previous = None
    for event in _headings(doc):
        level = event.attrs["level"]
        if previous is not None and level > previous + 1:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD001",
                line=line,
                column=column,
                message=f"Expected: h{previous + 1}; Actual: h{level}"
            )
        previous = level


@rule("MD003", "heading-style", tags=("headings",))
def heading_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Heading style should be consistent throughout the document."""
    style = option(settings, "style", "consistent", choices=HEADING_STYLES)
    expected = None if style == "consistent" else style

    for event in _headings(doc):
        actual = event.attrs["style"]
        if expected is None:
            expected = actual
        wanted = expected
        if wanted.startswith("setext_with_"):
            wanted = "setext" if event.attrs["level"] <= 2 else wanted[len("setext_with_"):]
        elif wanted == "setext" and event.attrs["level"] > 2:
            wanted = actual  # setext only exists for h1/h2

        if actual != wanted:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD003",
                line=line,
                column=column,
                message=f"Expected: {wanted}; Actual: {actual}"
            )


@rule("MD018", "no-missing-space-atx", tags=("headings", "atx", "spaces"), fixable=True)
def no_missing_space_atx(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """No space after hash on atx style heading."""
    for number, text in content_lines(doc, html=False):
        match = MISSING_SPACE_ATX_RE.match(text)
        if not match or text.startswith("#!"):
            continue
        column = match.end() + 1
        yield Violation(
            rule="MD018",
            line=number,
            column=1 + len(match.group(1)),
            message=f"No space after hash: '{text[:40]}'",
            fix=line_fix(doc, number, column, column, " ", "Insert space after hashes", "MD018")
        )


@rule("MD019", "no-multiple-space-atx", tags=("headings", "atx", "spaces"), fixable=True)
def no_multiple_space_atx(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Multiple spaces after hash on atx style heading."""
    for event in _headings(doc):
        if event.attrs["style"] != "atx":
            continue
        number = doc.line_of(event.start)
        text = doc.get_line(number)
        match = MULTIPLE_SPACE_ATX_RE.match(text[doc.position(event.start)[1] - 1:])
        if not match:
            continue
        base = doc.position(event.start)[1] - 1
        start = base + len(match.group(1)) + len(match.group(2)) + 1
        yield Violation(
            rule="MD019",
            line=number,
            column=base + 1,
            message=f"Multiple spaces after hash ({len(match.group(3))})",
            fix=line_fix(doc, number, start, start + len(match.group(3)), " ",
                         "Collapse spaces after hashes", "MD019")
        )


@rule("MD020", "no-missing-space-closed-atx", tags=("headings", "atx_closed", "spaces"), fixable=True)
def no_missing_space_closed_atx(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """No space inside hashes on closed atx style heading."""
    for number, text in content_lines(doc, html=False):
        match = CLOSED_ATX_RE.match(text)
        if not match or text.startswith("#!"):
            continue
        if match.group(3) and match.group(5):
            continue
        if not match.group(3) and not match.group(5) and len(match.group(2)) > 6:
            continue
        start = match.end(2) + 1
        end = match.start(6) + 1
        yield Violation(
            rule="MD020",
            line=number,
            column=len(match.group(1)) + 1,
            message="No space inside hashes on closed atx style heading",
            fix=line_fix(doc, number, start, end, f" {match.group(4)} ",
                         "Add spaces inside hashes", "MD020")
        )


@rule("MD021", "no-multiple-space-closed-atx", tags=("headings", "atx_closed", "spaces"), fixable=True)
def no_multiple_space_closed_atx(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Multiple spaces inside hashes on closed atx style heading."""
    for event in _headings(doc):
        if event.attrs["style"] != "atx_closed":
            continue
        number = doc.line_of(event.start)
        text = doc.get_line(number)
        match = CLOSED_ATX_RE.match(text)
        if not match:
            continue
        if len(match.group(3)) <= 1 and len(match.group(5)) <= 1:
            continue
        yield Violation(
            rule="MD021",
            line=number,
            column=len(match.group(1)) + 1,
            message="Multiple spaces inside hashes on closed atx style heading",
            fix=line_fix(doc, number, match.end(2) + 1, match.start(6) + 1,
                         f" {match.group(4)} ", "Collapse spaces inside hashes", "MD021")
        )


@rule("MD022", "blanks-around-headings", tags=("headings", "blank_lines"))
def blanks_around_headings(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Headings should be surrounded by blank lines."""
    above = option(settings, "lines_above", 1)
    below = option(settings, "lines_below", 1)
    top = first_content_line(doc)

    for event in _headings(doc):
        first, last = event_lines(doc, event)

        if above >= 0 and first > top:
            count = 0
            n = first - 1
            while n >= top and count < above and is_blank(doc.get_line(n)):
                count += 1
                n -= 1
            if count < above and n >= top:
                yield Violation(
                    rule="MD022",
                    line=first,
                    column=1,
                    message=f"Expected: {above}; Actual: {count}; Above"
                )

        if below >= 0 and last < doc.line_count:
            count = 0
            n = last + 1
            while n <= doc.line_count and count < below and is_blank(doc.get_line(n)):
                count += 1
                n += 1
            if count < below and n <= doc.line_count:
                yield Violation(
                    rule="MD022",
                    line=first,
                    column=1,
                    message=f"Expected: {below}; Actual: {count}; Below"
                )


@rule("MD023", "heading-start-left", tags=("headings", "spaces"), fixable=True)
def heading_start_left(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Headings must start at the beginning of the line."""
    for event, ancestors in walk(doc):
        if event.tag != "heading" or event.kind != "start" or ancestors:
            continue
        number, column = doc.position(event.start)
        if column == 1:
            continue
        yield Violation(
            rule="MD023",
            line=number,
            column=1,
            message=f"Heading indented by {column - 1} characters",
            fix=line_fix(doc, number, 1, column, "", "Remove heading indentation", "MD023")
        )


@rule("MD024", "no-duplicate-heading", tags=("headings",))
def no_duplicate_heading(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Multiple headings with the same content."""
    siblings_only = option(settings, "siblings_only", False)
    seen: dict[tuple, set[str]] = {}
    path: list[tuple[int, str]] = []

    for event in _headings(doc):
        level = event.attrs["level"]
        text = event.attrs["text"].strip()
        while path and path[-1][0] >= level:
            path.pop()
        scope = tuple(t for _, t in path) if siblings_only else ()
        texts = seen.setdefault(scope, set())
        if text in texts:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD024",
                line=line,
                column=column,
                message=f"Duplicate heading content: '{text}'"
            )
        texts.add(text)
        path.append((level, text))


@rule("MD025", "single-title", "single-h1", tags=("headings",))
def single_title(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Multiple top-level headings in the same document."""
    level = option(settings, "level", 1)
    title_pattern = option(settings, "front_matter_title", FRONT_MATTER_TITLE, kind=str)
    found = front_matter_has_title(doc, title_pattern)

    for event in _headings(doc):
        if event.attrs["level"] != level:
            continue
        if found:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD025",
                line=line,
                column=column,
                message=f"Multiple top-level headings: '{event.attrs['text'].strip()}'"
            )
        found = True


@rule("MD026", "no-trailing-punctuation", tags=("headings",), fixable=True)
def no_trailing_punctuation(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Trailing punctuation in heading."""
    punctuation = option(settings, "punctuation", ".,;:!。，；：！")

    for event in _headings(doc):
        text = event.attrs["text"].rstrip()
        if not text or text[-1] not in punctuation or ENTITY_RE.search(text):
            continue
        trimmed = text.rstrip(punctuation)
        content_end = event.attrs["content_end"]
        start = content_end - len(text[len(trimmed):].encode("utf-8"))
        line, column = doc.position(start)
        yield Violation(
            rule="MD026",
            line=line,
            column=column,
            message=f"Punctuation: '{text[len(trimmed):]}'",
            fix=fix_range(doc, start, content_end, "", "Remove trailing punctuation", "MD026")
        )


@rule("MD036", "no-emphasis-as-heading", tags=("headings", "emphasis"))
def no_emphasis_as_heading(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Emphasis used instead of a heading."""
    punctuation = option(settings, "punctuation", ".,;:!?。，；：！？")
    paragraph = None
    children = []

    for event, ancestors in walk(doc):
        if event.tag == "paragraph" and event.kind == "start":
            paragraph = event
            children = []
        elif event.tag == "paragraph" and event.kind == "end":
            if (paragraph is not None and len(children) == 1
                    and children[0].tag in ("emphasis", "strong")
                    and children[0].start == paragraph.start
                    and children[0].end == paragraph.end
                    and not any(a.tag == "list_item" for a in ancestors)):
                text = children[0].attrs["text"].strip()
                if text and text[-1] not in punctuation:
                    line, column = doc.position(paragraph.start)
                    yield Violation(
                        rule="MD036",
                        line=line,
                        column=column,
                        message=f"Emphasis used as heading: '{text}'"
                    )
            paragraph = None
        elif paragraph is not None and event.kind == "leaf":
            children.append(event)


@rule("MD041", "first-line-heading", "first-line-h1", tags=("headings",))
def first_line_heading(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """First line in a file should be a top-level heading."""
    level = option(settings, "level", 1)
    title_pattern = option(settings, "front_matter_title", FRONT_MATTER_TITLE, kind=str)
    if front_matter_has_title(doc, title_pattern):
        return

    for event in doc.events():
        if event.tag == "html_block":
            text = event.attrs.get("text", "").lstrip()
            if text.startswith("<!--"):
                continue
            if re.match(rf'<h{level}[\s>]', text, re.IGNORECASE):
                return
        if event.tag == "heading" and event.attrs["level"] == level:
            return
        line, column = doc.position(event.start)
        yield Violation(
            rule="MD041",
            line=line,
            column=column,
            message=f"First line in a file should be a level {level} heading"
        )
        return
