"""Blockquote rules."""
import re
from typing import Generator

from mdlint.core.document import Document

from ..models import Violation
from ..rule import line_fix, rule
from .common import event_lines, walk
from .lists import BLOCK_TAGS

EXTRA_SPACE_RE = re.compile(r'^((?: {0,3}> ?)*? {0,3}>)( {2,})(?=\S)')


@rule("MD027", "no-multiple-space-blockquote", tags=("blockquote", "whitespace", "indentation"),
      fixable=True)
def no_multiple_space_blockquote(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Multiple spaces after blockquote symbol."""
    quoted: set[int] = set()
    for event in doc.iter_events("blockquote", kind="start"):
        first, last = event_lines(doc, event)
        quoted.update(range(first, last + 1))

    for number in sorted(quoted):
        if number in doc.code_lines:
            continue
        text = doc.get_line(number)
        match = EXTRA_SPACE_RE.match(text)
        if not match:
            continue
        prefix, spaces = match.groups()
        yield Violation(
            rule="MD027",
            line=number,
            column=len(prefix) + 1,
            message="Multiple spaces after blockquote symbol",
            fix=line_fix(doc, number, len(prefix) + 2, len(prefix) + len(spaces) + 1, "",
                         "Remove extra spaces after blockquote symbol", "MD027")
        )


@rule("MD028", "no-blanks-blockquote", tags=("blockquote", "whitespace"))
def no_blanks_blockquote(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Blank line inside blockquote.

    Two sibling blockquotes separated only by blank lines read like one
    quote but render as two; either quote the blank line or put something
    between them.
    """
    previous = {}
    for event, ancestors in walk(doc):
        if event.kind == "end" or event.tag not in BLOCK_TAGS:
            continue
        parent = (ancestors[-1].tag, ancestors[-1].start) if ancestors else None
        before = previous.get(parent)
        previous[parent] = event
        if before is None or before.tag != "blockquote" or event.tag != "blockquote":
            continue

        gap_start = event_lines(doc, before)[1] + 1
        gap_end = doc.line_of(event.start)
        gap = range(gap_start, gap_end)
        if gap and all(not doc.get_line(n).strip() for n in gap):
            yield Violation(
                rule="MD028",
                line=gap_start,
                column=1,
                message="Blank line inside blockquote"
            )
