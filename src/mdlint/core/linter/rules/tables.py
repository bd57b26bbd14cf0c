"""GFM table rules."""
from typing import Generator

from mdlint.core.document import Document

from ..models import Violation
from ..rule import option, rule
from .common import event_lines, first_content_line, is_blank

PIPE_STYLES = {
    "leading_and_trailing": (True, True),
    "leading_only": (True, False),
    "trailing_only": (False, True),
    "no_leading_or_trailing": (False, False),
}


def _rows(doc: Document):
    """``(table, rows)`` pairs in document order."""
    table = None
    rows = []
    for event in doc.iter_events("table", "table_row", kind="start"):
        if event.tag == "table":
            if table is not None:
                yield table, rows
            table, rows = event, []
        else:
            rows.append(event)
    if table is not None:
        yield table, rows


@rule("MD055", "table-pipe-style", tags=("table",))
def table_pipe_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Table pipe style."""
    style = option(settings, "style", "consistent", choices=("consistent", *PIPE_STYLES))
    expected = PIPE_STYLES.get(style)

    for _, rows in _rows(doc):
        for row in rows:
            actual = (row.attrs["leading_pipe"], row.attrs["trailing_pipe"])
            if expected is None:
                expected = actual
            line, column = doc.position(row.start)
            if actual[0] != expected[0]:
                yield Violation(
                    rule="MD055",
                    line=line,
                    column=column,
                    message="Table pipe style ({} leading pipe)".format(
                        "Missing" if expected[0] else "Unexpected")
                )
            if actual[1] != expected[1]:
                text = doc.get_line(line).rstrip()
                yield Violation(
                    rule="MD055",
                    line=line,
                    column=len(text) if not expected[1] else len(text) + 1,
                    message="Table pipe style ({} trailing pipe)".format(
                        "Missing" if expected[1] else "Unexpected")
                )


@rule("MD056", "table-column-count", tags=("table",))
def table_column_count(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Table column count."""
    for table, rows in _rows(doc):
        expected = table.attrs["columns"]
        for row in rows:
            actual = len(row.attrs["cells"])
            if actual == expected:
                continue
            detail = "Too few cells, row will be missing data" if actual < expected \
                else "Too many cells, extra data will be missing"
            line, column = doc.position(row.start)
            yield Violation(
                rule="MD056",
                line=line,
                column=column,
                message=f"Table column count (Expected: {expected}; Actual: {actual}; {detail})"
            )


@rule("MD058", "blanks-around-tables", tags=("table",))
def blanks_around_tables(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Tables should be surrounded by blank lines."""
    top = first_content_line(doc)
    for table, _ in _rows(doc):
        first, last = event_lines(doc, table)
        if first > top and not is_blank(doc.get_line(first - 1)):
            yield Violation(
                rule="MD058",
                line=first,
                column=1,
                message="Tables should be surrounded by blank lines (above)"
            )
        if last < doc.line_count and not is_blank(doc.get_line(last + 1)):
            yield Violation(
                rule="MD058",
                line=last,
                column=1,
                message="Tables should be surrounded by blank lines (below)"
            )
