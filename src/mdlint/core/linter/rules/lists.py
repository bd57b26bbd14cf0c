"""List marker, numbering and indentation rules."""
from typing import Generator

from mdlint.core.document import Document, Event

from ..models import Violation
from ..rule import fix_range, option, rule
from .common import blockquote_prefix, event_lines, first_content_line, is_blank, walk

MARKER_NAMES = {"*": "asterisk", "+": "plus", "-": "dash"}
BLOCK_TAGS = frozenset({
    "paragraph", "heading", "list", "blockquote", "code_block",
    "html_block", "table", "thematic_break", "definition",
})
OL_STYLES = ("one_or_ordered", "one", "ordered", "zero")


def _lists(doc: Document) -> list[tuple[Event, tuple[Event, ...], list[Event]]]:
    """Every list with its ancestors and its direct items, in document order."""
    found: list[tuple[Event, tuple[Event, ...], list[Event]]] = []
    open_lists: list[list[Event]] = []
    for event, ancestors in walk(doc):
        if event.tag == "list" and event.kind == "start":
            items: list[Event] = []
            found.append((event, ancestors, items))
            open_lists.append(items)
        elif event.tag == "list" and event.kind == "end":
            open_lists.pop()
        elif event.tag == "list_item" and event.kind == "start":
            open_lists[-1].append(event)
    return found


@rule("MD004", "ul-style", tags=("bullet", "ul"))
def ul_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Unordered list style should be consistent."""
    style = option(settings, "style", "consistent",
                   choices=("consistent", "asterisk", "plus", "dash", "sublist"))
    by_depth: dict[int, str] = {}

    for lst, ancestors, items in _lists(doc):
        if lst.attrs["ordered"]:
            continue
        depth = sum(1 for a in ancestors if a.tag == "list")
        for item in items:
            actual = MARKER_NAMES[item.attrs["marker"]]
            if style in ("consistent", "sublist"):
                key = depth if style == "sublist" else 0
                expected = by_depth.setdefault(key, actual)
            else:
                expected = style
            if actual != expected:
                line, column = doc.position(item.start)
                yield Violation(
                    rule="MD004",
                    line=line,
                    column=column,
                    message=f"Expected: {expected}; Actual: {actual}"
                )


@rule("MD005", "list-indent", tags=("bullet", "ul", "indentation"))
def list_indent(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Inconsistent indentation for list items at the same level."""
    for lst, _, items in _lists(doc):
        if not items:
            continue
        first_column = doc.position(items[0].start)[1]
        first_end = first_column + len(items[0].attrs["marker"])
        for item in items[1:]:
            line, column = doc.position(item.start)
            if column == first_column:
                continue
            # Right-aligned ordered numbers ( 9. / 10.) are consistent too
            if lst.attrs["ordered"] and column + len(item.attrs["marker"]) == first_end:
                continue
            yield Violation(
                rule="MD005",
                line=line,
                column=column,
                message=f"Expected: {first_column - 1}; Actual: {column - 1}"
            )


@rule("MD007", "ul-indent", tags=("bullet", "ul", "indentation"))
def ul_indent(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Unordered list indentation."""
    indent = option(settings, "indent", 2)
    start_indented = option(settings, "start_indented", False)
    start_indent = option(settings, "start_indent", indent)

    for event, ancestors in walk(doc):
        if event.tag != "list_item" or event.kind != "start":
            continue
        lists = [a for a in ancestors if a.tag == "list"]
        if any(lst.attrs["ordered"] for lst in lists):
            continue
        line, column = doc.position(event.start)
        prefix = blockquote_prefix(doc.get_line(line))
        actual = column - 1 - len(prefix) if column - 1 >= len(prefix) else column - 1
        expected = (len(lists) - 1) * indent + (start_indent if start_indented else 0)
        if actual != expected:
            yield Violation(
                rule="MD007",
                line=line,
                column=column,
                message=f"Expected: {expected}; Actual: {actual}"
            )


@rule("MD029", "ol-prefix", tags=("ol",))
def ol_prefix(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Ordered list item prefix.

    The first two items of each list classify it: ``1. 1.`` (or ``0. 0.``)
    means every item repeats that number, anything else means numbering
    counts up by one from the first item. With an explicit ``style`` the
    classification is fixed instead.
    """
    style = option(settings, "style", "one_or_ordered", choices=OL_STYLES)

    for lst, _, items in _lists(doc):
        if not lst.attrs["ordered"] or not items:
            continue
        numbers = [item.attrs["number"] for item in items]
        first = numbers[0]

        if style == "one":
            predict = lambda i: 1  # noqa: E731
        elif style == "zero":
            predict = lambda i: 0  # noqa: E731
        elif style == "ordered":
            predict = lambda i: first + i  # noqa: E731
        elif len(numbers) > 1 and numbers[1] == first and first in (0, 1):
            predict = lambda i: first  # noqa: E731
        else:
            predict = lambda i: first + i  # noqa: E731

        for i, item in enumerate(items):
            expected = predict(i)
            if item.attrs["number"] != expected:
                line, column = doc.position(item.start)
                yield Violation(
                    rule="MD029",
                    line=line,
                    column=column,
                    message=f"Ordered list item prefix (Expected: {expected}; Actual: {item.attrs['number']})"
                )


def _block_counts(doc: Document) -> dict[int, int]:
    """Number of direct block children per list item, keyed by item start offset."""
    counts: dict[int, int] = {}
    for event, ancestors in walk(doc):
        if event.kind == "end" or event.tag not in BLOCK_TAGS:
            continue
        if ancestors and ancestors[-1].tag == "list_item":
            key = ancestors[-1].start
            counts[key] = counts.get(key, 0) + 1
    return counts


@rule("MD030", "list-marker-space", tags=("ol", "ul", "whitespace"), fixable=True)
def list_marker_space(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Spaces after list markers."""
    ul_single = option(settings, "ul_single", 1)
    ol_single = option(settings, "ol_single", 1)
    ul_multi = option(settings, "ul_multi", 1)
    ol_multi = option(settings, "ol_multi", 1)

    counts = _block_counts(doc)
    for lst, _, items in _lists(doc):
        multi = any(counts.get(item.start, 0) > 1 for item in items)
        if lst.attrs["ordered"]:
            expected = ol_multi if multi else ol_single
        else:
            expected = ul_multi if multi else ul_single
        for item in items:
            actual = item.attrs["spaces"]
            if item.attrs["empty"] or actual == expected:
                continue
            marker_end = item.start + len(item.attrs["marker"].encode("utf-8"))
            line, column = doc.position(item.start)
            yield Violation(
                rule="MD030",
                line=line,
                column=column,
                message=f"Spaces after list markers (Expected: {expected}; Actual: {actual})",
                fix=fix_range(doc, marker_end, marker_end + actual, " " * expected,
                              "Normalize spaces after list marker", "MD030")
            )


@rule("MD032", "blanks-around-lists", tags=("bullet", "ul", "ol", "blank_lines"))
def blanks_around_lists(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Lists should be surrounded by blank lines."""
    top = first_content_line(doc)
    for lst, ancestors, _ in _lists(doc):
        if any(a.tag == "list_item" for a in ancestors):
            continue
        first, last = event_lines(doc, lst)
        if first > top and not is_blank(doc.get_line(first - 1)):
            yield Violation(
                rule="MD032",
                line=first,
                column=1,
                message="Lists should be surrounded by blank lines (above)"
            )
        if last < doc.line_count and not is_blank(doc.get_line(last + 1)):
            yield Violation(
                rule="MD032",
                line=last,
                column=1,
                message="Lists should be surrounded by blank lines (below)"
            )
