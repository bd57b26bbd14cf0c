"""Whitespace and line-shape rules."""
import re
from typing import Generator

from mdlint.core.document import Document

from ..models import Fix, Violation
from ..rule import fix_range, line_fix, option, rule
from .common import content_lines, event_lines

TAB_RUN_RE = re.compile(r'\t+')
WHITESPACE_RE = re.compile(r'\s')
DEFINITION_LINE_RE = re.compile(r'^\s*\[[^\]]+\]:\s*\S+\s*$')


@rule("MD009", "no-trailing-spaces", tags=("whitespace",), fixable=True)
def no_trailing_spaces(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Trailing spaces.

    Trailing whitespace is noise in diffs. Exactly ``br_spaces`` spaces
    are allowed as a hard line break unless ``strict`` is set, in which
    case they are only allowed where they actually break a paragraph line.
    """
    br_spaces = option(settings, "br_spaces", 2)
    strict = option(settings, "strict", False)
    last = doc.line_count

    for number, text in content_lines(doc, code=True):
        stripped = text.rstrip(" \t")
        trailing = len(text) - len(stripped)
        if trailing == 0:
            continue

        if stripped and br_spaces >= 2 and trailing == br_spaces and text.endswith(" " * br_spaces):
            breaks_line = (number < last and doc.get_line(number + 1).strip() != ""
                           and number not in doc.code_lines)
            if not strict or breaks_line:
                continue

        yield Violation(
            rule="MD009",
            line=number,
            column=len(stripped) + 1,
            message=f"Trailing spaces ({trailing} chars)",
            fix=line_fix(doc, number, len(stripped) + 1, len(text) + 1, "",
                         "Remove trailing spaces", "MD009")
        )


@rule("MD010", "no-hard-tabs", tags=("whitespace", "hard_tab"), fixable=True)
def no_hard_tabs(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Hard tabs."""
    code_blocks = option(settings, "code_blocks", True)
    spaces_per_tab = option(settings, "spaces_per_tab", 1)

    for number, text in content_lines(doc, code=code_blocks):
        for match in TAB_RUN_RE.finditer(text):
            yield Violation(
                rule="MD010",
                line=number,
                column=match.start() + 1,
                message=f"Hard tabs ({len(match.group())})",
                fix=line_fix(doc, number, match.start() + 1, match.end() + 1,
                             " " * (spaces_per_tab * len(match.group())),
                             "Replace hard tabs with spaces", "MD010")
            )


@rule("MD012", "no-multiple-blanks", tags=("whitespace", "blank_lines"), fixable=True)
def no_multiple_blanks(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Multiple consecutive blank lines.

    Counts blank lines in a run; the first line beyond ``maximum`` is
    reported once per run and the fix removes the excess lines.
    """
    maximum = option(settings, "maximum", 1)
    run = 0
    excess_start = None
    previous = None

    def flush(last_blank: int) -> Violation:
        end_column = len(doc.get_line(last_blank)) + 1
        if last_blank < doc.index.line_count:
            fix = Fix(excess_start, 1, last_blank + 1, 1, "", "Remove excess blank lines", "MD012")
        else:
            # Unterminated final line: the last allowed blank keeps its terminator
            fix = Fix(excess_start, 1, last_blank, end_column, "", "Remove excess blank lines", "MD012")
        return Violation(
            rule="MD012",
            line=excess_start,
            column=1,
            message=f"Multiple consecutive blank lines (Expected: {maximum}; Actual: {run})",
            fix=fix
        )

    for number, text in doc.lines():
        blank = (not text.strip() and number not in doc.code_lines
                 and not doc.is_line_in_front_matter(number))
        if blank:
            run += 1
            if run == maximum + 1:
                excess_start = number
        else:
            if excess_start is not None:
                yield flush(previous)
            run = 0
            excess_start = None
        previous = number

    if excess_start is not None:
        yield flush(previous)


@rule("MD013", "line-length", tags=("line_length",))
def line_length(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Line length.

    Unless ``strict`` is set, a line is allowed to run over the limit when
    there is no whitespace past it (long URLs, paths).
    """
    limit = option(settings, "line_length", 80)
    heading_limit = option(settings, "heading_line_length", limit)
    code_limit = option(settings, "code_block_line_length", limit)
    check_code = option(settings, "code_blocks", True)
    check_tables = option(settings, "tables", True)
    check_headings = option(settings, "headings", True)
    strict = option(settings, "strict", False)

    heading_lines: set[int] = set()
    table_lines: set[int] = set()
    for event in doc.iter_events("heading", "table", kind="start"):
        first, last = event_lines(doc, event)
        target = heading_lines if event.tag == "heading" else table_lines
        target.update(range(first, last + 1))

    for number, text in content_lines(doc, code=True):
        maximum = limit
        if number in doc.code_lines:
            if not check_code:
                continue
            maximum = code_limit
        elif number in heading_lines:
            if not check_headings:
                continue
            maximum = heading_limit
        elif number in table_lines and not check_tables:
            continue

        if len(text) <= maximum:
            continue
        if not strict and (not WHITESPACE_RE.search(text[maximum:]) or DEFINITION_LINE_RE.match(text)):
            continue

        yield Violation(
            rule="MD013",
            line=number,
            column=maximum + 1,
            message=f"Line length (Expected: {maximum}; Actual: {len(text)})"
        )


@rule("MD047", "single-trailing-newline", tags=("blank_lines",), fixable=True)
def single_trailing_newline(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Files should end with a single newline character."""
    if not doc.text or doc.text.endswith("\n"):
        return
    last = doc.line_count
    column = len(doc.get_line(last)) + 1
    newline = "\r\n" if "\r\n" in doc.text else "\n"
    yield Violation(
        rule="MD047",
        line=last,
        column=column,
        message="Files should end with a single newline character",
        # End of text, past a bare trailing carriage return
        fix=fix_range(doc, doc.index.size, doc.index.size, newline, "Append newline", "MD047")
    )
