"""Code block rules."""
import re
from typing import Generator

from mdlint.core.document import Document, Event

from ..models import Fix, Violation
from ..rule import option, rule
from .common import blockquote_prefix, event_lines, first_content_line, is_blank, walk

DOLLAR_RE = re.compile(r'^(\s*)(\$\s+)')


def body_lines(doc: Document, event: Event) -> list[int]:
    """Line numbers holding the content of a code block, fences excluded."""
    first, last = event_lines(doc, event)
    if event.attrs["style"] != "fenced":
        return list(range(first, last + 1))
    if event.attrs.get("closed"):
        last -= 1
    return list(range(first + 1, last + 1))


def _newline(doc: Document) -> str:
    return "\r\n" if "\r\n" in doc.text else "\n"


@rule("MD014", "commands-show-output", tags=("code",))
def commands_show_output(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Dollar signs used before commands without showing output."""
    for event in doc.iter_events("code_block"):
        numbered = [(n, doc.get_line(n)) for n in body_lines(doc, event)]
        numbered = [(n, t[len(blockquote_prefix(t)):]) for n, t in numbered if t.strip()]
        if not numbered or not all(DOLLAR_RE.match(t) for _, t in numbered):
            continue
        for number, text in numbered:
            full = doc.get_line(number)
            match = DOLLAR_RE.match(text)
            column = len(full) - len(text) + match.end(1) + 1
            yield Violation(
                rule="MD014",
                line=number,
                column=column,
                message="Dollar signs used before commands without showing output"
            )


@rule("MD031", "blanks-around-fences", tags=("code", "blank_lines"), fixable=True)
def blanks_around_fences(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Fenced code blocks should be surrounded by blank lines.

    The fix inserts an empty line (keeping any blockquote prefix) above or
    below the fence.
    """
    list_items = option(settings, "list_items", True)
    top = first_content_line(doc)
    newline = _newline(doc)

    for event, ancestors in walk(doc):
        if event.tag != "code_block" or event.attrs["style"] != "fenced":
            continue
        if not list_items and any(a.tag == "list_item" for a in ancestors):
            continue
        first = event.attrs["first_line"]
        last = event.attrs["last_line"]

        if first > top and not is_blank(doc.get_line(first - 1)):
            prefix = blockquote_prefix(doc.get_line(first)).rstrip()
            yield Violation(
                rule="MD031",
                line=first,
                column=1,
                message="Fenced code blocks should be surrounded by blank lines (above)",
                fix=Fix(first, 1, first, 1, prefix + newline,
                        "Insert blank line above fence", "MD031")
            )
        if event.attrs.get("closed") and last < doc.line_count and not is_blank(doc.get_line(last + 1)):
            prefix = blockquote_prefix(doc.get_line(last)).rstrip()
            yield Violation(
                rule="MD031",
                line=last,
                column=1,
                message="Fenced code blocks should be surrounded by blank lines (below)",
                fix=Fix(last + 1, 1, last + 1, 1, prefix + newline,
                        "Insert blank line below fence", "MD031")
            )


@rule("MD040", "fenced-code-language", tags=("code", "language"))
def fenced_code_language(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Fenced code blocks should have a language specified."""
    allowed = option(settings, "allowed_languages", [])
    language_only = option(settings, "language_only", False)

    for event in doc.iter_events("code_block"):
        if event.attrs["style"] != "fenced":
            continue
        line, column = doc.position(event.start)
        info = event.attrs["info"]
        if not info:
            yield Violation(
                rule="MD040",
                line=line,
                column=column,
                message="Fenced code blocks should have a language specified"
            )
            continue
        language = info.split()[0]
        if allowed and language not in allowed:
            yield Violation(
                rule="MD040",
                line=line,
                column=column,
                message=f"Fenced code blocks should have a language specified [Language \"{language}\" is not allowed]"
            )
        elif language_only and info != language:
            yield Violation(
                rule="MD040",
                line=line,
                column=column,
                message=f"Fenced code blocks should have a language specified [Info string contains more than language: \"{info}\"]"
            )


@rule("MD046", "code-block-style", tags=("code",))
def code_block_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Code block style."""
    expected = option(settings, "style", "consistent", choices=("consistent", "fenced", "indented"))
    for event in doc.iter_events("code_block"):
        actual = event.attrs["style"]
        if expected == "consistent":
            expected = actual
        if actual != expected:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD046",
                line=line,
                column=column,
                message=f"Code block style (Expected: {expected}; Actual: {actual})"
            )


@rule("MD048", "code-fence-style", tags=("code",))
def code_fence_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Code fence style."""
    expected = option(settings, "style", "consistent", choices=("consistent", "backtick", "tilde"))
    for event in doc.iter_events("code_block"):
        if event.attrs["style"] != "fenced":
            continue
        actual = "backtick" if event.attrs["fence"].startswith("`") else "tilde"
        if expected == "consistent":
            expected = actual
        if actual != expected:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD048",
                line=line,
                column=column,
                message=f"Code fence style (Expected: {expected}; Actual: {actual})"
            )
