"""Inline construct rules: links, emphasis, code spans, html."""
import re
from typing import Generator

from mdlint.core.document import Document

from ..models import Violation
from ..rule import fix_range, line_fix, option, rule
from .common import content_lines, event_lines, inline_ranges, mask_ranges

REVERSED_LINK_RE = re.compile(r'(?<!\\)\(([^()\n]+)\)\[([^\]^][^\]]*)\](?!\()')
BARE_URL_RE = re.compile(r'(?<![<(\w/"\'=])(?:https?|ftp)://[^\s<>\[\]()"\'`]+')
URL_TRAILING = ".,;:!?*_~"
SPACED_EMPHASIS_RE = re.compile(
    r'(?<![\w*_\\])(\*\*|__|\*|_)( *)([^\s*_\x00](?:[^*_\n]*?[^\s*_])?)( *)\1(?![\w*_])'
)
HTML_TAG_RE = re.compile(r'<([A-Za-z][A-Za-z0-9-]*)(?=[\s/>])')
ALT_ATTR_RE = re.compile(r'\salt\s*=', re.IGNORECASE)


@rule("MD011", "no-reversed-links", tags=("links",), fixable=True)
def no_reversed_links(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Reversed link syntax."""
    skip = inline_ranges(doc, "code_span", "autolink", "html_inline")
    for number, text in content_lines(doc):
        masked = mask_ranges(doc, number, text, skip)
        for match in REVERSED_LINK_RE.finditer(masked):
            label, url = match.group(1), match.group(2)
            yield Violation(
                rule="MD011",
                line=number,
                column=match.start() + 1,
                message=f"Reversed link syntax ({match.group()})",
                fix=line_fix(doc, number, match.start() + 1, match.end() + 1,
                             f"[{label}]({url})", "Swap link text and destination", "MD011")
            )


@rule("MD033", "no-inline-html", tags=("html",))
def no_inline_html(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Inline HTML."""
    allowed = {name.lower() for name in option(settings, "allowed_elements", [])}

    for event in doc.iter_events("html_inline"):
        name = event.attrs.get("name")
        if not name or event.attrs.get("closing") or name in allowed:
            continue
        line, column = doc.position(event.start)
        yield Violation(
            rule="MD033",
            line=line,
            column=column,
            message=f"Inline HTML [Element: {name}]"
        )

    for event in doc.iter_events("html_block"):
        first, last = event_lines(doc, event)
        in_comment = False
        for number in range(first, last + 1):
            text = doc.get_line(number)
            # Blank out comments so tags inside them do not count
            chars = list(text)
            k = 0
            while k < len(text):
                if in_comment:
                    close = text.find("-->", k)
                    stop = len(text) if close < 0 else close + 3
                    for m in range(k, stop):
                        chars[m] = " "
                    in_comment = close < 0
                    k = stop
                else:
                    opening = text.find("<!--", k)
                    if opening < 0:
                        break
                    in_comment = True
                    k = opening
            visible = "".join(chars)
            for match in HTML_TAG_RE.finditer(visible):
                name = match.group(1).lower()
                if name in allowed:
                    continue
                yield Violation(
                    rule="MD033",
                    line=number,
                    column=match.start() + 1,
                    message=f"Inline HTML [Element: {name}]"
                )


@rule("MD034", "no-bare-urls", tags=("links", "url"), fixable=True)
def no_bare_urls(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Bare URL used."""
    skip = inline_ranges(doc)
    skip.extend((e.start, e.end) for e in doc.iter_events("definition"))

    for number, text in content_lines(doc, html=False):
        masked = mask_ranges(doc, number, text, skip)
        for match in BARE_URL_RE.finditer(masked):
            url = match.group().rstrip(URL_TRAILING)
            if "\x00" in url:
                continue
            start = match.start()
            end = start + len(url)
            yield Violation(
                rule="MD034",
                line=number,
                column=start + 1,
                message=f"Bare URL used ({url})",
                fix=line_fix(doc, number, start + 1, end + 1, f"<{url}>",
                             "Wrap URL in angle brackets", "MD034")
            )


@rule("MD035", "hr-style", tags=("hr",))
def hr_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Horizontal rule style."""
    expected = option(settings, "style", "consistent", kind=str)
    for event in doc.iter_events("thematic_break"):
        actual = event.attrs["marker"]
        if expected == "consistent":
            expected = actual
        if actual != expected:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD035",
                line=line,
                column=column,
                message=f"Horizontal rule style (Expected: {expected}; Actual: {actual})"
            )


@rule("MD037", "no-space-in-emphasis", tags=("whitespace", "emphasis"), fixable=True)
def no_space_in_emphasis(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Spaces inside emphasis markers."""
    skip = inline_ranges(doc, "code_span", "autolink", "html_inline")
    list_markers = {
        e.start: len(e.attrs["marker"]) + 1
        for e in doc.iter_events("list_item", kind="start")
        if not e.attrs["number"]
    }

    for number, text in content_lines(doc, html=False):
        masked = mask_ranges(doc, number, text, skip)
        line_start = doc.line_offset(number)
        for item_start, width in list_markers.items():
            if doc.line_of(item_start) == number:
                k = len(doc.slice(line_start, item_start))
                masked = masked[:k] + "\x00" * width + masked[k + width:]

        for match in SPACED_EMPHASIS_RE.finditer(masked):
            marker, before, _, after = match.groups()
            if not before and not after:
                continue
            content = text[match.start(3):match.end(3)]
            yield Violation(
                rule="MD037",
                line=number,
                column=match.start() + 1,
                message=f"Spaces inside emphasis markers ({text[match.start():match.end()]})",
                fix=line_fix(doc, number, match.start() + 1, match.end() + 1,
                             f"{marker}{content}{marker}", "Remove spaces inside emphasis", "MD037")
            )


@rule("MD038", "no-space-in-code", tags=("whitespace", "code"), fixable=True)
def no_space_in_code(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """
    Spaces inside code span elements.

    One space of padding on both sides is allowed (it is how a span
    containing backticks at its edges is written).
    """
    for event in doc.iter_events("code_span"):
        text = event.attrs["text"]
        if "\n" in text:
            continue
        stripped = text.strip(" ")
        if not stripped or stripped == text:
            continue
        leading = len(text) - len(text.lstrip(" "))
        trailing = len(text) - len(text.rstrip(" "))
        if leading == 1 and trailing == 1:
            continue

        padded = stripped.startswith("`") or stripped.endswith("`")
        replacement = f" {stripped} " if padded else stripped
        line, column = doc.position(event.start)
        yield Violation(
            rule="MD038",
            line=line,
            column=column,
            message=f"Spaces inside code span elements ({doc.slice(event.start, event.end)})",
            fix=fix_range(doc, event.attrs["content_start"], event.attrs["content_end"],
                          replacement, "Trim spaces inside code span", "MD038")
        )


@rule("MD039", "no-space-in-links", tags=("whitespace", "links"), fixable=True)
def no_space_in_links(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Spaces inside link text."""
    for event in doc.iter_events("link"):
        text = event.attrs["text"]
        stripped = text.strip()
        if not stripped or stripped == text or "\n" in text:
            continue
        line, column = doc.position(event.start)
        yield Violation(
            rule="MD039",
            line=line,
            column=column,
            message=f"Spaces inside link text ([{text}])",
            fix=fix_range(doc, event.attrs["text_start"], event.attrs["text_end"],
                          stripped, "Trim spaces inside link text", "MD039")
        )


@rule("MD042", "no-empty-links", tags=("links",))
def no_empty_links(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """No empty links."""
    for event in doc.iter_events("link"):
        if event.attrs["reference"] is not None:
            continue
        url = (event.attrs["url"] or "").strip("<>")
        if url and url != "#":
            continue
        line, column = doc.position(event.start)
        yield Violation(
            rule="MD042",
            line=line,
            column=column,
            message=f"No empty links ({doc.slice(event.start, event.end)})"
        )


@rule("MD045", "no-alt-text", tags=("accessibility", "images"))
def no_alt_text(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Images should have alternate text (alt text)."""
    for event in doc.iter_events("image", "html_inline"):
        if event.tag == "image":
            missing = not event.attrs["text"].strip()
        else:
            missing = (event.attrs.get("name") == "img" and not event.attrs.get("closing")
                       and not ALT_ATTR_RE.search(event.attrs["text"]))
        if missing:
            line, column = doc.position(event.start)
            yield Violation(
                rule="MD045",
                line=line,
                column=column,
                message="Images should have alternate text (alt text)"
            )


def _marker_style(marker: str) -> str:
    return "asterisk" if marker.startswith("*") else "underscore"


def _check_marker_style(doc: Document, settings: dict, tag: str, rule_id: str, label: str):
    expected = option(settings, "style", "consistent",
                      choices=("consistent", "asterisk", "underscore"))
    for event in doc.iter_events(tag):
        actual = _marker_style(event.attrs["marker"])
        if expected == "consistent":
            expected = actual
        if actual != expected:
            line, column = doc.position(event.start)
            yield Violation(
                rule=rule_id,
                line=line,
                column=column,
                message=f"{label} style (Expected: {expected}; Actual: {actual})"
            )


@rule("MD049", "emphasis-style", tags=("emphasis",))
def emphasis_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Emphasis style should be consistent."""
    yield from _check_marker_style(doc, settings, "emphasis", "MD049", "Emphasis")


@rule("MD050", "strong-style", tags=("emphasis",))
def strong_style(doc: Document, settings: dict) -> Generator[Violation, None, None]:
    """Strong style should be consistent."""
    yield from _check_marker_style(doc, settings, "strong", "MD050", "Strong")
