"""Line-driven markdown parser producing the byte-offset event stream.

Covers the CommonMark block structure rules actually look at (ATX/setext
headings, fenced and indented code, nested blockquotes and lists, html
blocks, GFM tables, thematic breaks, reference definitions) plus the common
inline constructs. Anything else is a paragraph. Callers with a stricter
parser can hand their own events to ``Document`` instead.
"""
from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any

from .document import Event
from .position import PositionIndex

ATX_RE = re.compile(r'(#{1,6})(?=[ \t]|$)')
ATX_CLOSING_RE = re.compile(r'[ \t]+#+[ \t]*$')
FENCE_RE = re.compile(r'(`{3,}|~{3,})(.*)$')
THEMATIC_RE = re.compile(r'([-*_])[ \t]*(?:\1[ \t]*){2,}$')
LIST_ITEM_RE = re.compile(r'([-*+]|(\d{1,9})([.)]))([ \t]+|$)(.*)$')
SETEXT_RE = re.compile(r'(=+|-+)[ \t]*$')
DEFINITION_RE = re.compile(r'\[((?:[^\]\\]|\\.)+)\]:[ \t]*(\S+)')
TABLE_DELIMITER_RE = re.compile(
    r'\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$'
)
CELL_SPLIT_RE = re.compile(r'(?<!\\)\|')

HTML_OPEN_RE = re.compile(r'<(/?)([A-Za-z][A-Za-z0-9-]*)')
HTML_COMPLETE_TAG_RE = re.compile(r'</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>[ \t]*$')
HTML_BLOCK_TAGS = frozenset({
    "address", "article", "aside", "base", "blockquote", "body", "caption",
    "center", "col", "colgroup", "dd", "details", "dialog", "dir", "div",
    "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "frame", "frameset", "h1", "h2", "h3", "h4", "h5", "h6", "head",
    "header", "hr", "html", "iframe", "legend", "li", "link", "main",
    "menu", "nav", "ol", "optgroup", "option", "p", "param", "section",
    "summary", "table", "tbody", "td", "tfoot", "th", "thead", "title",
    "tr", "ul",
})
HTML_RAW_TAGS = ("pre", "script", "style", "textarea")

# Inline constructs
BACKTICKS_RE = re.compile(r'`+')
ESCAPE_RE = re.compile(r'\\[!-/:-@\[-`{-~]')
AUTOLINK_RE = re.compile(
    r'<((?:https?|ftp)://[^\s<>]+|mailto:[^\s<>]+|[\w.+-]+@[\w-]+(?:\.[\w-]+)+)>'
)
HTML_INLINE_RE = re.compile(
    r'<!--.*?-->|<(/?)([A-Za-z][A-Za-z0-9-]*)(?:\s[^<>]*)?/?>', re.DOTALL
)
IMAGE_RE = re.compile(
    r'!\[([^\]]*)\](?:\((<[^>]*>|[^\s()]*)(?:\s+"[^"]*")?\)|\[([^\]]*)\])'
)
LINK_RE = re.compile(
    r'\[([^\]]*)\](?:\((<[^>]*>|[^\s()]*)(?:\s+"[^"]*")?\)|\[([^\]]*)\])'
)
STRONG_RES = (
    re.compile(r'(?<![\\*])(\*\*)(?![\s*])(.+?)(?<![\s*])\*\*(?!\*)'),
    re.compile(r'(?<![\w\\_])(__)(?![\s_])(.+?)(?<![\s_])__(?![\w_])'),
)
EMPHASIS_RES = (
    re.compile(r'(?<![\\*])(\*)(?![\s*])(.+?)(?<![\s\\*])\*(?!\*)'),
    re.compile(r'(?<![\w\\_])(_)(?![\s_])(.+?)(?<![\s\\_])_(?![\w_])'),
)
MASK = "\x00"


@dataclass(frozen=True)
class _Line:
    """A (possibly container-stripped) suffix of one source line."""
    number: int
    offset: int
    text: str

    @property
    def end(self) -> int:
        return self.offset + len(self.text.encode("utf-8"))

    @property
    def blank(self) -> bool:
        return not self.text.strip()

    def at(self, k: int) -> int:
        """Byte offset of character ``k`` of this line."""
        return self.offset + len(self.text[:k].encode("utf-8"))

    def indent(self) -> int:
        width = 0
        for ch in self.text:
            if ch == " ":
                width += 1
            elif ch == "\t":
                width += 4 - width % 4
            else:
                break
        return width

    def lead(self) -> int:
        """Number of leading space characters."""
        return len(self.text) - len(self.text.lstrip(" "))

    def drop(self, count: int) -> _Line:
        return _Line(self.number, self.at(count), self.text[count:])

    def dedent(self, width: int) -> _Line:
        i = 0
        seen = 0
        while i < len(self.text) and seen < width and self.text[i] in " \t":
            seen += 1 if self.text[i] == " " else 4 - seen % 4
            i += 1
        return self.drop(i)


def parse(text: str, index: PositionIndex | None = None, first_line: int = 1) -> list[Event]:
    """
    Parse ``text`` into a flat, document-ordered event list.

    Args:
        text: Raw markdown
        index: Position index of ``text`` (built when omitted)
        first_line: First line to parse; earlier lines (front matter) are skipped

    Returns:
        Events with UTF-8 byte offsets into ``text``
    """
    index = index or PositionIndex.build(text)
    data = index.data
    lines = []
    for number in range(first_line, index.line_count + 1):
        start, end = index.line_bounds(number)
        if start == index.size and number > 1:
            break  # nothing after the final terminator
        raw = data[start:end].decode("utf-8").rstrip("\n")
        if raw.endswith("\r"):
            raw = raw[:-1]
        lines.append(_Line(number, start, raw))

    events: list[Event] = []
    _parse_blocks(lines, events)
    return events


# ---------------------------------------------------------------------------
# Block structure
# ---------------------------------------------------------------------------


def _strip_lead(line: _Line) -> str:
    return line.text[line.lead():]


def _fence_open(line: _Line) -> re.Match | None:
    if line.indent() >= 4:
        return None
    match = FENCE_RE.match(_strip_lead(line))
    if match and match.group(1)[0] == "`" and "`" in match.group(2):
        return None
    return match


def _html_start(line: _Line) -> str | None:
    """Classify a line opening an html block: 'comment', 'raw', 'block', 'tag' or None."""
    s = _strip_lead(line)
    if line.indent() >= 4 or not s.startswith("<"):
        return None
    if s.startswith("<!--"):
        return "comment"
    match = HTML_OPEN_RE.match(s)
    if not match:
        return None
    name = match.group(2).lower()
    if not match.group(1) and name in HTML_RAW_TAGS:
        return "raw"
    if name in HTML_BLOCK_TAGS:
        return "block"
    if HTML_COMPLETE_TAG_RE.match(s):
        return "tag"
    return None


def _list_item(line: _Line) -> re.Match | None:
    if line.indent() >= 4:
        return None
    s = _strip_lead(line)
    if THEMATIC_RE.match(s):
        return None
    return LIST_ITEM_RE.match(s)


def _interrupts(line: _Line) -> bool:
    """Whether ``line`` ends a paragraph instead of continuing it."""
    if line.blank or line.indent() >= 4:
        return False
    s = _strip_lead(line)
    if ATX_RE.match(s) or _fence_open(line) or THEMATIC_RE.match(s) or s.startswith(">"):
        return True
    html = _html_start(line)
    if html is not None and html != "tag":
        return True
    item = _list_item(line)
    if item and item.group(5).strip():
        return item.group(2) is None or int(item.group(2)) == 1
    return False


def _parse_blocks(lines: list[_Line], out: list[Event]) -> None:
    i = 0
    n = len(lines)
    while i < n:
        line = lines[i]
        if line.blank:
            i += 1
            continue

        if line.indent() >= 4:
            i = _indented_code(lines, i, out)
            continue

        s = _strip_lead(line)
        fence = _fence_open(line)
        if fence:
            i = _fenced_code(lines, i, fence, out)
        elif ATX_RE.match(s):
            _atx_heading(line, out)
            i += 1
        elif THEMATIC_RE.match(s):
            out.append(Event("leaf", "thematic_break", line.at(line.lead()), line.end,
                             {"marker": s.strip()}))
            i += 1
        elif s.startswith(">"):
            i = _blockquote(lines, i, out)
        elif _list_item(line):
            i = _list(lines, i, out)
        elif _html_start(line):
            i = _html_block(lines, i, out)
        else:
            i = _paragraph(lines, i, out)


def _indented_code(lines: list[_Line], i: int, out: list[Event]) -> int:
    j = i
    last = i
    while j < len(lines) and (lines[j].blank or lines[j].indent() >= 4):
        if not lines[j].blank:
            last = j
        j += 1
    out.append(Event("leaf", "code_block", lines[i].offset, lines[last].end,
                     {"style": "indented", "fence": None, "info": ""}))
    return last + 1


def _fenced_code(lines: list[_Line], i: int, fence: re.Match, out: list[Event]) -> int:
    marker = fence.group(1)
    closing = re.compile(r' {0,3}' + re.escape(marker[0]) + '{' + str(len(marker)) + r',}[ \t]*$')
    j = i + 1
    closed = False
    while j < len(lines):
        if closing.match(lines[j].text):
            closed = True
            break
        j += 1
    last = j if closed else len(lines) - 1
    open_line = lines[i]
    out.append(Event("leaf", "code_block", open_line.at(open_line.lead()), lines[last].end, {
        "style": "fenced",
        "fence": marker,
        "info": fence.group(2).strip(),
        "closed": closed,
        "first_line": open_line.number,
        "last_line": lines[last].number,
    }))
    return last + 1


def _atx_heading(line: _Line, out: list[Event]) -> None:
    lead = line.lead()
    s = line.text[lead:]
    hashes = ATX_RE.match(s).group(1)
    rest = s[len(hashes):]
    content_start = lead + len(hashes) + (len(rest) - len(rest.lstrip()))
    closing = ATX_CLOSING_RE.search(rest)
    stripped = rest.strip()
    if stripped and set(stripped) == {"#"}:
        content_end = content_start
        style = "atx_closed"
    elif closing:
        content_end = lead + len(hashes) + closing.start()
        style = "atx_closed"
    else:
        content_end = lead + len(hashes) + len(rest.rstrip())
        style = "atx"

    attrs = {
        "level": len(hashes),
        "style": style,
        "text": line.text[content_start:content_end],
        "content_start": line.at(content_start),
        "content_end": line.at(content_end),
    }
    start = line.at(lead)
    out.append(Event("start", "heading", start, line.end, attrs))
    _scan_inline([_Line(line.number, line.at(content_start), line.text[content_start:content_end])], out)
    out.append(Event("end", "heading", start, line.end, attrs))


def _blockquote(lines: list[_Line], i: int, out: list[Event]) -> int:
    inner: list[_Line] = []
    j = i
    while j < len(lines):
        line = lines[j]
        if line.indent() < 4 and _strip_lead(line).startswith(">"):
            k = line.lead() + 1
            if line.text[k:k + 1] in (" ", "\t"):
                k += 1
            inner.append(line.drop(k))
            j += 1
            continue
        if line.blank:
            break
        if inner and not inner[-1].blank and not _interrupts(line) and not _list_item(line):
            inner.append(line)  # lazy continuation
            j += 1
            continue
        break

    start = lines[i].at(lines[i].lead())
    end = lines[j - 1].end
    out.append(Event("start", "blockquote", start, end, {}))
    _parse_blocks(inner, out)
    out.append(Event("end", "blockquote", start, end, {}))
    return j


def _list(lines: list[_Line], i: int, out: list[Event]) -> int:
    first = _list_item(lines[i])
    ordered = first.group(2) is not None
    kind = first.group(3) if ordered else first.group(1)

    items: list[tuple[_Line, re.Match, list[_Line]]] = []
    j = i
    while j < len(lines):
        line = lines[j]
        match = _list_item(line)
        if not match:
            break
        if (match.group(2) is not None) != ordered:
            break
        if (match.group(3) if ordered else match.group(1)) != kind:
            break

        lead = line.lead()
        marker = match.group(1)
        spaces = len(match.group(4).expandtabs(4))
        content = match.group(5)
        if not content.strip() or spaces > 4:
            width = lead + len(marker) + 1
            used = min(len(match.group(4)), 1)
        else:
            width = lead + len(marker) + spaces
            used = len(match.group(4))

        inner = [line.drop(lead + len(marker) + used)]
        k = j + 1
        while k < len(lines):
            nxt = lines[k]
            if nxt.blank:
                inner.append(nxt.dedent(width))
            elif nxt.indent() >= width:
                inner.append(nxt.dedent(width))
            elif (not inner[-1].blank and not _interrupts(nxt) and not _list_item(nxt)
                  and not _inside_open_fence(inner)):
                inner.append(nxt)  # lazy continuation
            else:
                break
            k += 1
        while len(inner) > 1 and inner[-1].blank:
            inner.pop()
            k -= 1
        # Skip blank lines separating this item from the next one
        while k < len(lines) and lines[k].blank:
            k += 1
        if k < len(lines) and not _list_item(lines[k]):
            k -= _trailing_blanks(lines, k)
        items.append((line, match, inner))
        j = k

    first_item = items[0][0]
    start = first_item.at(first_item.lead())
    end = items[-1][2][-1].end if items[-1][2][-1].text else items[-1][0].end
    list_attrs = {
        "ordered": ordered,
        "marker": kind,
        "start": int(first.group(2)) if ordered else None,
    }
    out.append(Event("start", "list", start, end, list_attrs))
    for line, match, inner in items:
        item_start = line.at(line.lead())
        last = inner[-1]
        item_end = last.end if not last.blank else line.end
        item_attrs = {
            "marker": match.group(1),
            "number": int(match.group(2)) if ordered else None,
            "spaces": len(match.group(4)),
            "empty": not match.group(5).strip(),
        }
        out.append(Event("start", "list_item", item_start, item_end, item_attrs))
        _parse_blocks(inner, out)
        out.append(Event("end", "list_item", item_start, item_end, item_attrs))
    out.append(Event("end", "list", start, end, list_attrs))
    return j


def _trailing_blanks(lines: list[_Line], k: int) -> int:
    count = 0
    while k - count - 1 >= 0 and lines[k - count - 1].blank:
        count += 1
    return count


def _inside_open_fence(inner: list[_Line]) -> bool:
    opened = None
    for line in inner:
        if opened is None:
            fence = _fence_open(line)
            if fence:
                opened = fence.group(1)
        elif _strip_lead(line).startswith(opened[0] * len(opened)) and not _strip_lead(line).strip(opened[0]).strip():
            opened = None
    return opened is not None


def _html_block(lines: list[_Line], i: int, out: list[Event]) -> int:
    kind = _html_start(lines[i])
    j = i
    if kind == "comment":
        while j < len(lines) and "-->" not in lines[j].text:
            j += 1
    elif kind == "raw":
        name = HTML_OPEN_RE.match(_strip_lead(lines[i])).group(2).lower()
        while j < len(lines) and f"</{name}>" not in lines[j].text.lower():
            j += 1
    else:
        while j + 1 < len(lines) and not lines[j + 1].blank:
            j += 1
    last = min(j, len(lines) - 1)
    first = lines[i]
    out.append(Event("leaf", "html_block", first.at(first.lead()), lines[last].end, {
        "text": "\n".join(line.text for line in lines[i:last + 1]),
        "first_line": first.number,
    }))
    return last + 1


def _split_cells(text: str) -> list[str]:
    s = text.strip()
    if s.startswith("|"):
        s = s[1:]
    if s.endswith("|") and not s.endswith("\\|"):
        s = s[:-1]
    return [cell.strip() for cell in CELL_SPLIT_RE.split(s)]


def _table(lines: list[_Line], i: int, out: list[Event]) -> int:
    j = i + 2
    while j < len(lines) and not lines[j].blank and "|" in lines[j].text and not _interrupts(lines[j]):
        j += 1
    rows = lines[i:j]
    start = rows[0].at(rows[0].lead())
    end = rows[-1].end
    out.append(Event("start", "table", start, end, {"columns": len(_split_cells(rows[1].text))}))
    for position, row in enumerate(rows):
        text = row.text.strip()
        attrs = {
            "cells": _split_cells(row.text),
            "header": position == 0,
            "delimiter": position == 1,
            "leading_pipe": text.startswith("|"),
            "trailing_pipe": text.endswith("|"),
        }
        row_start = row.at(row.lead())
        out.append(Event("start", "table_row", row_start, row.end, attrs))
        if position != 1:
            _scan_inline([row], out)
        out.append(Event("end", "table_row", row_start, row.end, attrs))
    out.append(Event("end", "table", start, end, {}))
    return j


def _paragraph(lines: list[_Line], i: int, out: list[Event]) -> int:
    line = lines[i]
    if ("|" in line.text and i + 1 < len(lines) and lines[i + 1].indent() < 4
            and TABLE_DELIMITER_RE.match(_strip_lead(lines[i + 1]))
            and ("|" in lines[i + 1].text)):
        return _table(lines, i, out)

    definition = DEFINITION_RE.match(_strip_lead(line))
    if definition:
        out.append(Event("leaf", "definition", line.at(line.lead()), line.end, {
            "label": definition.group(1),
            "url": definition.group(2),
        }))
        return i + 1

    para = [line]
    j = i + 1
    setext = None
    while j < len(lines):
        nxt = lines[j]
        if nxt.blank:
            break
        if nxt.indent() < 4 and SETEXT_RE.match(_strip_lead(nxt)):
            setext = nxt
            break
        if _interrupts(nxt):
            break
        para.append(nxt)
        j += 1

    start = line.at(line.lead())
    if setext is not None:
        level = 1 if _strip_lead(setext).startswith("=") else 2
        attrs = {
            "level": level,
            "style": "setext",
            "text": "\n".join(p.text.strip() for p in para),
            "content_start": start,
            "content_end": para[-1].at(len(para[-1].text.rstrip())),
        }
        out.append(Event("start", "heading", start, setext.end, attrs))
        _scan_inline(para, out)
        out.append(Event("end", "heading", start, setext.end, attrs))
        return j + 1

    out.append(Event("start", "paragraph", start, para[-1].end, {}))
    _scan_inline(para, out)
    out.append(Event("end", "paragraph", start, para[-1].end, {}))
    return j


# ---------------------------------------------------------------------------
# Inline constructs
# ---------------------------------------------------------------------------


def _scan_inline(segments: list[_Line], out: list[Event]) -> None:
    """Append leaf events for code spans, html, links, images and emphasis."""
    if not segments:
        return
    texts = [segment.text for segment in segments]
    joined = "\n".join(texts)
    starts = []
    pos = 0
    for t in texts:
        starts.append(pos)
        pos += len(t) + 1

    def to_offset(k: int) -> int:
        idx = bisect_right(starts, k) - 1
        return segments[idx].at(k - starts[idx])

    masked = joined
    found: list[Event] = []

    def mask(s: int, e: int) -> None:
        nonlocal masked
        masked = masked[:s] + MASK * (e - s) + masked[e:]

    def emit(tag: str, s: int, e: int, attrs: dict[str, Any]) -> None:
        found.append(Event("leaf", tag, to_offset(s), to_offset(e), attrs))

    # Code spans bind tightest
    i = 0
    while True:
        opening = BACKTICKS_RE.search(masked, i)
        if not opening:
            break
        run = opening.group()
        closing = re.compile(r'(?<!`)' + run + r'(?!`)').search(masked, opening.end())
        if not closing:
            i = opening.end()
            continue
        emit("code_span", opening.start(), closing.end(), {
            "text": joined[opening.end():closing.start()],
            "backticks": len(run),
            "content_start": to_offset(opening.end()),
            "content_end": to_offset(closing.start()),
        })
        mask(opening.start(), closing.end())
        i = closing.end()

    for m in ESCAPE_RE.finditer(masked):
        mask(m.start(), m.end())

    for m in AUTOLINK_RE.finditer(masked):
        emit("autolink", m.start(), m.end(), {"url": m.group(1)})
        mask(m.start(), m.end())

    for m in HTML_INLINE_RE.finditer(masked):
        if m.group(2):
            attrs = {"name": m.group(2).lower(), "closing": bool(m.group(1))}
        else:
            attrs = {"name": None, "comment": True, "closing": False}
        attrs["text"] = m.group()
        emit("html_inline", m.start(), m.end(), attrs)
        mask(m.start(), m.end())

    for m in IMAGE_RE.finditer(masked):
        emit("image", m.start(), m.end(), {
            "text": joined[m.start(1):m.end(1)],
            "url": m.group(2),
            "reference": m.group(3),
        })
        mask(m.start(), m.end())

    for m in LINK_RE.finditer(masked):
        emit("link", m.start(), m.end(), {
            "text": joined[m.start(1):m.end(1)],
            "url": m.group(2),
            "reference": m.group(3),
            "text_start": to_offset(m.start(1)),
            "text_end": to_offset(m.end(1)),
        })
        mask(m.start(), m.start(1))
        mask(m.end(1), m.end())

    for tag, patterns in (("strong", STRONG_RES), ("emphasis", EMPHASIS_RES)):
        for pattern in patterns:
            for m in pattern.finditer(masked):
                emit(tag, m.start(), m.end(), {
                    "marker": m.group(1),
                    "text": joined[m.start(2):m.end(2)],
                })
                mask(m.start(), m.start(2))
                mask(m.end(2), m.end())

    found.sort(key=lambda e: (e.start, e.end))
    out.extend(found)
