"""Read-only document model handed to every rule.

A Document owns the raw text, its Position Index, the front matter range and
the structured event stream produced by a parser. Rules never see anything
else, so all of them get the same view of a file.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Iterable, Iterator, Literal, Mapping, Sequence

from .errors import LineNotFoundError, PositionError
from .position import PositionIndex

EventKind = Literal["start", "end", "leaf"]

# Container constructs come as start/end pairs, everything else as leaves.
CONTAINER_TAGS = frozenset({
    "heading", "paragraph", "blockquote", "list", "list_item",
    "table", "table_row",
})


@dataclass(frozen=True)
class Event:
    """One structural marker with its half-open byte range."""
    kind: EventKind
    tag: str
    start: int
    end: int
    attrs: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attrs.get(key, default)


_FRONT_MATTER_FENCES = ("---", "+++")


def detect_front_matter(text: str, pattern: str | None = None) -> tuple[int, int] | None:
    """
    Locate a front matter block at the very start of ``text``.

    By default a YAML (``---``) or TOML (``+++``) block is recognised when
    the first line is the fence and a later line repeats it. A ``pattern``
    regex replaces that detection; an empty pattern disables it.

    Returns:
        ``(0, end)`` byte range including the closing line's terminator,
        or None.
    """
    if pattern is not None:
        if not pattern:
            return None
        match = re.match(pattern, text)
        if not match or match.end() == 0:
            return None
        return 0, len(text[:match.end()].encode("utf-8"))

    lines = text.split("\n")
    fence = lines[0].rstrip("\r")
    if fence not in _FRONT_MATTER_FENCES:
        return None

    consumed = len(lines[0]) + 1
    for line in lines[1:]:
        consumed += len(line) + 1
        if line.rstrip("\r") == fence:
            end = min(consumed, len(text))
            return 0, len(text[:end].encode("utf-8"))

    return None


class Document:
    """Immutable view of one markdown file for the duration of a lint pass."""

    def __init__(
        self,
        text: str,
        events: Sequence[Event],
        front_matter: tuple[int, int] | None = None,
        index: PositionIndex | None = None,
    ):
        self._text = text
        self._index = index or PositionIndex.build(text)
        self._events = tuple(events)
        self._front_matter = front_matter

        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        self._lines = tuple(line[:-1] if line.endswith("\r") else line for line in lines)

    @classmethod
    def from_text(
        cls,
        text: str,
        front_matter: str | None = None,
        events: Iterable[Event] | None = None,
    ) -> Document:
        """
        Build a Document, parsing ``text`` unless ``events`` are supplied.

        Args:
            text: Raw markdown
            front_matter: Optional regex replacing default front matter detection
            events: Pre-parsed event stream from an external parser
        """
        index = PositionIndex.build(text)
        fm_range = detect_front_matter(text, front_matter)

        if events is None:
            from .parser import parse

            first_line = 1
            if fm_range is not None:
                first_line = index.offset_to_line(fm_range[1])
                if index.line_starts[first_line - 1] < fm_range[1]:
                    first_line += 1
            events = parse(text, index=index, first_line=first_line)

        return cls(text, list(events), front_matter=fm_range, index=index)

    # -- raw text -----------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def index(self) -> PositionIndex:
        return self._index

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, n: int) -> str:
        """Return line ``n`` (1-based) without its terminator."""
        if not 1 <= n <= len(self._lines):
            raise LineNotFoundError(f"Line {n} not in document of {len(self._lines)} lines")
        return self._lines[n - 1]

    def lines(self) -> Iterator[tuple[int, str]]:
        """Yield ``(line_number, text)`` pairs; each call starts afresh."""
        return iter(enumerate(self._lines, 1))

    def line_offset(self, n: int) -> int:
        """Byte offset where line ``n`` starts."""
        return self._index.line_bounds(n)[0]

    def slice(self, start: int, end: int) -> str:
        """Decode the text between two byte offsets."""
        if not 0 <= start <= end <= self._index.size:
            raise PositionError(f"Range {start}..{end} outside text of {self._index.size} bytes")
        return self._index.data[start:end].decode("utf-8")

    def position(self, offset: int) -> tuple[int, int]:
        return self._index.offset_to_position(offset)

    def line_of(self, offset: int) -> int:
        return self._index.offset_to_line(offset)

    def offset(self, line: int, column: int) -> int:
        return self._index.position_to_offset(line, column)

    # -- events -------------------------------------------------------------

    def events(self) -> tuple[Event, ...]:
        """The parser's event stream, unmodified."""
        return self._events

    def iter_events(self, *tags: str, kind: EventKind | None = None) -> Iterator[Event]:
        """Events filtered by tag and, optionally, kind."""
        for event in self._events:
            if tags and event.tag not in tags:
                continue
            if kind is not None and event.kind != kind:
                continue
            yield event

    @cached_property
    def code_lines(self) -> frozenset[int]:
        """Line numbers covered by fenced or indented code blocks."""
        covered: set[int] = set()
        for event in self.iter_events("code_block"):
            first = self.line_of(event.start)
            last = self.line_of(max(event.start, event.end - 1))
            covered.update(range(first, last + 1))
        return frozenset(covered)

    # -- front matter -------------------------------------------------------

    @property
    def front_matter(self) -> tuple[int, int] | None:
        return self._front_matter

    def is_in_front_matter(self, offset: int) -> bool:
        if self._front_matter is None:
            return False
        start, end = self._front_matter
        return start <= offset < end

    def is_line_in_front_matter(self, n: int) -> bool:
        if self._front_matter is None:
            return False
        return self.line_offset(n) < self._front_matter[1]

    @cached_property
    def front_matter_text(self) -> str:
        if self._front_matter is None:
            return ""
        return self.slice(*self._front_matter)
