"""Byte offset <-> (line, column) translation over raw document text.

Offsets are UTF-8 byte offsets, the unit parsers report. Lines and columns
are 1-based and columns count characters (Unicode scalar values), which is
what an editor shows a user.
"""
from __future__ import annotations

from bisect import bisect_right

from .errors import PositionError


class PositionIndex:
    """Immutable table of line-start offsets for one text.

    Every ``\\n`` terminates a line, including a final one directly before
    the end of the text, so ``len(data)`` is itself a valid line start. A
    ``\\r`` before the ``\\n`` belongs to the terminator.
    """

    __slots__ = ("_data", "_line_starts")

    def __init__(self, data: bytes, line_starts: tuple[int, ...]):
        self._data = data
        self._line_starts = line_starts

    @classmethod
    def build(cls, text: str) -> PositionIndex:
        """Scan ``text`` once and record where each line begins."""
        data = text.encode("utf-8")
        starts = [0]
        pos = data.find(b"\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = data.find(b"\n", pos + 1)
        return cls(data, tuple(starts))

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def size(self) -> int:
        """Length of the text in bytes."""
        return len(self._data)

    @property
    def line_starts(self) -> tuple[int, ...]:
        return self._line_starts

    @property
    def line_count(self) -> int:
        """Number of recorded line starts (one more than the terminator count)."""
        return len(self._line_starts)

    def _check_offset(self, offset: int) -> None:
        if not 0 <= offset <= len(self._data):
            raise PositionError(
                f"Offset {offset} outside text of {len(self._data)} bytes"
            )

    def offset_to_line(self, offset: int) -> int:
        """Return the 1-based line owning ``offset``."""
        self._check_offset(offset)
        # Greatest line start <= offset
        return bisect_right(self._line_starts, offset)

    def offset_to_position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based ``(line, column)`` of ``offset``."""
        line = self.offset_to_line(offset)
        start = self._line_starts[line - 1]
        try:
            column = len(self._data[start:offset].decode("utf-8")) + 1
        except UnicodeDecodeError as e:
            raise PositionError(
                f"Offset {offset} falls inside a multi-byte character"
            ) from e
        return line, column

    def line_bounds(self, line: int) -> tuple[int, int]:
        """Return ``(start, end)`` offsets of ``line``; ``end`` includes the terminator."""
        if not 1 <= line <= len(self._line_starts):
            raise PositionError(
                f"Line {line} outside 1..{len(self._line_starts)}"
            )
        start = self._line_starts[line - 1]
        if line < len(self._line_starts):
            end = self._line_starts[line]
        else:
            end = len(self._data)
        return start, end

    def position_to_offset(self, line: int, column: int) -> int:
        """Inverse of :meth:`offset_to_position`.

        ``column`` may point one past the last character of the line's
        content, or at its terminator.
        """
        start, end = self.line_bounds(line)
        segment = self._data[start:end].decode("utf-8")
        if column < 1 or column - 1 > len(segment):
            raise PositionError(
                f"Column {column} outside line {line} ({len(segment)} characters)"
            )
        return start + len(segment[:column - 1].encode("utf-8"))
