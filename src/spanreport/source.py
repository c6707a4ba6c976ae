"""Source file registry and span tracking for diagnostics.

Offsets are UTF-8 byte offsets into the registered text. Lines end at ``\\n``,
``\\r\\n`` or a lone ``\\r``; line and column indices are 0-based.
"""

from __future__ import annotations

import itertools
import logging
import re
import threading
import unicodedata
from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass
from functools import total_ordering
from typing import NewType

from spanreport.errors import (
    InvalidOffset,
    InvalidSource,
    LineOutOfBounds,
    OutOfBounds,
    UnknownFile,
)

logger = logging.getLogger(__name__)

FileId = NewType("FileId", int)

_TERMINATOR = re.compile(rb"\r\n|\r|\n")


def _encode(text: str, name: str | None = None) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidSource(name, e) from e


def line_starts(text: str) -> list[int]:
    """Byte offsets at which each line of ``text`` begins."""
    data = _encode(text)
    return [0, *(match.end() for match in _TERMINATOR.finditer(data))]


def char_width(char: str, tab_width: int = 4) -> int:
    """Number of terminal columns a single character occupies."""
    if char == "\t":
        return tab_width
    if unicodedata.combining(char) or unicodedata.category(char) in ("Mn", "Me", "Cf"):
        return 0
    if unicodedata.east_asian_width(char) in ("W", "F"):
        return 2
    return 1


def display_width(text: str, tab_width: int = 4) -> int:
    return sum(char_width(char, tab_width) for char in text)


@dataclass(frozen=True, order=True)
class Location:
    """A resolved 0-based line and column (in code points)."""

    line: int
    column: int

    @property
    def line_number(self) -> int:
        return self.line + 1

    @property
    def column_number(self) -> int:
        return self.column + 1

    def __str__(self) -> str:
        return f"{self.line_number}:{self.column_number}"


@total_ordering
@dataclass(frozen=True)
class Span:
    """Half-open byte range [start, end) in a single file.

    Spans order by (start, end) and only against spans of the same file.
    """

    file_id: FileId
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Span) or other.file_id != self.file_id:
            return NotImplemented
        return (self.start, self.end) < (other.start, other.end)

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}) in file {self.file_id}"

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, other: Span | int) -> bool:
        """True if ``other`` (a span or a byte offset) lies inside this span."""
        if isinstance(other, Span):
            return (
                other.file_id == self.file_id
                and self.start <= other.start
                and other.end <= self.end
            )
        return self.start <= other < self.end

    def intersects(self, other: Span) -> bool:
        """True if both spans share at least one byte. Empty spans share none."""
        return (
            other.file_id == self.file_id
            and self.start < other.end
            and other.start < self.end
        )

    def intersection(self, other: Span) -> Span | None:
        if not self.intersects(other):
            return None
        return Span(self.file_id, max(self.start, other.start), min(self.end, other.end))

    def merge(self, other: Span) -> Span:
        """Smallest span covering both. Raises ValueError across files."""
        if other.file_id != self.file_id:
            raise ValueError("cannot merge spans from different files")
        return Span(self.file_id, min(self.start, other.start), max(self.end, other.end))


def make_span(file_id: FileId, start: int, end: int) -> Span:
    return Span(file_id, start, end)


class SourceFile:
    """A registered source text with its line tables."""

    def __init__(self, file_id: FileId, name: str, text: str) -> None:
        self.file_id = file_id
        self.name = name
        self.text = text
        self.data = _encode(text, name)
        self.line_starts: list[int] = [0]
        self.line_ends: list[int] = []
        for match in _TERMINATOR.finditer(self.data):
            self.line_ends.append(match.start())
            self.line_starts.append(match.end())
        self.line_ends.append(len(self.data))

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"SourceFile({self.file_id}, {self.name!r}, {len(self.data)} bytes)"

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def _check_offset(self, offset: int) -> None:
        if not 0 <= offset <= len(self.data):
            raise OutOfBounds(self.file_id, offset, len(self.data))

    def _check_boundary(self, offset: int) -> None:
        # UTF-8 continuation bytes look like 0b10xxxxxx
        if offset < len(self.data) and self.data[offset] & 0xC0 == 0x80:
            raise InvalidOffset(self.file_id, offset)

    def _check_line(self, line_index: int) -> None:
        if not 0 <= line_index < self.line_count:
            raise LineOutOfBounds(self.file_id, line_index, self.line_count)

    def line_index(self, offset: int) -> int:
        self._check_offset(offset)
        return bisect_right(self.line_starts, offset) - 1

    def location(self, offset: int) -> Location:
        line = self.line_index(offset)
        self._check_boundary(offset)
        column = len(self.data[self.line_starts[line]:offset].decode("utf-8"))
        return Location(line, column)

    def offset(self, location: Location) -> int:
        """Byte offset of a location; the inverse of ``location``."""
        self._check_line(location.line)
        start = self.line_starts[location.line]
        stop = self.line_range(location.line).end
        chars = self.data[start:stop].decode("utf-8")
        if not 0 <= location.column <= len(chars):
            raise OutOfBounds(self.file_id, location.column, len(chars), unit="column")
        return start + len(chars[:location.column].encode("utf-8"))

    def line_span(self, line_index: int) -> Span:
        """Byte range of a line, terminator excluded."""
        self._check_line(line_index)
        return Span(self.file_id, self.line_starts[line_index], self.line_ends[line_index])

    def line_range(self, line_index: int) -> Span:
        """Byte range of a line, terminator included."""
        self._check_line(line_index)
        if line_index + 1 < self.line_count:
            end = self.line_starts[line_index + 1]
        else:
            end = len(self.data)
        return Span(self.file_id, self.line_starts[line_index], end)

    def line_text(self, line_index: int) -> str:
        span = self.line_span(line_index)
        return self.data[span.start:span.end].decode("utf-8")

    def slice(self, span: Span) -> str:
        if span.end > len(self.data):
            raise OutOfBounds(self.file_id, span.end, len(self.data))
        self._check_boundary(span.start)
        self._check_boundary(span.end)
        return self.data[span.start:span.end].decode("utf-8")

    def display_column(self, offset: int, tab_width: int = 4) -> int:
        """Terminal column of an offset within its line.

        An offset inside or after the line terminator sits one column past
        the line's last character.
        """
        line = self.line_index(offset)
        self._check_boundary(offset)
        start, end = self.line_starts[line], self.line_ends[line]
        if offset > end:
            return display_width(self.data[start:end].decode("utf-8"), tab_width) + 1
        return display_width(self.data[start:offset].decode("utf-8"), tab_width)


class SourceRegistry:
    """A set of named source files addressed by FileId.

    ``add_file`` and ``remove_file`` are serialized by a lock; lookups take
    no lock and are safe once a file has been registered.
    """

    def __init__(self) -> None:
        self._files: dict[FileId, SourceFile] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[FileId]:
        return iter(list(self._files))

    def add_file(self, name: str, text: str) -> FileId:
        """Register a source text and return its handle.

        Raises InvalidSource if the text cannot be encoded as UTF-8.
        """
        with self._lock:
            file_id = FileId(next(self._ids))
            source = SourceFile(file_id, name, text)
            self._files[file_id] = source
        logger.debug(
            "Registered file %d: %s (%d bytes, %d lines)",
            file_id, name, len(source), source.line_count,
        )
        return file_id

    register_file = add_file

    def remove_file(self, file_id: FileId) -> None:
        with self._lock:
            if self._files.pop(file_id, None) is None:
                raise UnknownFile(file_id)
        logger.debug("Removed file %d", file_id)

    def get(self, file_id: FileId) -> SourceFile:
        try:
            return self._files[file_id]
        except KeyError:
            raise UnknownFile(file_id) from None

    def name(self, file_id: FileId) -> str:
        return self.get(file_id).name

    def source(self, file_id: FileId) -> str:
        return self.get(file_id).text

    def line_count(self, file_id: FileId) -> int:
        return self.get(file_id).line_count

    def line_index(self, file_id: FileId, byte_offset: int) -> int:
        return self.get(file_id).line_index(byte_offset)

    def location(self, file_id: FileId, byte_offset: int) -> Location:
        return self.get(file_id).location(byte_offset)

    def offset(self, file_id: FileId, location: Location) -> int:
        return self.get(file_id).offset(location)

    def line_span(self, file_id: FileId, line_index: int) -> Span:
        return self.get(file_id).line_span(line_index)

    def line_range(self, file_id: FileId, line_index: int) -> Span:
        return self.get(file_id).line_range(line_index)

    def source_slice(self, span: Span) -> str:
        return self.get(span.file_id).slice(span)
