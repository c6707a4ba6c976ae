"""Styled text lines produced by the renderer."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from spanreport.diagnostic import Severity


class Style(Enum):
    """Abstract style tags. Mapping them to colours is up to the caller."""

    PLAIN = "plain"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    BUG = "bug"
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"
    HEADER_MESSAGE = "header_message"
    LINE_NUMBER = "line_number"
    SOURCE_BORDER = "source_border"
    NOTE_BULLET = "note_bullet"

    @classmethod
    def for_severity(cls, severity: Severity) -> Style:
        return cls[severity.name]


@dataclass(frozen=True)
class StyleRange:
    """Character range [start, end) of a line carrying one style."""

    start: int
    end: int
    style: Style


@dataclass(frozen=True)
class StyledLine:
    text: str
    ranges: tuple[StyleRange, ...] = ()

    def __str__(self) -> str:
        return self.text

    def styled(self) -> Iterator[tuple[str, Style]]:
        """Yield (chunk, style) pairs covering the whole line in order."""
        pos = 0
        for rng in self.ranges:
            if rng.start > pos:
                yield self.text[pos:rng.start], Style.PLAIN
            yield self.text[rng.start:rng.end], rng.style
            pos = rng.end
        if pos < len(self.text):
            yield self.text[pos:], Style.PLAIN


@dataclass
class RenderedOutput:
    lines: list[StyledLine] = field(default_factory=list)

    def __iter__(self) -> Iterator[StyledLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> StyledLine:
        return self.lines[index]

    def __str__(self) -> str:
        return self.text()

    def extend(self, lines: Iterable[StyledLine]) -> None:
        self.lines.extend(lines)

    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


class LineBuilder:
    """Accumulates styled chunks into a single StyledLine."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._ranges: list[StyleRange] = []
        self._length = 0

    def push(self, text: str, style: Style = Style.PLAIN) -> LineBuilder:
        if not text:
            return self
        if style is not Style.PLAIN:
            last = self._ranges[-1] if self._ranges else None
            if last is not None and last.style is style and last.end == self._length:
                self._ranges[-1] = StyleRange(last.start, self._length + len(text), style)
            else:
                self._ranges.append(StyleRange(self._length, self._length + len(text), style))
        self._parts.append(text)
        self._length += len(text)
        return self

    def build(self, trim: bool = True) -> StyledLine:
        """Finish the line, dropping trailing blanks unless ``trim`` is false."""
        text = "".join(self._parts)
        if trim:
            text = text.rstrip(" ")
        ranges = []
        for rng in self._ranges:
            end = min(rng.end, len(text))
            if end > rng.start:
                ranges.append(StyleRange(rng.start, end, rng.style))
        return StyledLine(text, tuple(ranges))
