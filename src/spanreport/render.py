"""Rust-style diagnostic rendering.

A rich diagnostic looks like::

    error[E0308]: mismatched types
      ┌─ main.src:3:13
      │
    3 │     let x = "one" + 1;
      │             ^^^^^ expected number
      │                     - found here
      │
      = note: strings and numbers do not add

Single-line labels each get their own underline row below the source line.
Multi-line labels get a margin lane running from a ``╭`` start marker to a
``╰`` end marker. Lines and columns are 0-based until they are printed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from spanreport.diagnostic import Diagnostic, Label
from spanreport.errors import SpanReportError, UnresolvableLabel
from spanreport.output import LineBuilder, RenderedOutput, Style, StyledLine
from spanreport.source import Location, SourceFile, SourceRegistry, display_width

logger = logging.getLogger(__name__)


class DisplayStyle(Enum):
    RICH = "rich"
    SHORT = "short"


@dataclass(frozen=True)
class Chars:
    """Characters used to draw borders, carets and margin lanes."""

    source_border_top_left: str = "┌"
    source_border_top: str = "─"
    source_border_left: str = "│"
    note_bullet: str = "="
    single_primary_caret: str = "^"
    single_secondary_caret: str = "-"
    multi_primary_caret_start: str = "^"
    multi_primary_caret_end: str = "^"
    multi_secondary_caret_start: str = "'"
    multi_secondary_caret_end: str = "'"
    multi_top_left: str = "╭"
    multi_top: str = "─"
    multi_bottom_left: str = "╰"
    multi_bottom: str = "─"
    multi_left: str = "│"

    @classmethod
    def box_drawing(cls) -> Chars:
        return cls()

    @classmethod
    def ascii(cls) -> Chars:
        return cls(
            source_border_top_left="-",
            source_border_top="-",
            source_border_left="|",
            multi_top_left="/",
            multi_top="-",
            multi_bottom_left="\\",
            multi_bottom="-",
            multi_left="|",
        )


@dataclass(frozen=True)
class Config:
    display_style: DisplayStyle = DisplayStyle.RICH
    tab_width: int = 4
    start_context_lines: int = 0
    end_context_lines: int = 0
    chars: Chars = field(default_factory=Chars)

    def __post_init__(self) -> None:
        for name in ("tab_width", "start_context_lines", "end_context_lines"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


@dataclass
class _Mark:
    """A label resolved to display lines and columns."""

    label: Label
    index: int
    location: Location
    start_line: int
    start_col: int
    end_line: int
    end_col: int  # exclusive
    top_left: bool = False
    lane: int | None = None

    @property
    def is_multiline(self) -> bool:
        return self.start_line != self.end_line

    @property
    def style(self) -> Style:
        return Style.PRIMARY if self.label.is_primary else Style.SECONDARY


@dataclass
class _FileGroup:
    source: SourceFile
    marks: list[_Mark] = field(default_factory=list)
    first_line: int = 0
    last_line: int = 0
    lane_count: int = 0


def _resolve(source: SourceFile, label: Label, index: int, tab_width: int) -> _Mark:
    span = label.span
    location = source.location(span.start)
    start_col = source.display_column(span.start, tab_width)
    end_line = source.line_index(span.end)
    end_col = source.display_column(span.end, tab_width)
    if end_line > location.line and span.end == source.line_starts[end_line]:
        # Ending at column 0 means ending on the previous line's terminator.
        end_line -= 1
        end_col = display_width(source.line_text(end_line), tab_width) + 1
    prefix = source.data[source.line_starts[location.line]:span.start].decode("utf-8")
    return _Mark(
        label, index, location, location.line, start_col, end_line, end_col,
        top_left=not prefix.strip(),
    )


def _assign_lanes(marks: list[_Mark]) -> int:
    """Give each multi-line mark the lowest lane free over all of its lines."""
    busy_until: list[int] = []
    order = sorted(marks, key=lambda m: (m.label.span.start, -m.label.span.end, m.index))
    for mark in order:
        for lane, last in enumerate(busy_until):
            if last < mark.start_line:
                break
        else:
            lane = len(busy_until)
            busy_until.append(0)
        busy_until[lane] = mark.end_line
        mark.lane = lane
    return len(busy_until)


class DiagnosticRenderer:
    """Renders diagnostics against a registry into styled lines."""

    def __init__(self, registry: SourceRegistry, config: Config | None = None) -> None:
        self.registry = registry
        self.config = config or Config()

    @property
    def chars(self) -> Chars:
        return self.config.chars

    def render(self, diagnostic: Diagnostic) -> RenderedOutput:
        """Render one diagnostic. Raises UnresolvableLabel for a bad span."""
        groups = self._group(diagnostic)
        logger.debug(
            "Rendering %s with %d labels in %d files",
            diagnostic.severity.keyword, len(diagnostic.labels), len(groups),
        )
        if self.config.display_style is DisplayStyle.SHORT:
            return self._render_short(diagnostic, groups)
        return self._render_rich(diagnostic, groups)

    def render_all(self, diagnostics: Iterable[Diagnostic]) -> RenderedOutput:
        output = RenderedOutput()
        for i, diagnostic in enumerate(diagnostics):
            block = self.render(diagnostic)
            if i and self.config.display_style is DisplayStyle.RICH:
                output.lines.append(StyledLine(""))
            output.extend(block)
        return output

    # ── Label resolution ──────────────────────────────────────────

    def _group(self, diagnostic: Diagnostic) -> list[_FileGroup]:
        groups: dict[int, _FileGroup] = {}
        for index, label in enumerate(diagnostic.labels):
            try:
                source = self.registry.get(label.file_id)
                mark = _resolve(source, label, index, self.config.tab_width)
            except SpanReportError as err:
                raise UnresolvableLabel(label, index, err) from err
            group = groups.setdefault(label.file_id, _FileGroup(source))
            group.marks.append(mark)

        for group in groups.values():
            first = min(mark.start_line for mark in group.marks)
            last = max(mark.end_line for mark in group.marks)
            group.first_line = max(0, first - self.config.start_context_lines)
            group.last_line = min(
                group.source.line_count - 1, last + self.config.end_context_lines,
            )
            group.lane_count = _assign_lanes(
                [mark for mark in group.marks if mark.is_multiline]
            )
        return list(groups.values())

    # ── Short style ───────────────────────────────────────────────

    def _header(self, diagnostic: Diagnostic, line: LineBuilder) -> LineBuilder:
        keyword = diagnostic.severity.keyword
        if diagnostic.code:
            keyword = f"{keyword}[{diagnostic.code}]"
        line.push(keyword, Style.for_severity(diagnostic.severity))
        line.push(f": {diagnostic.message}", Style.HEADER_MESSAGE)
        return line

    def _render_short(
        self, diagnostic: Diagnostic, groups: list[_FileGroup],
    ) -> RenderedOutput:
        output = RenderedOutput()
        names = {}
        marks = []
        for group in groups:
            names.update((mark.index, group.source.name) for mark in group.marks)
            marks.extend(group.marks)
        for mark in sorted(marks, key=lambda m: m.index):
            if not mark.label.is_primary:
                continue
            line = LineBuilder().push(f"{names[mark.index]}:{mark.location}: ")
            output.lines.append(self._header(diagnostic, line).build())
        if not output.lines:
            output.lines.append(self._header(diagnostic, LineBuilder()).build())
        return output

    # ── Rich style ────────────────────────────────────────────────

    def _render_rich(
        self, diagnostic: Diagnostic, groups: list[_FileGroup],
    ) -> RenderedOutput:
        output = RenderedOutput([self._header(diagnostic, LineBuilder()).build()])
        gutter = max((len(str(group.last_line + 1)) for group in groups), default=0)

        for group in groups:
            output.extend(_Snippet(self.config, group, gutter).rows())

        for note in diagnostic.notes:
            first, *rest = note.splitlines() or [""]
            line = LineBuilder().push(" " * (gutter + 1))
            line.push(self.chars.note_bullet, Style.NOTE_BULLET).push(f" {first}")
            output.lines.append(line.build())
            for extra in rest:
                output.lines.append(
                    LineBuilder().push(" " * (gutter + 3) + extra).build()
                )
        return output


def _border_row(chars: Chars, gutter: int) -> StyledLine:
    line = LineBuilder().push(" " * (gutter + 1))
    return line.push(chars.source_border_left, Style.SOURCE_BORDER).build()


class _Snippet:
    """Lays out the source excerpt of one file group."""

    def __init__(self, config: Config, group: _FileGroup, gutter: int) -> None:
        self.config = config
        self.chars = config.chars
        self.group = group
        self.gutter = gutter
        self.lane_count = group.lane_count
        self.open_lanes: dict[int, _Mark] = {}

    def rows(self) -> list[StyledLine]:
        group = self.group
        locus = min(group.marks, key=lambda m: (m.label.span.start, m.index))
        locator = LineBuilder().push(" " * (self.gutter + 1))
        locator.push(
            self.chars.source_border_top_left + self.chars.source_border_top,
            Style.SOURCE_BORDER,
        )
        locator.push(f" {group.source.name}:{locus.location}")
        rows = [locator.build(), _border_row(self.chars, self.gutter)]

        for line_index in range(group.first_line, group.last_line + 1):
            starting = [
                m for m in group.marks if m.is_multiline and m.start_line == line_index
            ]
            corners = {m.lane: m for m in starting if m.top_left}
            rows.append(self._source_row(line_index, corners))
            self.open_lanes.update(corners)
            singles = sorted(
                (m for m in group.marks
                 if not m.is_multiline and m.start_line == line_index),
                key=lambda m: (m.start_col, 0 if m.label.is_primary else 1, m.index),
            )
            for mark in singles:
                rows.append(self._single_row(mark))
            bottoms = sorted(
                (m for m in group.marks if m.is_multiline and m.end_line == line_index),
                key=lambda m: -m.lane,
            )
            for mark in bottoms:
                rows.append(self._bottom_row(mark))
                del self.open_lanes[mark.lane]
            tops = sorted(
                (m for m in starting if not m.top_left), key=lambda m: m.lane,
            )
            for mark in tops:
                rows.append(self._top_row(mark))
                self.open_lanes[mark.lane] = mark
        rows.append(_border_row(self.chars, self.gutter))
        return rows

    def _border(self, line_number: int | None = None) -> LineBuilder:
        line = LineBuilder()
        if line_number is None:
            line.push(" " * self.gutter)
        else:
            line.push(f"{line_number:>{self.gutter}}", Style.LINE_NUMBER)
        line.push(" ").push(self.chars.source_border_left, Style.SOURCE_BORDER)
        return line.push(" ")

    def _lanes(self, line: LineBuilder, lanes: range) -> None:
        for lane in lanes:
            mark = self.open_lanes.get(lane)
            if mark is None:
                line.push(" ")
            else:
                line.push(self.chars.multi_left, mark.style)

    def _connector(self, line: LineBuilder, mark: _Mark, corner: str, dash: str) -> None:
        """Lane corner plus the horizontal run out to the source columns."""
        self._lanes(line, range(mark.lane))
        line.push(corner, mark.style)
        for lane in range(mark.lane + 1, self.lane_count):
            other = self.open_lanes.get(lane)
            if other is None:
                line.push(dash, mark.style)
            else:
                line.push(self.chars.multi_left, other.style)

    def _source_row(self, line_index: int, corners: dict[int, _Mark]) -> StyledLine:
        """A numbered source line. Marks in ``corners`` open their lane here."""
        line = self._border(line_index + 1)
        if self.lane_count:
            for lane in range(self.lane_count):
                if lane in corners:
                    line.push(self.chars.multi_top_left, corners[lane].style)
                else:
                    self._lanes(line, range(lane, lane + 1))
            line.push(" ")
        text = self.group.source.line_text(line_index)
        line.push(text.replace("\t", " " * self.config.tab_width))
        # Source text stays verbatim, trailing blanks included.
        return line.build(trim=not text)

    def _single_row(self, mark: _Mark) -> StyledLine:
        line = self._border()
        if self.lane_count:
            self._lanes(line, range(self.lane_count))
            line.push(" ")
        if mark.label.is_primary:
            caret = self.chars.single_primary_caret
        else:
            caret = self.chars.single_secondary_caret
        line.push(" " * mark.start_col)
        line.push(caret * max(1, mark.end_col - mark.start_col), mark.style)
        if mark.label.message:
            line.push(" ").push(mark.label.message, mark.style)
        return line.build()

    def _top_row(self, mark: _Mark) -> StyledLine:
        line = self._border()
        self._connector(line, mark, self.chars.multi_top_left, self.chars.multi_top)
        if mark.label.is_primary:
            caret = self.chars.multi_primary_caret_start
        else:
            caret = self.chars.multi_secondary_caret_start
        line.push(self.chars.multi_top * (1 + mark.start_col) + caret, mark.style)
        return line.build()

    def _bottom_row(self, mark: _Mark) -> StyledLine:
        line = self._border()
        self._connector(line, mark, self.chars.multi_bottom_left, self.chars.multi_bottom)
        if mark.label.is_primary:
            caret = self.chars.multi_primary_caret_end
        else:
            caret = self.chars.multi_secondary_caret_end
        run = 1 + max(mark.end_col - 1, 0)
        line.push(self.chars.multi_bottom * run + caret, mark.style)
        if mark.label.message:
            line.push(" ").push(mark.label.message, mark.style)
        return line.build()


def render_diagnostic(
    diagnostic: Diagnostic, registry: SourceRegistry, config: Config | None = None,
) -> RenderedOutput:
    return DiagnosticRenderer(registry, config).render(diagnostic)


def render(
    diagnostics: Iterable[Diagnostic],
    registry: SourceRegistry,
    config: Config | None = None,
) -> RenderedOutput:
    """Render diagnostics in order, rich blocks separated by a blank line.

    Stops at the first diagnostic whose labels do not resolve; use
    ``render_diagnostic`` per item to keep failures independent.
    """
    return DiagnosticRenderer(registry, config).render_all(diagnostics)
