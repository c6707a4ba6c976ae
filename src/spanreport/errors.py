"""Exception types raised by the registry, the renderer and the outer shell."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spanreport.diagnostic import Label


class SpanReportError(Exception):
    """Base class for every error raised by spanreport."""


class UnknownFile(SpanReportError):
    """A FileId that is not (or no longer) registered."""

    def __init__(self, file_id: int) -> None:
        self.file_id = file_id
        super().__init__(f"unknown file id {file_id}")


class OutOfBounds(SpanReportError):
    """A byte offset or span extends past the end of its file."""

    def __init__(
        self, file_id: int, offset: int, length: int, *, unit: str = "offset",
    ) -> None:
        self.file_id = file_id
        self.offset = offset
        self.length = length
        super().__init__(
            f"{unit} {offset} is out of bounds for file {file_id} "
            f"(limit {length})"
        )


class LineOutOfBounds(OutOfBounds):
    """A line index at or past the file's line count."""

    def __init__(self, file_id: int, line_index: int, line_count: int) -> None:
        super().__init__(file_id, line_index, line_count, unit="line")
        self.line_index = line_index
        self.line_count = line_count


class InvalidSource(SpanReportError):
    """Source text that cannot be encoded as UTF-8, such as a lone surrogate."""

    def __init__(self, name: str | None, reason: UnicodeEncodeError) -> None:
        self.name = name
        self.reason = reason
        where = f"source {name!r}" if name is not None else "source text"
        super().__init__(
            f"{where} is not valid UTF-8 at character {reason.start}: {reason.reason}"
        )


class InvalidOffset(SpanReportError):
    """A byte offset that falls inside a multi-byte UTF-8 sequence."""

    def __init__(self, file_id: int, offset: int) -> None:
        self.file_id = file_id
        self.offset = offset
        super().__init__(
            f"offset {offset} in file {file_id} is not on a character boundary"
        )


class UnresolvableLabel(SpanReportError):
    """A diagnostic label whose span cannot be resolved against the registry.

    The underlying registry error is chained as ``__cause__``.
    """

    def __init__(self, label: Label, index: int, reason: SpanReportError) -> None:
        self.label = label
        self.index = index
        self.reason = reason
        super().__init__(f"label {index} ({label.span}) cannot be resolved: {reason}")


class ConfigError(SpanReportError):
    """A spanreport.toml file with a missing or malformed setting."""


class ReportFormatError(SpanReportError):
    """A JSON report that does not match the expected layout."""
