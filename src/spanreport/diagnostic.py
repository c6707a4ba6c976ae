"""Diagnostic, label and severity value types."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum

from spanreport.source import FileId, Span


class Severity(IntEnum):
    """Ordered from least to most severe."""

    HELP = 1
    NOTE = 2
    WARNING = 3
    ERROR = 4
    BUG = 5

    @property
    def keyword(self) -> str:
        return self.name.lower()


class LabelStyle(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Label:
    """Points to a span of source, optionally with a short message."""

    span: Span
    message: str = ""
    style: LabelStyle = LabelStyle.PRIMARY

    @classmethod
    def primary(cls, file_id: FileId, start: int, end: int, message: str = "") -> Label:
        return cls(Span(file_id, start, end), message, LabelStyle.PRIMARY)

    @classmethod
    def secondary(cls, file_id: FileId, start: int, end: int, message: str = "") -> Label:
        return cls(Span(file_id, start, end), message, LabelStyle.SECONDARY)

    @property
    def file_id(self) -> FileId:
        return self.span.file_id

    @property
    def is_primary(self) -> bool:
        return self.style is LabelStyle.PRIMARY

    def with_message(self, message: str) -> Label:
        return replace(self, message=message)


@dataclass
class Diagnostic:
    """A single diagnostic message with labels and trailing notes.

    Diagnostics sort most severe first, then by the position of their first
    primary label, then by message.
    """

    severity: Severity
    message: str
    labels: list[Label] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    code: str | None = None

    @classmethod
    def bug(cls, message: str) -> Diagnostic:
        return cls(Severity.BUG, message)

    @classmethod
    def error(cls, message: str) -> Diagnostic:
        return cls(Severity.ERROR, message)

    @classmethod
    def warning(cls, message: str) -> Diagnostic:
        return cls(Severity.WARNING, message)

    @classmethod
    def note(cls, message: str) -> Diagnostic:
        return cls(Severity.NOTE, message)

    @classmethod
    def help(cls, message: str) -> Diagnostic:
        return cls(Severity.HELP, message)

    def with_code(self, code: str) -> Diagnostic:
        return replace(self, code=code)

    def with_labels(self, labels: Iterable[Label]) -> Diagnostic:
        return replace(self, labels=[*self.labels, *labels])

    def with_notes(self, notes: Iterable[str]) -> Diagnostic:
        return replace(self, notes=[*self.notes, *notes])

    @property
    def primary_labels(self) -> list[Label]:
        return [label for label in self.labels if label.is_primary]

    @property
    def secondary_labels(self) -> list[Label]:
        return [label for label in self.labels if not label.is_primary]

    @property
    def primary_label(self) -> Label | None:
        """The first primary label, in label order."""
        return next((label for label in self.labels if label.is_primary), None)

    def sort_key(self) -> tuple[int, tuple[int, int], str]:
        primary = self.primary_label
        position = (-1, -1) if primary is None else (primary.file_id, primary.span.start)
        return (-self.severity, position, self.message)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Diagnostic):
            return NotImplemented
        return self.sort_key() < other.sort_key()


def make_diagnostic(
    severity: Severity,
    message: str,
    labels: Iterable[Label] = (),
    notes: Iterable[str] = (),
    code: str | None = None,
) -> Diagnostic:
    return Diagnostic(severity, message, list(labels), list(notes), code)
