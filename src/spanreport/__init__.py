"""spanreport: source locations and compiler-style diagnostic rendering."""

__version__ = "0.1.0"

from spanreport.diagnostic import Diagnostic, Label, LabelStyle, Severity, make_diagnostic
from spanreport.errors import (
    ConfigError,
    InvalidOffset,
    InvalidSource,
    LineOutOfBounds,
    OutOfBounds,
    ReportFormatError,
    SpanReportError,
    UnknownFile,
    UnresolvableLabel,
)
from spanreport.output import RenderedOutput, Style, StyledLine, StyleRange
from spanreport.render import (
    Chars,
    Config,
    DiagnosticRenderer,
    DisplayStyle,
    render,
    render_diagnostic,
)
from spanreport.source import (
    FileId,
    Location,
    SourceFile,
    SourceRegistry,
    Span,
    line_starts,
    make_span,
)

__all__ = [
    "Chars",
    "Config",
    "ConfigError",
    "Diagnostic",
    "DiagnosticRenderer",
    "DisplayStyle",
    "FileId",
    "InvalidOffset",
    "InvalidSource",
    "Label",
    "LabelStyle",
    "LineOutOfBounds",
    "Location",
    "OutOfBounds",
    "RenderedOutput",
    "ReportFormatError",
    "Severity",
    "SourceFile",
    "SourceRegistry",
    "Span",
    "SpanReportError",
    "Style",
    "StyleRange",
    "StyledLine",
    "UnknownFile",
    "UnresolvableLabel",
    "line_starts",
    "make_diagnostic",
    "make_span",
    "render",
    "render_diagnostic",
]
