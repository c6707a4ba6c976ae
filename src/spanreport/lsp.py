"""Conversions between spanreport values and the Language Server Protocol.

LSP positions count columns in UTF-16 code units, so every conversion goes
through the registry's byte offsets rather than code-point columns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from spanreport.diagnostic import Diagnostic, Label, Severity
from spanreport.errors import OutOfBounds, SpanReportError, UnresolvableLabel
from spanreport.source import FileId, SourceRegistry, Span

logger = logging.getLogger(__name__)

# spanreport Severity → LSP DiagnosticSeverity
_SEVERITY_MAP = {
    Severity.BUG: lsp.DiagnosticSeverity.Error,
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
    Severity.HELP: lsp.DiagnosticSeverity.Hint,
}


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def byte_index_to_position(
    registry: SourceRegistry, file_id: FileId, byte_index: int,
) -> lsp.Position:
    """Convert a byte offset into a 0-indexed LSP Position."""
    source = registry.get(file_id)
    location = source.location(byte_index)
    line_start = source.line_starts[location.line]
    prefix = source.data[line_start:byte_index].decode("utf-8")
    return lsp.Position(line=location.line, character=_utf16_len(prefix))


def position_to_byte_index(
    registry: SourceRegistry, file_id: FileId, position: lsp.Position,
) -> int:
    """Convert a 0-indexed LSP Position back into a byte offset."""
    source = registry.get(file_id)
    line = source.line_range(position.line)
    text = source.data[line.start:line.end].decode("utf-8")
    units = 0
    offset = line.start
    for char in text:
        if units >= position.character:
            break
        units += _utf16_len(char)
        offset += len(char.encode("utf-8"))
    if units != position.character:
        raise OutOfBounds(file_id, position.character, _utf16_len(text), unit="character")
    return offset


def span_to_range(registry: SourceRegistry, span: Span) -> lsp.Range:
    return lsp.Range(
        start=byte_index_to_position(registry, span.file_id, span.start),
        end=byte_index_to_position(registry, span.file_id, span.end),
    )


def _label_range(registry: SourceRegistry, label: Label, index: int) -> lsp.Range:
    try:
        return span_to_range(registry, label.span)
    except SpanReportError as err:
        raise UnresolvableLabel(label, index, err) from err


def to_lsp_diagnostic(
    registry: SourceRegistry,
    diagnostic: Diagnostic,
    uri_for: Callable[[FileId], str],
    *,
    source: str | None = "spanreport",
) -> lsp.Diagnostic:
    """Convert a Diagnostic; extra labels become related information."""
    anchor = diagnostic.primary_label
    if anchor is None and diagnostic.labels:
        anchor = diagnostic.labels[0]

    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    related: list[lsp.DiagnosticRelatedInformation] = []
    for index, label in enumerate(diagnostic.labels):
        label_range = _label_range(registry, label, index)
        if label is anchor:
            span_range = label_range
            continue
        related.append(lsp.DiagnosticRelatedInformation(
            location=lsp.Location(uri=uri_for(label.file_id), range=label_range),
            message=label.message or diagnostic.message,
        ))

    message = diagnostic.message
    if anchor is not None and anchor.message:
        message = f"{message}\n{anchor.message}"
    if diagnostic.notes:
        message = "\n".join([message, *diagnostic.notes])

    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP[diagnostic.severity],
        code=diagnostic.code,
        source=source,
        message=message,
        related_information=related or None,
    )


def publish_diagnostics(
    server: LanguageServer,
    registry: SourceRegistry,
    file_id: FileId,
    uri: str,
    diagnostics: Iterable[Diagnostic],
    uri_for: Callable[[FileId], str] | None = None,
) -> list[lsp.Diagnostic]:
    """Publish the diagnostics anchored in ``file_id`` to the client."""
    if uri_for is None:
        def uri_for(other: FileId) -> str:
            return uri if other == file_id else registry.name(other)

    converted = []
    for diag in diagnostics:
        anchor = diag.primary_label or (diag.labels[0] if diag.labels else None)
        if anchor is None or anchor.file_id != file_id:
            continue
        converted.append(to_lsp_diagnostic(registry, diag, uri_for))

    logger.debug("Publishing %d diagnostics for %s", len(converted), uri)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=converted,
    ))
    return converted
