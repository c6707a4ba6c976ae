"""Build a registry and diagnostics from a JSON report.

A report looks like::

    {
      "files": [{"name": "main.src", "path": "main.src"}],
      "diagnostics": [
        {
          "severity": "error",
          "code": "E0001",
          "message": "unexpected token",
          "labels": [{"file": "main.src", "start": 4, "end": 7,
                      "style": "primary", "message": "here"}],
          "notes": ["expected an expression"]
        }
      ]
    }

A file entry carries either inline ``source`` or a ``path`` relative to the
report's directory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from spanreport.diagnostic import Diagnostic, Label, LabelStyle, Severity
from spanreport.errors import InvalidSource, ReportFormatError
from spanreport.source import FileId, SourceRegistry, Span

logger = logging.getLogger(__name__)


@dataclass
class Report:
    registry: SourceRegistry
    diagnostics: list[Diagnostic] = field(default_factory=list)
    file_ids: dict[str, FileId] = field(default_factory=dict)


def _require(entry: dict[str, Any], key: str, kind: type, where: str) -> Any:
    value = entry.get(key)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ReportFormatError(f"{where}: '{key}' must be a {kind.__name__}")
    return value


def _require_list(entry: dict[str, Any], key: str, where: str) -> list[Any]:
    value = entry.get(key, [])
    if not isinstance(value, list):
        raise ReportFormatError(f"{where}: '{key}' must be a list")
    return value


def _load_file(entry: Any, base_dir: Path, where: str) -> tuple[str, str]:
    if not isinstance(entry, dict):
        raise ReportFormatError(f"{where}: expected an object")
    name = _require(entry, "name", str, where)
    if "source" in entry:
        return name, _require(entry, "source", str, where)
    path = base_dir / _require(entry, "path", str, where)
    try:
        return name, path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReportFormatError(f"{where}: cannot read {path}: {e}") from e


def _load_label(entry: Any, file_ids: dict[str, FileId], where: str) -> Label:
    if not isinstance(entry, dict):
        raise ReportFormatError(f"{where}: expected an object")
    file_name = _require(entry, "file", str, where)
    if file_name not in file_ids:
        raise ReportFormatError(f"{where}: unknown file {file_name!r}")
    start = _require(entry, "start", int, where)
    end = _require(entry, "end", int, where)
    try:
        style = LabelStyle(entry.get("style", "primary"))
        span = Span(file_ids[file_name], start, end)
    except ValueError as e:
        raise ReportFormatError(f"{where}: {e}") from e
    message = entry.get("message", "")
    if not isinstance(message, str):
        raise ReportFormatError(f"{where}: 'message' must be a str")
    return Label(span, message, style)


def _load_diagnostic(entry: Any, file_ids: dict[str, FileId], where: str) -> Diagnostic:
    if not isinstance(entry, dict):
        raise ReportFormatError(f"{where}: expected an object")
    severity_name = _require(entry, "severity", str, where)
    try:
        severity = Severity[severity_name.upper()]
    except KeyError:
        raise ReportFormatError(f"{where}: unknown severity {severity_name!r}") from None
    labels = [
        _load_label(label, file_ids, f"{where}.labels[{i}]")
        for i, label in enumerate(_require_list(entry, "labels", where))
    ]
    notes = _require_list(entry, "notes", where)
    if not all(isinstance(note, str) for note in notes):
        raise ReportFormatError(f"{where}: notes must be strings")
    code = entry.get("code")
    if code is not None and not isinstance(code, str):
        raise ReportFormatError(f"{where}: 'code' must be a str")
    return Diagnostic(
        severity, _require(entry, "message", str, where), labels, list(notes), code,
    )


def load_report(data: Any, base_dir: Path | None = None) -> Report:
    """Build a Report from parsed JSON data."""
    if not isinstance(data, dict):
        raise ReportFormatError("report must be a JSON object")
    base_dir = base_dir or Path.cwd()
    report = Report(SourceRegistry())

    for i, entry in enumerate(_require_list(data, "files", "report")):
        name, text = _load_file(entry, base_dir, f"files[{i}]")
        if name in report.file_ids:
            raise ReportFormatError(f"files[{i}]: duplicate file name {name!r}")
        try:
            report.file_ids[name] = report.registry.add_file(name, text)
        except InvalidSource as e:
            raise ReportFormatError(f"files[{i}]: {e}") from e

    for i, entry in enumerate(_require_list(data, "diagnostics", "report")):
        report.diagnostics.append(
            _load_diagnostic(entry, report.file_ids, f"diagnostics[{i}]")
        )

    logger.debug(
        "Loaded report with %d files and %d diagnostics",
        len(report.file_ids), len(report.diagnostics),
    )
    return report


def load_report_file(path: Path) -> Report:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ReportFormatError(f"{path}: invalid JSON: {e}") from e
    return load_report(data, path.parent)
