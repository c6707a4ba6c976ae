"""spanreport command line interface."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import click

from spanreport import __version__
from spanreport.config import ReportConfig, find_config, load_config
from spanreport.diagnostic import Severity
from spanreport.errors import SpanReportError
from spanreport.loader import load_report_file
from spanreport.render import DiagnosticRenderer, DisplayStyle
from spanreport.source import SourceRegistry
from spanreport.term import to_ansi


def _load_settings(report_path: Path, config_path: str | None) -> ReportConfig:
    if config_path is not None:
        return load_config(Path(config_path))
    try:
        return load_config(find_config(report_path))
    except FileNotFoundError:
        return ReportConfig()


@click.group()
@click.version_option(__version__, prog_name="spanreport")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool) -> None:
    """Render compiler-style diagnostics over source files."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@main.command()
@click.argument("report", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_path", type=click.Path(exists=True), default=None,
              help="Path to spanreport.toml.")
@click.option("--style", type=click.Choice([s.value for s in DisplayStyle]), default=None,
              help="Override the display style.")
@click.option("--tab-width", type=click.IntRange(min=0), default=None,
              help="Override the tab width.")
@click.option("--color/--no-color", default=None, help="Force colored output on or off.")
def render(
    report: str,
    config_path: str | None,
    style: str | None,
    tab_width: int | None,
    color: bool | None,
) -> None:
    """Render the diagnostics of a JSON report."""
    report_path = Path(report)
    try:
        settings = _load_settings(report_path, config_path)
        loaded = load_report_file(report_path)
    except SpanReportError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)

    render_config = settings.render
    if style is not None:
        render_config = dataclasses.replace(render_config, display_style=DisplayStyle(style))
    if tab_width is not None:
        render_config = dataclasses.replace(render_config, tab_width=tab_width)
    use_color = settings.output.color if color is None else color

    renderer = DiagnosticRenderer(loaded.registry, render_config)
    had_errors = False
    printed = 0
    for i, diag in enumerate(loaded.diagnostics):
        try:
            output = renderer.render(diag)
        except SpanReportError as e:
            click.echo(f"error: cannot render diagnostic {i}: {e}", err=True)
            had_errors = True
            continue
        if printed and render_config.display_style is DisplayStyle.RICH:
            click.echo("")
        click.echo(to_ansi(output, color=use_color), color=color)
        printed += 1
        if diag.severity >= Severity.ERROR:
            had_errors = True

    if had_errors:
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("offset", type=click.IntRange(min=0))
def locate(file: str, offset: int) -> None:
    """Print the line and column of a byte OFFSET in FILE."""
    try:
        text = Path(file).read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        click.echo(f"error: {file} is not valid UTF-8: {e}", err=True)
        raise SystemExit(1)
    registry = SourceRegistry()
    file_id = registry.add_file(file, text)
    try:
        location = registry.location(file_id, offset)
    except SpanReportError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"{file}:{location}")
