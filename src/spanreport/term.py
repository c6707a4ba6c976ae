"""Map abstract output styles onto ANSI escape sequences."""

from __future__ import annotations

from collections.abc import Mapping

from spanreport.output import RenderedOutput, Style, StyledLine

# ANSI color codes
_RESET = "\033[0m"
DEFAULT_THEME: dict[Style, str] = {
    Style.BUG: "\033[1;31m",             # bold red
    Style.ERROR: "\033[1;31m",           # bold red
    Style.WARNING: "\033[1;33m",         # bold yellow
    Style.NOTE: "\033[1;36m",            # bold cyan
    Style.HELP: "\033[1;32m",            # bold green
    Style.HEADER_MESSAGE: "\033[1m",     # bold
    Style.PRIMARY: "\033[1;31m",
    Style.SECONDARY: "\033[1;34m",       # bold blue
    Style.LINE_NUMBER: "\033[1;34m",
    Style.SOURCE_BORDER: "\033[1;34m",
    Style.NOTE_BULLET: "\033[1;34m",
}


def style_line(
    line: StyledLine, *, color: bool = True, theme: Mapping[Style, str] | None = None,
) -> str:
    if not color:
        return line.text
    theme = DEFAULT_THEME if theme is None else theme
    parts = []
    for chunk, style in line.styled():
        code = theme.get(style, "")
        parts.append(f"{code}{chunk}{_RESET}" if code else chunk)
    return "".join(parts)


def to_ansi(
    output: RenderedOutput, *, color: bool = True, theme: Mapping[Style, str] | None = None,
) -> str:
    """Join the rendered lines, wrapping styled ranges in escape codes."""
    return "\n".join(style_line(line, color=color, theme=theme) for line in output)
