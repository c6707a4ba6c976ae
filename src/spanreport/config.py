"""TOML config loading for spanreport.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from spanreport.errors import ConfigError
from spanreport.render import Chars, Config, DisplayStyle

CONFIG_NAME = "spanreport.toml"

_CHARS = {
    "box": Chars.box_drawing,
    "ascii": Chars.ascii,
}


@dataclass
class OutputConfig:
    color: bool = True


@dataclass
class ReportConfig:
    render: Config = field(default_factory=Config)
    output: OutputConfig = field(default_factory=OutputConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find spanreport.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def _int(table: dict, key: str, default: int) -> int:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def load_config(path: Path) -> ReportConfig:
    """Parse a spanreport.toml file into a ReportConfig."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    config = ReportConfig()

    if "render" in data:
        rnd = data["render"]
        style = rnd.get("display_style", "rich")
        chars = rnd.get("chars", "box")
        try:
            display_style = DisplayStyle(style)
        except ValueError:
            raise ConfigError(f"unknown display_style {style!r}") from None
        if chars not in _CHARS:
            raise ConfigError(f"unknown chars {chars!r}")
        config.render = Config(
            display_style=display_style,
            tab_width=_int(rnd, "tab_width", 4),
            start_context_lines=_int(rnd, "start_context_lines", 0),
            end_context_lines=_int(rnd, "end_context_lines", 0),
            chars=_CHARS[chars](),
        )

    if "output" in data:
        out = data["output"]
        color = out.get("color", True)
        if not isinstance(color, bool):
            raise ConfigError(f"color must be a boolean, got {color!r}")
        config.output = OutputConfig(color=color)

    return config
