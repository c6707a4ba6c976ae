"""Tests for the spanreport CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from spanreport.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def report(tmp_path):
    """A report with one error and one warning over a small file."""
    (tmp_path / "main.src").write_text("let x = y;\n")
    path = tmp_path / "report.json"
    path.write_text(json.dumps({
        "files": [{"name": "main.src", "path": "main.src"}],
        "diagnostics": [
            {
                "severity": "error",
                "code": "E0425",
                "message": "cannot find value `y`",
                "labels": [{"file": "main.src", "start": 8, "end": 9,
                            "message": "not found in this scope"}],
            },
            {
                "severity": "warning",
                "message": "unused variable `x`",
                "labels": [{"file": "main.src", "start": 4, "end": 5}],
                "notes": ["prefix it with an underscore"],
            },
        ],
    }))
    return path


def write_report(tmp_path, diagnostics):
    path = tmp_path / "only.json"
    path.write_text(json.dumps({
        "files": [{"name": "a", "source": "abc"}],
        "diagnostics": diagnostics,
    }))
    return str(path)


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "render" in result.output
        assert "locate" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_render_rich(self, runner, report):
        result = runner.invoke(main, ["render", str(report), "--no-color"])
        assert result.exit_code == 1
        assert result.output.splitlines() == [
            "error[E0425]: cannot find value `y`",
            "  ┌─ main.src:1:9",
            "  │",
            "1 │ let x = y;",
            "  │         ^ not found in this scope",
            "  │",
            "",
            "warning: unused variable `x`",
            "  ┌─ main.src:1:5",
            "  │",
            "1 │ let x = y;",
            "  │     ^",
            "  │",
            "  = prefix it with an underscore",
        ]

    def test_render_short(self, runner, report):
        result = runner.invoke(main, ["render", str(report), "--style", "short", "--no-color"])
        assert result.output.splitlines() == [
            "main.src:1:9: error[E0425]: cannot find value `y`",
            "main.src:1:5: warning: unused variable `x`",
        ]

    def test_warnings_only_exit_zero(self, runner, tmp_path):
        path = write_report(tmp_path, [{"severity": "warning", "message": "w"}])
        result = runner.invoke(main, ["render", path])
        assert result.exit_code == 0
        assert result.output == "warning: w\n"

    def test_config_file_applies(self, runner, report, tmp_path):
        (tmp_path / "spanreport.toml").write_text(
            '[render]\ndisplay_style = "short"\n[output]\ncolor = false\n'
        )
        result = runner.invoke(main, ["render", str(report)])
        assert result.output.splitlines()[0] == (
            "main.src:1:9: error[E0425]: cannot find value `y`"
        )

    def test_unresolvable_label_reported(self, runner, tmp_path):
        path = write_report(tmp_path, [
            {"severity": "note", "message": "bad",
             "labels": [{"file": "a", "start": 0, "end": 10}]},
            {"severity": "note", "message": "fine"},
        ])
        result = runner.invoke(main, ["render", path])
        assert result.exit_code == 1
        assert "cannot render diagnostic 0" in result.output
        assert "note: fine" in result.output

    def test_malformed_report(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"diagnostics": [{"severity": "fatal", "message": "m"}]}')
        result = runner.invoke(main, ["render", str(path)])
        assert result.exit_code == 1
        assert "unknown severity" in result.output

    def test_locate(self, runner, tmp_path):
        source = tmp_path / "main.src"
        source.write_text("a\nbb\nccc\n")
        result = runner.invoke(main, ["locate", str(source), "3"])
        assert result.exit_code == 0
        assert result.output == f"{source}:2:2\n"

    def test_locate_out_of_bounds(self, runner, tmp_path):
        source = tmp_path / "main.src"
        source.write_text("a\nbb\nccc\n")
        result = runner.invoke(main, ["locate", str(source), "9999"])
        assert result.exit_code == 1
        assert "out of bounds" in result.output
