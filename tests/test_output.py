"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response, print_table and print_document in each format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from discoli import output as output_module
from discoli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("discoli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("discoli.output._is_tty", lambda: True)


@pytest.fixture()
def no_color_env(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, no_color_env):
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_with_no_color(self, tty, no_color_env):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty, no_color_env):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_normal_term_keeps_color(self, no_color_env):
        assert not _should_disable_color()


# ------------------------------------------------------------------ #
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_data("hello world")
        captured = capfd.readouterr()
        assert "hello world" in captured.out
        assert captured.err == ""

    def test_info_goes_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("[dry-run] GET https://example.test")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "[dry-run] GET https://example.test" in captured.err

    def test_error_goes_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.error("boom")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Error: boom" in captured.err

    def test_success_goes_to_stderr(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.success("Updated container:v1")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Updated container:v1" in captured.err


class TestQuietVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("info")
        mgr.success("done")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.error("bad")
        mgr.print_data("data")
        captured = capfd.readouterr()
        assert "bad" in captured.err
        assert "data" in captured.out

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("HTTP 200")
        assert "[debug] HTTP 200" in capfd.readouterr().err

    def test_progress_needs_tty(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).progress("Updating")
        assert capfd.readouterr().err == ""


# ------------------------------------------------------------------ #
# Data formats
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_dict_as_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"kind": "bigquery#dataset"})
        assert json.loads(capfd.readouterr().out) == {"kind": "bigquery#dataset"}

    def test_json_string_reparsed(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"a": 1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_text_passthrough_in_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("not json")
        assert capfd.readouterr().out.strip() == "not json"

    def test_plain_dict_as_key_value(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response({"name": "c1", "status": "RUNNING"})
        assert capfd.readouterr().out.splitlines() == ["name\tc1", "status\tRUNNING"]

    def test_plain_list_of_dicts(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.format_response([{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        assert capfd.readouterr().out.splitlines() == ["1\t2", "3\t4"]

    def test_rich_dict_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"a": 1})
        assert '"a"' in capfd.readouterr().out


class TestPrintTable:
    def test_json_records(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["name", "depth"], [["projects", "0"], ["datasets", "1"]]
        )
        assert json.loads(capfd.readouterr().out) == [
            {"name": "projects", "depth": "0"},
            {"name": "datasets", "depth": "1"},
        ]

    def test_plain_tab_separated(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_table(
            ["name", "depth"], [["projects", "0"]]
        )
        assert capfd.readouterr().out.splitlines() == ["name\tdepth", "projects\t0"]

    def test_rich_with_highlight(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["name"], [["clusters"], ["nodePools"]], highlight={1}
        )
        out = capfd.readouterr().out
        assert "clusters" in out
        assert "nodePools" in out


class TestPrintDocument:
    def test_plain_is_verbatim(self, capfd, non_tty):
        text = "service: bigquery\nversion: v2"
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_document(text, "yaml")
        assert capfd.readouterr().out == text + "\n"

    def test_rich_contains_text(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_document(
            "service: bigquery", "yaml"
        )
        assert "bigquery" in capfd.readouterr().out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_creates_default(self, non_tty):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_get(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_module_shortcuts_use_global(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        output_module.print_data("to stdout")
        output_module.error("to stderr")
        captured = capfd.readouterr()
        assert "to stdout" in captured.out
        assert "Error: to stderr" in captured.err
