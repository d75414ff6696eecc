"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- format_response and print_table in JSON and plain modes
- Global instance management and convenience functions
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from secure_session import output as output_module
from secure_session.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("secure_session.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("secure_session.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_forces_plain_on_tty(self, tty, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_wins(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestShouldDisableColor:
    def test_no_color_set(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_regular_terminal(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStreams:
    def test_data_goes_to_stdout(self, capsys):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"a": 1})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"a": 1}
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.info("hello")
        mgr.success("done")
        mgr.warning("careful")
        mgr.error("broken")
        mgr.suggest("try again")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err
        assert "done" in captured.err
        assert "Warning: careful" in captured.err
        assert "Error: broken" in captured.err
        assert "→ try again" in captured.err

    def test_quiet_keeps_warnings_and_errors(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        mgr.suggest("also hidden")
        mgr.warning("shown")
        mgr.error("shown too")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Warning: shown" in err
        assert "Error: shown too" in err

    def test_debug_requires_verbose(self, capsys):
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "[debug] loud" in err

    def test_debug_tag_survives_rich_markup(self, capsys, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        OutputManager(format=OutputFormat.RICH, verbose=True).debug("redirected")
        assert "[debug] redirected" in capsys.readouterr().err


class TestFormatResponse:
    def test_json_string_is_reparsed(self, capsys):
        OutputManager(format=OutputFormat.JSON).format_response('{"x": 2}')
        assert json.loads(capsys.readouterr().out) == {"x": 2}

    def test_json_non_json_string_printed_raw(self, capsys):
        OutputManager(format=OutputFormat.JSON).format_response("not json")
        assert capsys.readouterr().out == "not json\n"

    def test_plain_dict(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).format_response({"user": "alice", "ok": True})
        assert capsys.readouterr().out == "user\talice\nok\tTrue\n"

    def test_plain_list_of_dicts(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).format_response([{"a": 1, "b": 2}, "x"])
        assert capsys.readouterr().out == "1\t2\nx\n"


class TestPrintTable:
    def test_json_records(self, capsys):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Profile", "Default"], [["api", "*"]]
        )
        assert json.loads(capsys.readouterr().out) == [{"Profile": "api", "Default": "*"}]

    def test_plain_rows(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).print_table(["A", "B"], [["1", "2"]])
        assert capsys.readouterr().out == "A\tB\n1\t2\n"


class TestGlobalInstance:
    def test_get_output_is_lazy_singleton(self):
        reset_output()
        first = get_output()
        assert get_output() is first

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.PLAIN)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_module_helpers_delegate(self):
        mock_output = MagicMock()
        set_output(mock_output)
        output_module.info("i")
        output_module.error("e")
        output_module.success("s")
        output_module.warning("w")
        output_module.suggest("g")
        output_module.debug("d")
        output_module.format_response({"k": "v"})
        output_module.print_table(["h"], [["r"]], "T")
        mock_output.info.assert_called_once_with("i")
        mock_output.error.assert_called_once_with("e")
        mock_output.success.assert_called_once_with("s")
        mock_output.warning.assert_called_once_with("w")
        mock_output.suggest.assert_called_once_with("g")
        mock_output.debug.assert_called_once_with("d")
        mock_output.format_response.assert_called_once_with({"k": "v"})
        mock_output.print_table.assert_called_once_with(["h"], [["r"]], "T")
