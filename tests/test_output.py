"""Tests for the output and diagnostics layer.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose rules, including debug switched on at runtime
- JSON, plain and rich payload rendering
- print_table in all three modes
- Output file redirection
- Transfer progress display
- Global instance management
"""

from __future__ import annotations

import json

import pytest
from pydantic import BaseModel

from netpipe.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)
from netpipe import output as output_module


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("netpipe.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("netpipe.output._is_tty", lambda: True)


def _plain(**kwargs) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True, **kwargs)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format_is_kept(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON
        assert OutputManager(format=OutputFormat.RICH).format == OutputFormat.RICH


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        _plain().print_data("hello world")
        captured = capfd.readouterr()
        assert "hello world" in captured.out
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(_plain(), method)("diagnostic")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "diagnostic" in captured.err

    def test_debug_goes_to_stderr(self, capfd, non_tty):
        _plain(verbose=True).debug("trace")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "[debug] trace" in captured.err

    def test_payload_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"id": 1})
        captured = capfd.readouterr()
        assert json.loads(captured.out) == {"id": 1}
        assert captured.err == ""


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = _plain(quiet=True)
        mgr.info("info")
        mgr.success("done")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_and_errors(self, capfd, non_tty):
        mgr = _plain(quiet=True)
        mgr.warning("careful")
        mgr.error("broken")
        err = capfd.readouterr().err
        assert "Warning: careful" in err
        assert "Error: broken" in err

    def test_quiet_keeps_payloads(self, capfd, non_tty):
        _plain(quiet=True).print_data("payload")
        assert "payload" in capfd.readouterr().out

    def test_debug_hidden_by_default(self, capfd, non_tty):
        _plain().debug("hidden")
        assert capfd.readouterr().err == ""

    def test_enable_debug_at_runtime(self, capfd, non_tty):
        mgr = _plain()
        mgr.enable_debug()
        mgr.debug("now visible")
        assert mgr.is_verbose
        assert "now visible" in capfd.readouterr().err

    def test_markup_in_messages_is_not_interpreted(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN, verbose=True)
        mgr.error("bad [bold]value[/bold]")
        assert "[bold]value[/bold]" in capfd.readouterr().err


class TestPayloadFormats:
    def test_json_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"name": "张三"})
        out = capfd.readouterr().out
        assert "张三" in out
        assert '  "name"' in out

    def test_json_string_is_reparsed(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response('{"a":1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}

    def test_json_plain_string_passes_through(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response("not json")
        assert capfd.readouterr().out.strip() == "not json"

    def test_pydantic_model_is_dumped(self, capfd, non_tty):
        class User(BaseModel):
            id: int
            name: str

        OutputManager(format=OutputFormat.JSON).format_response(User(id=1, name="a"))
        assert json.loads(capfd.readouterr().out) == {"id": 1, "name": "a"}

    def test_plain_dict_as_key_value(self, capfd, non_tty):
        _plain().format_response({"id": 7, "name": "x"})
        assert capfd.readouterr().out.splitlines() == ["id\t7", "name\tx"]

    def test_plain_list_of_dicts_as_rows(self, capfd, non_tty):
        _plain().format_response([{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        assert capfd.readouterr().out.splitlines() == ["1\t2", "3\t4"]

    def test_plain_scalar(self, capfd, non_tty):
        _plain().format_response(None)
        assert capfd.readouterr().out.strip() == "None"

    def test_rich_dict_produces_output(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"k": "v"})
        out = capfd.readouterr().out
        assert "k" in out
        assert "v" in out


class TestPrintTable:
    def test_table_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["Code", "Message"], [["401", "denied"]]
        )
        assert json.loads(capfd.readouterr().out) == [{"Code": "401", "Message": "denied"}]

    def test_table_plain_mode(self, capfd, non_tty):
        _plain().print_table(["Code", "Message"], [["401", "denied"]], title="ignored")
        assert capfd.readouterr().out.splitlines() == ["Code\tMessage", "401\tdenied"]

    def test_table_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["Code"], [["503"]], title="Error codes"
        )
        out = capfd.readouterr().out
        assert "Error codes" in out
        assert "503" in out


class TestOutputFile:
    def test_format_response_writes_to_file(self, tmp_path, capfd, non_tty):
        target = tmp_path / "out.json"
        OutputManager(format=OutputFormat.JSON, output_file=str(target)).format_response(
            {"a": 1}
        )
        assert json.loads(target.read_text()) == {"a": 1}
        assert capfd.readouterr().out == ""

    def test_print_data_appends_with_newline(self, tmp_path, non_tty):
        target = tmp_path / "out.txt"
        mgr = _plain(output_file=str(target))
        mgr.print_data("one")
        mgr.print_data("two\n")
        assert target.read_text() == "one\ntwo\n"


class TestTransferProgress:
    def test_disabled_when_quiet(self, non_tty):
        assert _plain(quiet=True).transfer_progress().disable

    def test_disabled_when_stderr_not_a_terminal(self, non_tty):
        # pytest replaces stderr with a non-terminal capture stream.
        assert _plain().transfer_progress().disable

    def test_usable_as_context_manager(self, capfd, non_tty):
        with _plain().transfer_progress() as progress:
            task = progress.add_task("upload", total=10)
            progress.update(task, completed=10)
        assert capfd.readouterr().out == ""


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output_overrides(self):
        mgr = _plain()
        set_output(mgr)
        assert get_output() is mgr

    def test_reset_output_clears(self):
        set_output(_plain())
        reset_output()
        assert output_module._output is None

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(_plain(verbose=True))
        output_module.info("i")
        output_module.debug("d")
        output_module.print_data("p")
        captured = capfd.readouterr()
        assert captured.out.strip() == "p"
        assert "i" in captured.err
        assert "[debug] d" in captured.err
