"""Tests for the command line entry point."""
from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from tossup_trainer import __main__ as cli

SCENARIO_LINE = "Napoleon Bonaparte [accept Napoleon I; prompt on Bonaparte]"


def _run(*args):
    with patch("sys.argv", ["tossup_trainer", *args]):
        cli.main()


class TestCommands:
    def test_parse(self, capsys):
        _run("parse", SCENARIO_LINE)
        out = capsys.readouterr().out
        assert "napoleon bonaparte" in out
        assert "Promptable:\n  bonaparte" in out

    def test_judge_stops_at_final_verdict(self, capsys):
        _run("judge", SCENARIO_LINE, "bonaparte", "bonaparte", "napoleon")
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert "prompt" in lines[0]
        assert "incorrect" in lines[1]

    def test_judge_usage(self, capsys):
        with pytest.raises(SystemExit):
            _run("judge", SCENARIO_LINE)

    def test_unknown_command(self, capsys):
        with pytest.raises(SystemExit):
            _run("frobnicate")
        assert "Unknown command" in capsys.readouterr().out

    def test_status_not_running(self, tmp_path, capsys):
        with patch.object(cli, "PID_FILE", tmp_path / ".server.pid"):
            _run("status")
        assert "not running" in capsys.readouterr().out

    def test_stop_not_running(self, tmp_path, capsys):
        with patch.object(cli, "PID_FILE", tmp_path / ".server.pid"):
            assert cli._stop() is False
        assert "not running" in capsys.readouterr().out


class TestPidFile:
    def test_missing(self, tmp_path):
        assert cli.PidFile(tmp_path / ".server.pid").read() is None

    def test_garbled_entry_cleared(self, tmp_path):
        path = tmp_path / ".server.pid"
        path.write_text("not-a-pid")
        assert cli.PidFile(path).read() is None
        assert not path.exists()

    def test_dead_process_cleared(self, tmp_path):
        path = tmp_path / ".server.pid"
        path.write_text("12345")
        with patch("os.kill", side_effect=ProcessLookupError):
            assert cli.PidFile(path).read() is None
        assert not path.exists()

    def test_claim_then_read(self, tmp_path):
        pid_file = cli.PidFile(tmp_path / ".server.pid")
        pid_file.claim()
        assert pid_file.read() == os.getpid()
        pid_file.clear()
        assert pid_file.read() is None


class TestOptions:
    def test_values_and_switches(self):
        options = cli._options(["--port", "9000", "--no-history", "--host", "0.0.0.0"])
        assert options == {"port": "9000", "no-history": "", "host": "0.0.0.0"}

    def test_trailing_flag_without_value(self):
        assert cli._options(["--port"]) == {"port": ""}
