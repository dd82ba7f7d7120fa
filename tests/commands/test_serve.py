"""Tests for the serve command."""

from __future__ import annotations

import _thread
import os
import threading
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from fifoctl.cli import cli
from fifoctl.commands.serve import parse_binding
from fifoctl.domain.errors import FifoError
from fifoctl.domain.kinds import BOOL, UINT16, sequence_of
from fifoctl.infrastructure.client import send_record
from fifoctl.infrastructure.fifo import is_named_pipe

pytestmark = pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")


class _Driver:
    """Send *records* to a ``serve`` run from another thread.

    Records may go out before the server has registered its commands: they
    wait in the pipe until the reader starts. If the server is still up
    ``grace`` seconds after the last record, the driver interrupts the main
    thread so a lost ``stop`` fails the test instead of hanging it.
    """

    def __init__(self, pipe_path: Path, records: list[str], grace: float = 5.0) -> None:
        self.pipe_path = pipe_path
        self.records = records
        self.grace = grace
        self.errors: list[Exception] = []
        self.forced = False
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        try:
            self._send()
        except FifoError as exc:
            self.errors.append(exc)
        if not self._wait_gone(self.grace):
            self.forced = True
            _thread.interrupt_main()

    def _send(self) -> None:
        pause = threading.Event()
        for _ in range(400):
            if is_named_pipe(self.pipe_path):
                break
            pause.wait(0.005)
        for record in self.records:
            send_record(self.pipe_path, record, timeout=2.0)

    def _wait_gone(self, timeout: float) -> bool:
        pause = threading.Event()
        for _ in range(int(timeout / 0.01)):
            if not self.pipe_path.exists():
                return True
            pause.wait(0.01)
        return not self.pipe_path.exists()

    def join(self) -> None:
        self._thread.join(self.grace + 5)
        assert not self.forced, "server did not stop on its own"
        assert self.errors == []


class TestParseBinding:
    def test_scalar(self) -> None:
        name, var = parse_binding("app.debug=bool")
        assert name == "app.debug"
        assert var.type == BOOL
        assert var.value is False

    def test_sequence(self) -> None:
        _, var = parse_binding("ports=[]uint16")
        assert var.type == sequence_of(UINT16)

    @pytest.mark.parametrize("spec", ["nobind", "=bool", "name=", "name=int12"])
    def test_invalid(self, spec: str) -> None:
        with pytest.raises(click.BadParameter):
            parse_binding(spec)


class TestServe:
    def test_bound_field_round_trip(self, cli_runner: CliRunner, pipe_path: Path) -> None:
        driver = _Driver(pipe_path, ["app.debug=true", "get app.debug", "stop"])
        result = cli_runner.invoke(cli, ["serve", str(pipe_path), "--bind", "app.debug=bool"])
        driver.join()

        assert result.exit_code == 0, result.output
        assert "Listening on" in result.output
        assert "OK assign app.debug" in result.output
        assert "app.debug = true" in result.output
        assert "Stopped, removed" in result.output
        assert not pipe_path.exists()
        assert not Path(f"{pipe_path}.lock").exists()

    def test_dump_and_failed_assignment(self, cli_runner: CliRunner, pipe_path: Path) -> None:
        driver = _Driver(pipe_path, ["port=70000", "port=8080", "dump", "stop"])
        result = cli_runner.invoke(cli, ["serve", str(pipe_path), "--bind", "port=uint16"])
        driver.join()

        assert result.exit_code == 0, result.output
        assert "FAILED assign port" in result.output
        assert "port (uint16) = 8080" in result.output

    def test_get_unbound_field(self, cli_runner: CliRunner, pipe_path: Path) -> None:
        driver = _Driver(pipe_path, ["get nope", "get port", "stop"])
        result = cli_runner.invoke(cli, ["serve", str(pipe_path), "--bind", "port=uint16"])
        driver.join()

        assert result.exit_code == 0, result.output
        assert "FAILED command get" in result.output
        assert "no field bound as 'nope'" in result.output
        assert "port = 0" in result.output

    def test_regular_file_rejected(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "plain"
        target.write_text("")
        result = cli_runner.invoke(cli, ["serve", str(target)])
        assert result.exit_code == 1
        assert "is not a named pipe" in result.output
        assert target.read_text() == ""

    def test_invalid_field_name(self, cli_runner: CliRunner, pipe_path: Path) -> None:
        result = cli_runner.invoke(cli, ["serve", str(pipe_path), "--bind=-bad=int"])
        assert result.exit_code == 1
        assert "invalid field name" in result.output
        assert not pipe_path.exists()

    def test_bad_bind_spec(self, cli_runner: CliRunner, pipe_path: Path) -> None:
        result = cli_runner.invoke(cli, ["serve", str(pipe_path), "--bind", "oops"])
        assert result.exit_code == 2
        assert not pipe_path.exists()
