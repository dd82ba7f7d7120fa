"""Tests for the parse and coerce commands."""

from __future__ import annotations

import json

from click.testing import CliRunner

from fifoctl.cli import cli


class TestParse:
    def test_command(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", 'test arg "with space"'])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data == {"op": "command", "key": "test", "args": ["arg", "with space"]}

    def test_assignment(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", '  field  = " value " '])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data == {"op": "assign", "key": "field", "value": " value "}

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["parse", "a.b=1"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "OK: parse",
            "  op: 'assign'",
            "  key: 'a.b'",
            "  value: '1'",
        ]

    def test_blank_record_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["parse", "   "])
        assert result.exit_code == 1
        assert "record has no command or field name" in result.output


class TestCoerce:
    def test_ok(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "coerce", "int8", "127"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data == {"type": "int8", "value": 127, "rendered": "127"}

    def test_sequence(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "coerce", "[]float32", "[1.5, 2]"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["type"] == "[]float32"
        assert data["value"] == [1.5, 2.0]
        assert data["rendered"] == "[1.5, 2]"

    def test_out_of_range(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["coerce", "uint16", "65536"])
        assert result.exit_code == 1
        assert "outside [0, 65535]" in result.output

    def test_out_of_range_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "coerce", "bool", "yes"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["ok"] is False
        assert "cannot bind" in payload["message"]
        assert payload["data"] == {"type": "bool", "text": "yes"}

    def test_unknown_type(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["coerce", "int12", "1"])
        assert result.exit_code == 2
        assert "Unknown value type" in result.output
