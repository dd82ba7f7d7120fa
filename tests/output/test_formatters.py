"""Tests for CLI output formatting."""

from __future__ import annotations

import json

from fifoctl.output.formatters import format_payload, format_result
from fifoctl.services.result import DispatchError, DispatchResult


def _ok_command() -> DispatchResult:
    return DispatchResult(ok=True, op="command", key="reload", data={"args": ["conf dir"]})


def _failed_assign() -> DispatchResult:
    return DispatchResult(
        ok=False,
        op="assign",
        key="level",
        data={"value": "300"},
        error=DispatchError(
            code="bind_type_error",
            message="fifoctl: cannot bind number 300 into level of type int8",
            detail={"type": "int8"},
        ),
    )


class TestFormatResult:
    def test_ok(self) -> None:
        output = format_result(_ok_command())
        lines = output.splitlines()
        assert lines[0] == "OK command reload"
        assert lines[1] == '  args: ["conf dir"]'

    def test_failed(self) -> None:
        output = format_result(_failed_assign())
        assert output.startswith("FAILED assign level: fifoctl: cannot bind number 300")

    def test_ignored(self) -> None:
        result = DispatchResult(ok=True, op="ignored", key="ghost", data={"value": "1"})
        assert format_result(result) == "IGNORED ghost (not registered)"

    def test_markup_in_key_is_escaped(self) -> None:
        result = DispatchResult(ok=True, op="command", key="[bold]x", data={})
        assert format_result(result) == "OK command [bold]x"

    def test_json(self) -> None:
        parsed = json.loads(format_result(_failed_assign(), json_output=True))
        assert parsed["ok"] is False
        assert parsed["op"] == "assign"
        assert parsed["error"]["code"] == "bind_type_error"
        assert parsed["error"]["detail"] == {"type": "int8"}


class TestFormatPayload:
    def test_ok(self) -> None:
        output = format_payload("parse", {"op": "assign", "key": "a.b", "value": " x "})
        assert output.splitlines() == [
            "OK: parse",
            "  op: 'assign'",
            "  key: 'a.b'",
            "  value: ' x '",
        ]

    def test_error(self) -> None:
        output = format_payload("coerce", {"type": "int8"}, ok=False, message="too big")
        assert output.splitlines()[0] == "ERROR: coerce too big"

    def test_json(self) -> None:
        parsed = json.loads(format_payload("send", {"bytes": 4}, json_output=True))
        assert parsed == {"ok": True, "op": "send", "data": {"bytes": 4}}

    def test_json_error_carries_message(self) -> None:
        parsed = json.loads(
            format_payload("send", {}, ok=False, message="no reader", json_output=True)
        )
        assert parsed["ok"] is False
        assert parsed["message"] == "no reader"
