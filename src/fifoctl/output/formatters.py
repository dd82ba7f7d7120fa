"""Rich/JSON output helpers for the CLI.

Humans get one styled line per result plus indented key-value pairs;
machines (``--json``) get the model or payload serialized as JSON.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from fifoctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from fifoctl.services.result import DispatchResult


def _render_pairs(data: dict[str, Any]) -> list[str]:
    lines: list[str] = []
    for key, value in data.items():
        shown = json.dumps(value) if not isinstance(value, str) else repr(value)
        lines.append(f"  [fifo.label]{escape(key)}:[/] [fifo.value]{escape(shown)}[/]")
    return lines


def format_result(result: DispatchResult, *, json_output: bool = False) -> str:
    """Format one dispatch outcome."""
    if json_output:
        return result.model_dump_json()

    console = create_console()
    key = escape(result.key)
    if not result.ok:
        message = escape(result.error.message) if result.error else "unknown error"
        console.print(f"[fifo.error]FAILED[/] [fifo.op]{result.op}[/] [fifo.key]{key}[/]: {message}")
    elif result.op == "ignored":
        console.print(f"[fifo.ignored]IGNORED {key} (not registered)[/]")
    else:
        console.print(f"[fifo.ok]OK[/] [fifo.op]{result.op}[/] [fifo.key]{key}[/]")
        for line in _render_pairs(result.data):
            console.print(line)
    return get_output(console)


def format_payload(
    op: str,
    data: dict[str, Any],
    *,
    ok: bool = True,
    message: str = "",
    json_output: bool = False,
) -> str:
    """Format a CLI-level payload (parse/coerce/send output)."""
    if json_output:
        body: dict[str, Any] = {"ok": ok, "op": op, "data": data}
        if message:
            body["message"] = message
        return json.dumps(body, indent=2)

    console = create_console()
    if ok:
        console.print(f"[fifo.ok]OK:[/] [fifo.op]{escape(op)}[/]")
    else:
        console.print(f"[fifo.error]ERROR:[/] [fifo.op]{escape(op)}[/] {escape(message)}")
    for line in _render_pairs(data):
        console.print(line)
    return get_output(console)
