"""parse / coerce: offline checks of the record grammar and value rules."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from fifoctl.commands._base import FifoCommand
from fifoctl.domain.coercion import coerce as coerce_value
from fifoctl.domain.coercion import render
from fifoctl.domain.errors import BindTypeError
from fifoctl.domain.kinds import parse_type
from fifoctl.domain.records import Command
from fifoctl.domain.tokenizer import tokenize

if TYPE_CHECKING:
    from fifoctl.commands._context import AppContext


@click.command(
    cls=FifoCommand,
    examples="""\
  fifoctl parse 'test arg "with space"'
  fifoctl parse '  field  =  value with   spaces  '
  fifoctl --json parse 'app.debug=true'""",
)
@click.argument("text")
@click.pass_obj
def parse(app: AppContext, text: str) -> None:
    """Show how TEXT would be classified and split by the server."""
    record = tokenize(text, strip_newline=app.settings.server.strip_line_ending)
    if record is None:
        app.fail("parse", "record has no command or field name", {"text": text})
    data: dict[str, Any] = {"op": record.op.value, "key": record.key}
    if isinstance(record, Command):
        data["args"] = list(record.args)
    else:
        data["value"] = record.value
    app.emit("parse", data)


@click.command(
    cls=FifoCommand,
    examples="""\
  fifoctl coerce int8 127
  fifoctl coerce uint16 65536        # fails: outside [0, 65535]
  fifoctl coerce '[]float32' '[1.5, 2]'""",
)
@click.argument("type_name", metavar="TYPE")
@click.argument("text")
@click.pass_obj
def coerce(app: AppContext, type_name: str, text: str) -> None:
    """Convert TEXT to TYPE the way a bound field would."""
    try:
        vtype = parse_type(type_name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="TYPE") from exc
    try:
        value = coerce_value(text, vtype)
    except BindTypeError as exc:
        app.fail("coerce", str(exc), {"type": vtype.name, "text": text})
    app.emit("coerce", {"type": vtype.name, "value": value, "rendered": render(value, vtype)})
