"""send: write one record to a server's FIFO."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fifoctl.commands._base import FifoCommand
from fifoctl.domain.errors import FifoError

if TYPE_CHECKING:
    from fifoctl.commands._context import AppContext


@click.command(
    cls=FifoCommand,
    examples="""\
  # Invoke a command with a quoted argument
  fifoctl send /tmp/app.ctl 'reload "conf dir"'

  # Assign a field; words after PATH are joined with single spaces
  fifoctl send /tmp/app.ctl app.workers = 8

  # Give up after one second if no server is listening
  fifoctl send --timeout 1 /tmp/app.ctl ping""",
)
@click.argument("path", type=click.Path(dir_okay=False))
@click.argument("words", nargs=-1, required=True)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for a listening server (default from [client] open_timeout).",
)
@click.option("--no-lock", is_flag=True, help="Skip the writer lock file.")
@click.pass_obj
def send(
    app: AppContext,
    path: str,
    words: tuple[str, ...],
    timeout: float | None,
    no_lock: bool,
) -> None:
    """Send WORDS as one record to the FIFO at PATH."""
    from fifoctl.infrastructure.client import send_record

    client = app.settings.client
    text = " ".join(words)
    try:
        written = send_record(
            path,
            text,
            timeout=client.open_timeout if timeout is None else timeout,
            lock=client.lock and not no_lock,
            lock_suffix=client.lock_suffix,
            encoding=client.encoding,
        )
    except FifoError as exc:
        app.fail("send", str(exc), {"path": path})
    app.emit("send", {"path": path, "record": text, "bytes": written})
