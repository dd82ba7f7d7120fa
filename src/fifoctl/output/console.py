"""Rich Console factory and theme for fifoctl output.

Consoles render into a StringIO buffer so formatters keep a plain
``-> str`` contract; in non-TTY environments Rich drops color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FIFO_THEME = Theme(
    {
        "fifo.ok": "bold green",
        "fifo.error": "bold red",
        "fifo.ignored": "dim",
        "fifo.op": "bold cyan",
        "fifo.key": "bold",
        "fifo.label": "dim",
        "fifo.value": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=FIFO_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue().rstrip("\n")
