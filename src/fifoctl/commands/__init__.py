"""Subcommand modules for fifoctl.

register_commands() imports lazily so ``fifoctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach every subcommand to the root group."""
    from fifoctl.commands.parse import coerce, parse
    from fifoctl.commands.send import send
    from fifoctl.commands.serve import serve

    cli.add_command(serve)
    cli.add_command(send)
    cli.add_command(parse)
    cli.add_command(coerce)
