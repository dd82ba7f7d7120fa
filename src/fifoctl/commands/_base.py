"""FifoCommand: a Click command that carries worked invocations.

``--help`` stays short and points at ``--examples``, which prints the
examples block and exits before any argument is validated.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


class FifoCommand(click.Command):
    """Click Command accepting an ``examples`` block."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        if examples and not kwargs.get("epilog"):
            kwargs["epilog"] = "Run with --examples for usage examples."
        super().__init__(*args, **kwargs)
        self.examples = textwrap.dedent(examples).strip("\n") if examples else None
        if self.examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples and exit.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(textwrap.indent(self.examples or "", "  "))
        ctx.exit(0)
