"""serve: run a control-channel server in the foreground."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import click

from fifoctl.commands._base import FifoCommand
from fifoctl.domain.coercion import render
from fifoctl.domain.errors import FifoError
from fifoctl.domain.kinds import Var, parse_type
from fifoctl.plugins.hookspecs import hookimpl
from fifoctl.services.result import DispatchError, DispatchResult

if TYPE_CHECKING:
    from fifoctl.commands._context import AppContext

_WAIT_SLICE = 0.2


def parse_binding(spec: str) -> tuple[str, Var]:
    """``NAME=TYPE`` -> (name, fresh Var of that type)."""
    name, sep, type_name = spec.partition("=")
    if not sep or not name.strip() or not type_name.strip():
        msg = f"expected NAME=TYPE, got {spec!r}"
        raise click.BadParameter(msg, param_hint="--bind")
    try:
        vtype = parse_type(type_name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--bind") from exc
    return name.strip(), Var(vtype)


class EchoPlugin:
    """Prints every dispatch outcome as it happens."""

    def __init__(self, app: AppContext) -> None:
        self._app = app

    @hookimpl
    def post_command(self, name: str, args: list[str]) -> None:
        self._app.echo_result(
            DispatchResult(ok=True, op="command", key=name, data={"args": args})
        )

    @hookimpl
    def post_assign(self, field: str, value: str) -> None:
        self._app.echo_result(
            DispatchResult(ok=True, op="assign", key=field, data={"value": value})
        )

    @hookimpl
    def dispatch_failed(self, op: str, key: str, error: str) -> None:
        self._app.echo_result(
            DispatchResult(
                ok=False,
                op=op,  # type: ignore[arg-type]
                key=key,
                error=DispatchError(code="dispatch_failed", message=error),
            )
        )


@click.command(
    cls=FifoCommand,
    examples="""\
  # Serve /tmp/app.ctl with two typed fields
  fifoctl serve /tmp/app.ctl --bind app.debug=bool --bind app.workers=uint8

  # From another shell
  fifoctl send /tmp/app.ctl app.workers=4
  fifoctl send /tmp/app.ctl get app.workers
  echo 'app.debug = true' > /tmp/app.ctl
  fifoctl send /tmp/app.ctl stop""",
)
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--bind",
    "bindings",
    multiple=True,
    metavar="NAME=TYPE",
    help="Bind a field to a variable of TYPE (bool, int8, uint32, float64, str, []int, ...).",
)
@click.pass_obj
def serve(app: AppContext, path: str, bindings: tuple[str, ...]) -> None:
    """Listen on the FIFO at PATH until `stop` is received or Ctrl-C.

    Built-in commands: `get NAME`, `dump`, `stop`.
    """
    from fifoctl.plugins.manager import PluginManager
    from fifoctl.services.server import Server

    variables = dict(parse_binding(spec) for spec in bindings)

    plugins = app.plugin_manager() or PluginManager()
    plugins.register_plugin(EchoPlugin(app), name="fifoctl-echo")

    stopped = threading.Event()

    def get(_name: str, *names: str) -> None:
        for name in names:
            var = variables.get(name)
            if var is None:
                raise LookupError(f"get: no field bound as {name!r}")
            click.echo(f"{name} = {render(var.value, var.type)}")

    def dump(_name: str, *_args: str) -> None:
        for name in sorted(variables):
            var = variables[name]
            click.echo(f"{name} ({var.type}) = {render(var.value, var.type)}")

    def stop(_name: str, *_args: str) -> None:
        stopped.set()

    try:
        server = Server(path, config=app.settings.server, plugins=plugins, autostart=False)
    except FifoError as exc:
        app.fail("serve", str(exc), {"path": path})

    with server:
        try:
            for name, var in variables.items():
                server.bind_field(name, var)
            server.register_command("get", get)
            server.register_command("dump", dump)
            server.register_command("stop", stop)
            server.start()
        except FifoError as exc:
            app.fail("serve", str(exc), {"path": path})

        click.echo(f"Listening on {path}", err=True)
        try:
            while not stopped.wait(_WAIT_SLICE):
                if not server.is_running:
                    break
        except KeyboardInterrupt:
            pass
    click.echo(f"Stopped, removed {path}", err=True)
