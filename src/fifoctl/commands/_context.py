"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Configures logging and centralizes output routing:
success to stdout, failures to stderr with exit code 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

import click

from fifoctl.config.logging import configure_logging
from fifoctl.output.formatters import format_payload, format_result

if TYPE_CHECKING:
    from fifoctl.config.settings import FifoSettings
    from fifoctl.plugins.manager import PluginManager
    from fifoctl.services.result import DispatchResult


class AppContext:
    """Settings plus output helpers shared by every command."""

    def __init__(self, settings: FifoSettings) -> None:
        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    def plugin_manager(self) -> PluginManager | None:
        """Entry-point plugins, or None when ``[plugins] enabled = false``."""
        if not self.settings.plugins.enabled:
            return None
        from fifoctl.plugins.manager import PluginManager

        manager = PluginManager()
        manager.discover_and_load()
        return manager

    def emit(self, op: str, data: dict[str, Any]) -> None:
        """Write a successful payload to stdout."""
        click.echo(format_payload(op, data, json_output=self.settings.json_output))

    def fail(self, op: str, message: str, data: dict[str, Any] | None = None) -> NoReturn:
        """Write a failure payload to stderr and exit with code 1."""
        output = format_payload(
            op, data or {}, ok=False, message=message, json_output=self.settings.json_output
        )
        click.echo(output, err=True)
        raise SystemExit(1)

    def echo_result(self, result: DispatchResult) -> None:
        """Show one dispatch outcome (used by ``serve``)."""
        click.echo(format_result(result, json_output=self.settings.json_output))
