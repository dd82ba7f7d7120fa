"""Pluggy hook specifications for server lifecycle and dispatch events.

All hooks run synchronously on the server's reader thread, in record order.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("fifoctl")
hookimpl = pluggy.HookimplMarker("fifoctl")


class FifoctlHookSpec:
    """Hook specifications for the fifoctl plugin system."""

    @hookspec
    def server_started(self, path: str) -> None:
        """Called once the reader thread is running."""

    @hookspec
    def server_stopped(self, path: str) -> None:
        """Called after the pipe is closed and removed."""

    @hookspec
    def post_command(self, name: str, args: list[str]) -> None:
        """Called after a command callback returned normally."""

    @hookspec
    def post_assign(self, field: str, value: str) -> None:
        """Called after a field callback returned normally."""

    @hookspec
    def dispatch_failed(self, op: str, key: str, error: str) -> None:
        """Called when a callback raised; the server keeps running."""
