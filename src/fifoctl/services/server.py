"""Server: the named-pipe control channel.

One server owns one FIFO and one daemon reader thread. Each writer's
open/write/close cycle is one record: the loop reads until end-of-stream,
tokenizes, looks the key up, and calls the callback on the reader thread.

Concurrency:
- Callbacks never overlap and run in pipe-arrival order.
- Bound destinations are written only by the reader thread.
- ``register_*``, ``bind_field`` and ``close`` run on the caller's thread and
  are not synchronized with each other. Pass ``autostart=False`` and call
  :meth:`Server.start` once registration is done; records written before
  that wait in the pipe.
- ``close`` is bounded, not instant: the loop notices the stop signal
  between poll slices of ``poll_interval`` seconds, and a callback that is
  running is allowed to finish (up to ``join_timeout``).
- Each end-of-stream bumps the cycle counter in the ``<pipe>.lock``
  sidecar before the record is dispatched. Locking writers wait for that
  bump, so a slow callback cannot merge their records. See
  :mod:`fifoctl.infrastructure.sidecar`.

INVARIANT: a failing callback is logged, recorded, and reported to plugins;
it never stops the loop.
"""

from __future__ import annotations

import logging
import os
import select
import threading
from collections import deque
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

from fifoctl.config.models import ServerConfig
from fifoctl.domain.binding import BindTarget, bind_target
from fifoctl.domain.errors import BindTypeError, PipeIOError
from fifoctl.domain.records import Command, Record
from fifoctl.domain.tokenizer import tokenize
from fifoctl.infrastructure.fifo import (
    close_reader,
    ensure_named_pipe,
    open_reader,
    remove_named_pipe,
)
from fifoctl.infrastructure.sidecar import (
    open_sidecar,
    read_cycle_count,
    remove_sidecar,
    sidecar_path,
    write_cycle_count,
)
from fifoctl.services.registry import CommandFunc, FieldFunc, command_registry, field_registry
from fifoctl.services.result import DispatchError, DispatchResult

if TYPE_CHECKING:
    from fifoctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 65536


class Server:
    """Control channel over the FIFO at *path*.

    The FIFO is created and opened during construction. The reader thread
    starts then too, unless *autostart* is false, in which case it starts
    at :meth:`start`. Use as a context manager (or call :meth:`close`) to
    stop it and remove the FIFO and its lock file.

    Usage::

        debug = Var(BOOL)
        with Server("/run/myapp.ctl", autostart=False) as srv:
            srv.bind_field("app.debug", debug)
            srv.register_command("reload", lambda name, *args: reload(*args))
            srv.start()
            ...

    Raises:
        NotNamedPipeError: A non-FIFO file exists at *path*.
        PipeIOError: The FIFO or its lock file could not be created or opened.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        config: ServerConfig | None = None,
        plugins: PluginManager | None = None,
        autostart: bool = True,
    ) -> None:
        self.path = str(path)
        self.config = config or ServerConfig()
        self.commands = command_registry()
        self.fields = field_registry()
        self._plugins = plugins
        self._stop = threading.Event()
        self._closed = False
        self._fd_lock = threading.Lock()
        self._failures: deque[DispatchResult] = deque(maxlen=self.config.failure_history)

        self.lock_path = sidecar_path(self.path, self.config.lock_suffix)
        created = ensure_named_pipe(self.path, self.config.pipe_mode)
        try:
            self._lock_fd: int | None = open_sidecar(self.lock_path)
        except PipeIOError:
            if created:
                remove_named_pipe(self.path)
            raise
        # Continue from the stored count so waiting writers only ever see it grow.
        self._cycles = read_cycle_count(self._lock_fd)
        try:
            self._fd: int | None = open_reader(self.path)
        except PipeIOError:
            self._release_sidecar()
            if created:
                remove_named_pipe(self.path)
            raise

        self._thread = threading.Thread(
            target=self._run, name=f"fifoctl-reader:{self.path}", daemon=True
        )
        if autostart:
            self.start()

    def start(self) -> None:
        """Start the reader thread. No-op if it already started.

        Raises:
            RuntimeError: The server is closed.
        """
        if self._closed:
            raise RuntimeError(f"fifoctl: server on {self.path} is closed")
        if self._thread.ident is None:
            self._thread.start()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_command(self, name: str, fn: CommandFunc) -> None:
        """Call ``fn(name, *args)`` for each ``<name> [<arg> ...]`` record."""
        self.commands.register(name, fn)

    def command(self, name: str) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator form of :meth:`register_command`."""

        def decorator(fn: CommandFunc) -> CommandFunc:
            self.register_command(name, fn)
            return fn

        return decorator

    def register_field(self, name: str, fn: FieldFunc) -> None:
        """Call ``fn(name, value)`` for each ``<name> = <value>`` record."""
        self.fields.register(name, fn)

    def bind_field(self, name: str, destination: object) -> BindTarget:
        """Write assignments to *name* into *destination*, coerced to its type.

        *destination* is a :class:`~fifoctl.domain.kinds.Var` or an
        :func:`~fifoctl.domain.kinds.attribute` reference.

        Raises:
            InvalidBindFieldError: *destination* is not bindable; nothing is
                registered.
            DuplicateRegistrationError: *name* is already registered.
        """
        target = bind_target(destination, field=name)

        def assign(field: str, value: str) -> None:
            target.assign(value)

        self.register_field(name, assign)
        return target

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def feed(self, text: str) -> DispatchResult | None:
        """Tokenize one record's text and dispatch it; None if it holds no key."""
        record = tokenize(text, strip_newline=self.config.strip_line_ending)
        if record is None:
            return None
        return self.dispatch(record)

    def dispatch(self, record: Record) -> DispatchResult:
        """Look up *record*'s key and run its callback synchronously."""
        call: Callable[[], object] | None
        if isinstance(record, Command):
            data: dict[str, Any] = {"args": list(record.args)}
            fn_cmd = self.commands.get(record.name)
            call = None if fn_cmd is None else (lambda: fn_cmd(record.name, *record.args))
        else:
            data = {"value": record.value}
            fn_field = self.fields.get(record.field)
            call = None if fn_field is None else (lambda: fn_field(record.field, record.value))

        extra = {"op": str(record.op), "key": record.key}
        if call is None:
            logger.debug("record.ignored", extra=extra)
            return DispatchResult(ok=True, op="ignored", key=record.key, data=data)

        try:
            call()
        except Exception as exc:
            return self._record_failure(record, data, exc)

        logger.debug("record.dispatched", extra=extra)
        if isinstance(record, Command):
            self._notify("post_command", name=record.name, args=list(record.args))
        else:
            self._notify("post_assign", field=record.field, value=record.value)
        return DispatchResult(ok=True, op=record.op.value, key=record.key, data=data)

    def _record_failure(
        self, record: Record, data: dict[str, Any], exc: Exception
    ) -> DispatchResult:
        detail: dict[str, Any] = {"exception": type(exc).__name__}
        if isinstance(exc, BindTypeError):
            code = "bind_type_error"
            detail.update(value=exc.value, type=exc.type_name)
        else:
            code = "callback_error"
        result = DispatchResult(
            ok=False,
            op=record.op.value,
            key=record.key,
            data=data,
            error=DispatchError(code=code, message=str(exc), detail=detail),
        )
        self._failures.append(result)
        logger.warning(
            "record.failed",
            exc_info=exc,
            extra={"op": str(record.op), "key": record.key, "code": code},
        )
        self._notify("dispatch_failed", op=record.op.value, key=record.key, error=str(exc))
        return result

    @property
    def failures(self) -> list[DispatchResult]:
        """Most recent failed dispatches, oldest first."""
        return list(self._failures)

    # ------------------------------------------------------------------
    # Reader loop
    # ------------------------------------------------------------------

    def _run(self) -> None:
        self._notify("server_started", path=self.path)
        logger.debug("server.started", extra={"path": self.path})
        while not self._stop.is_set():
            try:
                payload = self._read_cycle()
            except OSError:
                if not self._stop.is_set():
                    logger.exception("server.read_failed", extra={"path": self.path})
                return
            if payload is None:
                continue
            text = payload.decode(self.config.encoding, errors="replace")
            self.feed(text)

    def _read_cycle(self) -> bytes | None:
        """Read one writer's open/write/close cycle.

        Returns None when there was nothing to read (stop requested, poll
        slice expired with no writer, or end-of-stream with no data).
        """
        fd = self._fd
        if fd is None:
            return None
        poller = select.poll()
        poller.register(fd, select.POLLIN | select.POLLPRI)
        timeout_ms = max(1, int(self.config.poll_interval * 1000))
        chunks: list[bytes] = []
        while not self._stop.is_set():
            if not poller.poll(timeout_ms):
                continue
            try:
                chunk = os.read(fd, _CHUNK_SIZE)
            except BlockingIOError:
                # Writer connected but has not written (or closed) yet.
                continue
            if chunk:
                chunks.append(chunk)
                continue
            # End-of-stream: the last writer closed.
            self._rearm()
            if chunks:
                return b"".join(chunks)
            self._stop.wait(self.config.idle_interval)
            return None
        return None

    def _rearm(self) -> None:
        """Swap in a fresh read handle before dropping the spent one.

        A handle that has seen a writer hang up keeps reporting hang-up to
        poll(); a fresh one blocks until the next writer. Opening before
        closing keeps a reader attached so writers never see a broken pipe.
        Once the fresh handle is in place the cycle is acknowledged, which
        lets the next locking writer in.
        """
        with self._fd_lock:
            if self._closed or self._fd is None:
                return
            fresh = open_reader(self.path)
            spent, self._fd = self._fd, fresh
            self._acknowledge()
        os.close(spent)

    def _acknowledge(self) -> None:
        if self._lock_fd is None:
            return
        self._cycles += 1
        try:
            write_cycle_count(self._lock_fd, self._cycles, self.lock_path)
        except PipeIOError:
            logger.warning("server.ack_failed", exc_info=True, extra={"path": self.path})

    def _release_sidecar(self) -> None:
        fd, self._lock_fd = self._lock_fd, None
        try:
            if fd is not None:
                os.close(fd)
        finally:
            remove_sidecar(self.lock_path)

    def _notify(self, hook_name: str, **payload: Any) -> None:
        if self._plugins is not None:
            self._plugins.notify(hook_name, **payload)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def close(self) -> None:
        """Stop the reader, close the handle, and remove the FIFO and lock file.

        Idempotent. Safe to call from a callback (the loop exits after the
        callback returns).

        Raises:
            PipeIOError: The handle could not be closed or a file removed.
        """
        if self._closed:
            return
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(self.config.join_timeout)
            if self._thread.is_alive():
                logger.warning("server.join_timeout", extra={"path": self.path})

        with self._fd_lock:
            self._closed = True
            fd, self._fd = self._fd, None
        try:
            if fd is not None:
                close_reader(fd, self.path)
        finally:
            try:
                remove_named_pipe(self.path)
            finally:
                with self._fd_lock:
                    self._release_sidecar()
        self._notify("server_stopped", path=self.path)
        logger.debug("server.stopped", extra={"path": self.path})

    def __enter__(self) -> Server:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "running" if self.is_running else "stopped"
        return f"<Server {self.path!r} {state}>"
