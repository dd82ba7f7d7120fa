"""Writer side of the control pipe: one open/write/close cycle per record.

The FIFO itself does not arbitrate between writers: two processes writing
at the same time can end up in one record. Writers that go through
:func:`send_record` take an exclusive ``flock`` on the sidecar lock file
(``<pipe>.lock``) and keep it until the server acknowledges that it has
seen the cycle end (see :mod:`fifoctl.infrastructure.sidecar`). That holds
even while a slow callback keeps the server busy, so locking writers never
share a record. Writers that bypass the lock (``echo cmd > pipe``) get no
such guarantee.
"""

from __future__ import annotations

import errno
import fcntl
import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fifoctl.domain.errors import NotNamedPipeError, PipeIOError
from fifoctl.infrastructure.fifo import is_named_pipe
from fifoctl.infrastructure.sidecar import open_sidecar, read_cycle_count, sidecar_path

logger = logging.getLogger(__name__)

_OPEN_RETRY_INTERVAL = 0.005
_ACK_POLL_INTERVAL = 0.005


@contextmanager
def writer_lock(path: str | Path, suffix: str = ".lock") -> Iterator[int]:
    """Hold an exclusive advisory lock on ``<path><suffix>``; yields its descriptor."""
    fd = open_sidecar(sidecar_path(path, suffix))
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        yield fd
    finally:
        # Closing the descriptor releases the lock.
        os.close(fd)


def _open_writer(path: str, deadline: float) -> int:
    """Open *path* for writing, waiting until *deadline* for a reader.

    A non-blocking write-open fails with ENXIO while nobody has the FIFO open
    for reading; retry until the deadline, then switch to blocking writes.
    """
    while True:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError as exc:
            if exc.errno == errno.ENXIO and time.monotonic() < deadline:
                time.sleep(_OPEN_RETRY_INTERVAL)
                continue
            if exc.errno == errno.ENXIO:
                raise PipeIOError("no reader on", path) from exc
            raise PipeIOError("opening named pipe", path, exc) from exc
        os.set_blocking(fd, True)
        return fd


def _write_all(fd: int, data: bytes, path: str) -> None:
    view = memoryview(data)
    while view:
        try:
            written = os.write(fd, view)
        except OSError as exc:
            raise PipeIOError("writing", path, exc) from exc
        view = view[written:]


def _await_ack(lock_fd: int, before: int, path: str, deadline: float) -> None:
    """Block until the server's cycle counter moves past *before*."""
    while read_cycle_count(lock_fd) <= before:
        if time.monotonic() >= deadline:
            raise PipeIOError("no acknowledgment from reader on", path)
        time.sleep(_ACK_POLL_INTERVAL)


def send_record(
    path: str | Path,
    text: str,
    *,
    timeout: float = 5.0,
    lock: bool = True,
    lock_suffix: str = ".lock",
    encoding: str = "utf-8",
) -> int:
    """Write *text* as one record to the FIFO at *path*.

    Args:
        path: FIFO path the server listens on.
        text: Record text, e.g. ``'reload "conf file"'`` or ``"app.debug=true"``.
        timeout: Seconds to wait for a reader to connect and, when locking,
            to acknowledge the record. One budget covers both.
        lock: Take the writer lock and wait for the server's acknowledgment,
            so no other locking writer can share this record.
        lock_suffix: Suffix of the sidecar lock file; must match the server's.
        encoding: Text encoding on the wire.

    Returns:
        Number of bytes written.

    Raises:
        NotNamedPipeError: *path* exists but is not a FIFO.
        PipeIOError: Missing pipe, no reader or no acknowledgment before
            *timeout*, or write failure.
    """
    target = str(path)
    if os.path.exists(target) and not is_named_pipe(target):
        raise NotNamedPipeError(target)

    data = text.encode(encoding)

    def cycle(deadline: float) -> None:
        fd = _open_writer(target, deadline)
        try:
            _write_all(fd, data, target)
        finally:
            os.close(fd)

    if lock:
        with writer_lock(target, lock_suffix) as lock_fd:
            # The budget starts once it is our turn.
            deadline = time.monotonic() + timeout
            before = read_cycle_count(lock_fd)
            cycle(deadline)
            _await_ack(lock_fd, before, target, deadline)
    else:
        cycle(time.monotonic() + timeout)
    logger.debug("Sent %d bytes to %s", len(data), target)
    return len(data)
